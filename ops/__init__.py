"""
Operations package for the Tract Choropleth Map

This package centralizes the operational tools:
- Configuration management
- Command line interface

The Config class is exposed at the package level for convenient imports:
    from ops import Config
"""

from .config_loader import Config

__all__ = ["Config"]
