"""
Error types for the tract choropleth core.

Per-feature data problems are never raised: missing or non-numeric attributes
degrade to ``None`` values and placeholder text. Only global configuration
problems are errors, and they are fatal at setup time.
"""


class SetupConfigurationError(ValueError):
    """Raised when classification setup cannot produce a valid colour scheme."""
