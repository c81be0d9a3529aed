"""
Configuration for the tract choropleth map.

Settings live in a YAML file (``ops/config.yaml`` by default). Any key the file
leaves out falls back to ``Config.DEFAULTS``, so a config only needs to name
what differs from the San Francisco foreign-born map.

Usage:
    from ops import Config

    config = Config()
    tracts_path = config.get_input_path("tracts_geojson")
    settings = config.get_classification_settings()
"""

import copy
import os
import pathlib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml  # type: ignore[import-untyped]
from loguru import logger

from choropleth.classifier import FALLBACK_BREAKS
from choropleth.colors import DEFAULT_COLOR_RAMP
from choropleth.features import DEFAULT_ID_CANDIDATES
from choropleth.normalizer import FRACTION_MAX
from choropleth.settings import ClassificationSettings

CONFIG_ENV_VAR = "TRACT_MAP_CONFIG_PATH"
OUTPUT_DIR_KEYS = ("data", "geospatial", "html")
ROOT_MARKERS = ("data", "ops", "html", "pyproject.toml", ".git")


class Config:
    """YAML-backed settings with dotted lookups and built-in defaults."""

    DEFAULTS: Dict[str, Any] = {
        "columns": {
            "primary": "pct_foreign_born",
            "naturalized": "pct_foreign_born_naturalized",
            "not_naturalized": "pct_foreign_born_not_naturalized",
            "count": "foreign_born",
            "id_candidates": list(DEFAULT_ID_CANDIDATES),
        },
        "classification": {
            "policy": "fixed",
            "fixed_breaks": list(FALLBACK_BREAKS),
            "color_ramp": list(DEFAULT_COLOR_RAMP),
            "fraction_threshold": FRACTION_MAX,
        },
        "visualization": {
            "center": [37.7247071, -122.4243266],
            "zoom_start": 11,
            "tiles": "CartoDB Positron",
            "fill_opacity": 0.82,
            "line_color": "#ffffff",
            "line_weight": 0.6,
            "line_opacity": 0.8,
            "highlight_weight": 2.2,
            "headline_label": "foreign born",
            "legend_title": "% foreign born",
            "map_filename": "tracts_map.html",
        },
    }

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        project_root_override: Optional[Union[str, Path]] = None,
        data: Optional[Mapping[str, Any]] = None,
    ):
        """
        Load settings from a YAML file or from an in-memory mapping.

        Args:
            config_file: YAML file to read. When omitted (and ``data`` is None) the
                        file is searched for in this order:
                        1. the TRACT_MAP_CONFIG_PATH environment variable
                        2. ./config.yaml
                        3. ../ops/config.yaml
            project_root_override: Directory that relative paths resolve against
            data: Settings to use instead of reading a file
        """
        if data is not None:
            self.config_path: Optional[Path] = None
            self.data: Dict[str, Any] = copy.deepcopy(dict(data))
            self.project_root = Path(project_root_override or Path.cwd()).resolve()
            logger.debug("Using in-memory configuration")
        else:
            self.config_path = Path(config_file or self._locate_config_file()).resolve()
            if not self.config_path.exists():
                raise FileNotFoundError(f"Config file not found: {self.config_path}")

            if project_root_override:
                self.project_root = Path(project_root_override).resolve()
            else:
                self.project_root = self._find_project_root(self.config_path.parent)

            logger.debug(f"Reading {self.config_path} (project root {self.project_root})")
            with open(self.config_path, "r", encoding="utf-8") as f:
                self.data = yaml.safe_load(f) or {}

        self._resolve_directories()

    @staticmethod
    def _locate_config_file() -> str:
        from_env = os.environ.get(CONFIG_ENV_VAR)
        if from_env and Path(from_env).exists():
            logger.debug(f"Using config from ${CONFIG_ENV_VAR}: {from_env}")
            return from_env
        for candidate in ("config.yaml", "../ops/config.yaml"):
            if Path(candidate).exists():
                return candidate
        raise FileNotFoundError(
            f"No config.yaml found. Check current directory or set {CONFIG_ENV_VAR}"
        )

    def _resolve_directories(self) -> None:
        dirs = self.data.get("directories", {}) or {}
        self.directories: Dict[str, Path] = {
            "data": self.project_root / dirs.get("data", "data"),
            "geospatial": self.project_root / dirs.get("geospatial", "data/geospatial"),
            "html": self.project_root / dirs.get("html", "html"),
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Look up ``a.b.c`` in the loaded file, then in DEFAULTS.

        A key that is missing (or null) in the file falls back to the built-in
        default; ``default`` is returned only when neither has it.
        """
        keys = key_path.split(".")
        for source in (self.data, self.DEFAULTS):
            node: Any = source
            for key in keys:
                if not isinstance(node, dict) or key not in node:
                    node = None
                    break
                node = node[key]
            if node is not None:
                return node
        return default

    def get_section(self, section: str) -> Dict[str, Any]:
        """Merge a config section over its defaults."""
        merged = dict(self.DEFAULTS.get(section, {}))
        merged.update(self.data.get(section, {}) or {})
        return merged

    def get_input_path(self, filename_key: str) -> pathlib.Path:
        """Absolute path of an ``input_files`` entry."""
        relative = (self.data.get("input_files", {}) or {}).get(filename_key)
        if not relative:
            raise ValueError(f"No input file configured under input_files.{filename_key}")
        return self.project_root / relative

    def get_output_dir(self, dir_key: str) -> pathlib.Path:
        if dir_key not in self.directories:
            raise ValueError(
                f"Unknown directory key: {dir_key} (expected one of {', '.join(OUTPUT_DIR_KEYS)})"
            )
        return self.directories[dir_key]

    def get_column_name(self, column_key: str) -> str:
        name = self.get(f"columns.{column_key}")
        if not isinstance(name, str):
            raise ValueError(f"Column name not found or not a string: {column_key}")
        return name

    def get_visualization_setting(self, setting_key: str) -> Any:
        return self.get(f"visualization.{setting_key}")

    def get_classification_settings(self) -> ClassificationSettings:
        """
        Build validated classification settings.

        Raises:
            SetupConfigurationError: If the classification or columns sections are invalid
        """
        return ClassificationSettings.from_mapping(
            classification=self.get_section("classification"),
            columns=self.get_section("columns"),
        )

    def get_tract_map_path(self) -> pathlib.Path:
        return self.get_output_dir("html") / self.get_visualization_setting("map_filename")

    def print_config_summary(self) -> None:
        """Log what was loaded, at debug level."""
        logger.debug("📋 Configuration Summary")
        logger.debug("=" * 50)
        logger.debug(f"Project: {self.get('project_name', 'Unknown')}")
        logger.debug(f"Description: {self.get('description', 'No description')}")
        logger.debug(f"Config file: {self.config_path or '(in-memory)'}")

        logger.debug("📁 Directories:")
        for key in OUTPUT_DIR_KEYS:
            path = self.get_output_dir(key)
            logger.debug(f"  {'✅' if path.exists() else '❌'} {key}: {path}")

        logger.debug("🎨 Classification:")
        for key, value in self.get_section("classification").items():
            logger.debug(f"  {key}: {value}")

    @staticmethod
    def _find_project_root(config_dir: Path) -> Path:
        """Walk up from the config file until two project markers sit side by side."""
        current = config_dir
        for _ in range(5):
            if sum(1 for marker in ROOT_MARKERS if (current / marker).exists()) >= 2:
                return current
            if current.parent == current:
                break
            current = current.parent

        if config_dir.name == "ops":
            return config_dir.parent

        logger.warning(f"⚠️ Project root not detected, resolving paths from {config_dir}")
        return config_dir
