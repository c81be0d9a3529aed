"""
Tract choropleth core

Classification and presentation logic for census-tract choropleth maps:
scale normalisation, binning, colour ramps, legend labels, info cards and
hover/selection state. Rendering backends consume what this package computes.
"""

__version__ = "0.1.0"

from .classifier import ClassificationPolicy, bin_index, classify_series, compute_breaks
from .colors import ColorScheme, build_color_scheme, case_expression, color_for
from .errors import SetupConfigurationError
from .features import FeatureRecord, get_tract_id, load_tract_features
from .legend import build_labels, format_break
from .normalizer import detect_fraction_scale, normalize, normalize_series
from .pipeline import TractChoropleth, build_choropleth
from .presenter import DisplayRecord, present
from .selection import SelectionController, SelectionState
from .settings import ClassificationSettings, FieldNames

__all__ = [
    "ClassificationPolicy",
    "ClassificationSettings",
    "ColorScheme",
    "DisplayRecord",
    "FeatureRecord",
    "FieldNames",
    "SelectionController",
    "SelectionState",
    "SetupConfigurationError",
    "TractChoropleth",
    "bin_index",
    "build_choropleth",
    "build_color_scheme",
    "build_labels",
    "classify_series",
    "color_for",
    "compute_breaks",
    "detect_fraction_scale",
    "format_break",
    "get_tract_id",
    "load_tract_features",
    "normalize",
    "normalize_series",
    "present",
    "case_expression",
]
