"""
Value normalisation onto the canonical 0-100 percentage scale.

Source datasets store shares either as fractions (0.42) or as percentages
(42.0). The scale is decided once per dataset from the largest raw value and
then passed explicitly into every normalisation call.
"""

import math
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd
from loguru import logger

# A dataset whose largest value is at most this is treated as fractional.
FRACTION_MAX = 1.2


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a raw attribute to a finite float.

    None, empty or non-numeric strings, booleans, NaN and infinities all
    yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def detect_fraction_scale(raw_values: Iterable[Any], threshold: float = FRACTION_MAX) -> bool:
    """
    Decide whether a whole dataset is fraction-encoded.

    Args:
        raw_values: Raw primary-metric values for every feature
        threshold: Largest maximum still considered fractional

    Returns:
        True if the dataset maximum lies in (0, threshold]; False otherwise,
        including when there are no finite values at all
    """
    numbers = [n for n in (to_number(v) for v in raw_values) if n is not None]
    if not numbers:
        logger.warning("⚠️ No finite values found - assuming percentage scale")
        return False

    max_val = max(numbers)
    is_fraction = 0 < max_val <= threshold
    logger.debug(
        f"  📏 Scale detection: max={max_val} over {len(numbers):,} values -> "
        f"{'fraction (x100)' if is_fraction else 'percentage'}"
    )
    return is_fraction


def normalize(raw_value: Any, is_fraction: bool) -> Optional[float]:
    """Return the canonical percentage for a raw value, or None if unusable."""
    number = to_number(raw_value)
    if number is None:
        return None
    if is_fraction:
        number *= 100
    # scaling a huge sub-field value can overflow
    return number if math.isfinite(number) else None


def _clean_raw(value: Any) -> Any:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    return value


def normalize_series(series: pd.Series, is_fraction: bool) -> pd.Series:
    """
    Vectorised ``normalize`` for a pandas Series.

    Non-numeric and non-finite entries become NaN.
    """
    if series.dtype == bool:
        return pd.Series(np.nan, index=series.index, dtype=float)
    if series.dtype == object:
        series = series.map(_clean_raw)
    values = pd.to_numeric(series, errors="coerce").astype(float)
    if is_fraction:
        values = values * 100
    return values.replace([np.inf, -np.inf], np.nan)
