"""
Classification of canonical values into ordered bins.

A break set ``b`` of length B splits the scale into B + 1 bins:
``(-inf, b[0]]``, ``(b[i-1], b[i]]`` ... ``(b[B-1], +inf)``. A value equal to a
break belongs to the lower bin.

Two policies produce break sets:
- fixed: explicit thresholds from configuration (default, stable across datasets)
- quantile: 20/40/60/80th percentiles of the dataset itself
"""

import math
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from loguru import logger

from .errors import SetupConfigurationError

QUANTILE_PROBS = (0.2, 0.4, 0.6, 0.8)
FALLBACK_BREAKS = [10.0, 20.0, 30.0, 40.0]


class ClassificationPolicy(str, Enum):
    QUANTILE = "quantile"
    FIXED = "fixed"

    @classmethod
    def parse(cls, value: Union[str, "ClassificationPolicy"]) -> "ClassificationPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise SetupConfigurationError(
                f"Unknown classification policy '{value}' (expected one of: {choices})"
            ) from None


def validate_breaks(breaks: Iterable[float]) -> List[float]:
    """
    Check that a break set is finite and non-decreasing.

    Returns:
        Breaks as a list of floats

    Raises:
        SetupConfigurationError: On non-numeric, non-finite or out-of-order breaks
    """
    result: List[float] = []
    for i, raw in enumerate(breaks):
        if isinstance(raw, bool):
            raise SetupConfigurationError(f"Break {i} is not a number: {raw!r}")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise SetupConfigurationError(f"Break {i} is not a number: {raw!r}") from None
        if not math.isfinite(value):
            raise SetupConfigurationError(f"Break {i} is not finite: {raw!r}")
        if result and value < result[-1]:
            raise SetupConfigurationError(
                f"Breaks must be non-decreasing: {result[-1]} is followed by {value}"
            )
        result.append(value)
    return result


def quantile(sorted_values: Sequence[float], p: float) -> float:
    """Linear interpolation between order statistics of an ascending sequence."""
    idx = (len(sorted_values) - 1) * p
    lo = math.floor(idx)
    hi = math.ceil(idx)
    if lo == hi:
        return float(sorted_values[lo])
    w = idx - lo
    return float(sorted_values[lo] * (1 - w) + sorted_values[hi] * w)


def quantile_breaks(values: Iterable[Optional[float]]) -> List[float]:
    """Compute the four quintile breaks, ignoring missing values."""
    finite = [float(v) for v in values if v is not None and math.isfinite(v)]
    if not finite:
        logger.warning(f"⚠️ No values to classify - using fallback breaks {FALLBACK_BREAKS}")
        return list(FALLBACK_BREAKS)

    sorted_values = sorted(finite)
    return [quantile(sorted_values, p) for p in QUANTILE_PROBS]


def compute_breaks(
    values: Iterable[Optional[float]],
    policy: Union[str, ClassificationPolicy],
    fixed_breaks: Optional[Sequence[float]] = None,
) -> List[float]:
    """
    Compute the break set for a policy.

    Args:
        values: Canonical values (None entries are ignored)
        policy: "quantile" or "fixed"
        fixed_breaks: Thresholds for the fixed policy

    Returns:
        Ordered list of breaks

    Raises:
        SetupConfigurationError: If the policy is unknown or fixed breaks are invalid
    """
    policy = ClassificationPolicy.parse(policy)

    if policy is ClassificationPolicy.FIXED:
        if fixed_breaks is None:
            raise SetupConfigurationError("Fixed policy requires fixed_breaks")
        breaks = validate_breaks(fixed_breaks)
    else:
        breaks = quantile_breaks(values)

    logger.debug(f"  📊 {policy.value} breaks: {[round(b, 3) for b in breaks]}")
    return breaks


def bin_index(value: Optional[float], breaks: Sequence[float]) -> int:
    """
    Return the bin a value falls into.

    Missing values are treated as 0, so they land in the lowest bin for any
    break set whose first break is non-negative.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        value = 0.0
    for i, threshold in enumerate(breaks):
        if value <= threshold:
            return i
    return len(breaks)


def classify_series(values: pd.Series, breaks: Sequence[float]) -> pd.Series:
    """Vectorised ``bin_index`` for a Series of canonical values."""
    filled = values.astype(float).fillna(0.0).to_numpy()
    indices = np.searchsorted(np.asarray(breaks, dtype=float), filled, side="left")
    return pd.Series(indices, index=values.index, dtype=int)
