"""
Legend labels for a break set.

N breaks give N + 1 labels, low to high:

    ["≤ 10%", "10% – 20%", "20% – 30%", "30% – 40%", "≥ 40%"]
"""

import math
from typing import List, Optional, Sequence, Tuple

from .colors import ColorScheme

ABSENT = "—"
WHOLE_RANGE_LABEL = "All values"


def format_break(value: Optional[float]) -> str:
    """Percentage text with one decimal below 10 and none above."""
    if value is None or not math.isfinite(value):
        return ABSENT
    digits = 1 if abs(value) < 10 else 0
    return f"{value:.{digits}f}%"


def build_labels(breaks: Sequence[Optional[float]]) -> List[str]:
    """Return ``len(breaks) + 1`` range labels ordered low to high."""
    if not breaks:
        return [WHOLE_RANGE_LABEL]

    labels = [f"≤ {format_break(breaks[0])}"]
    for lower, upper in zip(breaks[:-1], breaks[1:]):
        labels.append(f"{format_break(lower)} – {format_break(upper)}")
    labels.append(f"≥ {format_break(breaks[-1])}")
    return labels


def legend_entries(scheme: ColorScheme) -> List[Tuple[str, str]]:
    """Pair each scheme colour with its label as ``(color, label)``."""
    return list(zip(scheme.colors, build_labels(scheme.breaks)))
