"""
Colour mapping for classified bins.

Each bin is painted with one flat colour from an ordered ramp (light -> dark).
There is no interpolation between colours. The ramp must have exactly one
more entry than the break set; this is checked once when the scheme is built.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from .classifier import bin_index, validate_breaks
from .errors import SetupConfigurationError

DEFAULT_COLOR_RAMP: List[str] = ["#f1eef6", "#bdc9e1", "#74a9cf", "#2b8cbe", "#045a8d"]


def validate_color_ramp(ramp: Sequence[str], bin_count: int) -> List[str]:
    """
    Check a ramp against the number of bins it must cover.

    Raises:
        SetupConfigurationError: On a length mismatch or blank colour entries
    """
    colors = list(ramp)
    if len(colors) != bin_count:
        raise SetupConfigurationError(
            f"Colour ramp has {len(colors)} colours but the breaks define {bin_count} bins"
        )
    for i, color in enumerate(colors):
        if not isinstance(color, str) or not color.strip():
            raise SetupConfigurationError(f"Colour {i} in ramp is empty or not a string: {color!r}")
    return [c.strip() for c in colors]


def color_for(index: int, ramp: Sequence[str]) -> str:
    """Look up the colour for a bin index."""
    if not 0 <= index < len(ramp):
        raise IndexError(f"Bin index {index} outside ramp of {len(ramp)} colours")
    return ramp[index]


@dataclass(frozen=True)
class ColorScheme:
    """Validated pairing of breaks and bin colours."""

    breaks: Tuple[float, ...]
    colors: Tuple[str, ...]

    @property
    def bin_count(self) -> int:
        return len(self.colors)

    def bin_for(self, value: Optional[float]) -> int:
        return bin_index(value, self.breaks)

    def color_for_value(self, value: Optional[float]) -> str:
        return color_for(self.bin_for(value), self.colors)


def build_color_scheme(breaks: Sequence[float], ramp: Sequence[str]) -> ColorScheme:
    """
    Validate breaks and ramp together and freeze them into a scheme.

    Raises:
        SetupConfigurationError: If the breaks are malformed or the ramp length
            does not equal ``len(breaks) + 1``
    """
    checked_breaks = validate_breaks(breaks)
    colors = validate_color_ramp(ramp, len(checked_breaks) + 1)
    return ColorScheme(breaks=tuple(checked_breaks), colors=tuple(colors))


def case_expression(scheme: ColorScheme, field: str, is_fraction: bool) -> Any:
    """
    Build a Mapbox GL ``case`` paint expression for a scheme.

    Each bin is tested with ``<=`` against its upper break, so a value that
    sits exactly on a break gets the same colour as ``bin_index`` gives it.
    Missing or non-numeric attributes read as 0; fractional datasets are
    scaled by 100 so the comparison happens on the same scale as the breaks.
    A single-bin scheme paints one flat colour.
    """
    if not scheme.breaks:
        return scheme.colors[0]

    value_expr: List[Any] = ["to-number", ["get", field], 0]
    if is_fraction:
        value_expr = ["*", value_expr, 100]

    expression: List[Any] = ["case"]
    for threshold, color in zip(scheme.breaks, scheme.colors):
        expression.extend([["<=", value_expr, threshold], color])
    expression.append(scheme.colors[-1])
    return expression
