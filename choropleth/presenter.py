"""
Info card presentation for a single tract.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

from .features import DEFAULT_ID_CANDIDATES, FeatureRecord, get_tract_id
from .legend import ABSENT
from .normalizer import normalize, to_number
from .settings import FieldNames


def fmt_pct(value: Optional[float], digits: int = 1) -> str:
    if value is None:
        return ABSENT
    return f"{value:.{digits}f}%"


def fmt_int(value: Optional[float]) -> str:
    """Thousands-grouped count ("12,345"); up to three decimals are kept if present."""
    if value is None:
        return ABSENT
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


@dataclass(frozen=True)
class DisplayRecord:
    identifier: str
    headline: str
    naturalized_pct: str
    not_naturalized_pct: str
    raw_count: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def present(
    feature: FeatureRecord,
    is_fraction: bool,
    fields: Optional[FieldNames] = None,
    id_candidates: Sequence[str] = DEFAULT_ID_CANDIDATES,
    headline_label: str = "foreign born",
) -> DisplayRecord:
    """
    Format a feature's attributes for the info card.

    Percentages share the dataset-wide ``is_fraction`` flag. The count is
    taken as-is, never rescaled.
    """
    fields = fields or FieldNames()
    props: Dict[str, Any] = feature.properties

    primary = normalize(props.get(fields.primary), is_fraction)
    naturalized = normalize(props.get(fields.naturalized), is_fraction)
    not_naturalized = normalize(props.get(fields.not_naturalized), is_fraction)
    count = fmt_int(to_number(props.get(fields.count)))

    return DisplayRecord(
        identifier=get_tract_id(props, id_candidates),
        headline=f"{fmt_pct(primary)} {headline_label} ({count})",
        naturalized_pct=fmt_pct(naturalized),
        not_naturalized_pct=fmt_pct(not_naturalized),
        raw_count=count,
    )
