"""
Classification settings.

Settings are validated as a whole when they are built, so a bad ramp, bad
breaks or a missing field name stops setup before any tract is coloured.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from loguru import logger

from .classifier import QUANTILE_PROBS, ClassificationPolicy, validate_breaks
from .colors import DEFAULT_COLOR_RAMP, validate_color_ramp
from .errors import SetupConfigurationError
from .features import DEFAULT_ID_CANDIDATES
from .normalizer import FRACTION_MAX


@dataclass(frozen=True)
class FieldNames:
    """Attribute names read from each tract."""

    primary: str = "pct_foreign_born"
    naturalized: str = "pct_foreign_born_naturalized"
    not_naturalized: str = "pct_foreign_born_not_naturalized"
    count: str = "foreign_born"

    def validate(self) -> None:
        for name in ("primary", "naturalized", "not_naturalized", "count"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise SetupConfigurationError(f"Missing required field name: {name}")


@dataclass(frozen=True)
class ClassificationSettings:
    policy: ClassificationPolicy = ClassificationPolicy.FIXED
    fixed_breaks: Tuple[float, ...] = (10.0, 20.0, 30.0, 40.0)
    color_ramp: Tuple[str, ...] = tuple(DEFAULT_COLOR_RAMP)
    fields: FieldNames = field(default_factory=FieldNames)
    id_candidates: Tuple[str, ...] = tuple(DEFAULT_ID_CANDIDATES)
    fraction_threshold: float = FRACTION_MAX

    def __post_init__(self) -> None:
        # accept the plain "quantile" / "fixed" strings used in config files
        object.__setattr__(self, "policy", ClassificationPolicy.parse(self.policy))
        for name in ("fixed_breaks", "color_ramp", "id_candidates"):
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))

    @property
    def bin_count(self) -> int:
        if self.policy is ClassificationPolicy.QUANTILE:
            return len(QUANTILE_PROBS) + 1
        return len(self.fixed_breaks) + 1

    def validate(self) -> "ClassificationSettings":
        """
        Check the settings as a whole.

        Raises:
            SetupConfigurationError: On any invalid setting
        """
        self.fields.validate()
        if not self.id_candidates or not all(
            isinstance(c, str) and c.strip() for c in self.id_candidates
        ):
            raise SetupConfigurationError("id_candidates must be a non-empty list of field names")
        if self.policy is ClassificationPolicy.FIXED:
            validate_breaks(self.fixed_breaks)
        validate_color_ramp(self.color_ramp, self.bin_count)
        return self

    @classmethod
    def from_mapping(
        cls,
        classification: Optional[Mapping[str, Any]] = None,
        columns: Optional[Mapping[str, Any]] = None,
    ) -> "ClassificationSettings":
        """
        Build settings from the ``classification`` and ``columns`` config sections.

        Keys left out of either mapping keep their defaults.
        """
        classification = dict(classification or {})
        columns = dict(columns or {})
        defaults = cls()

        fixed_breaks = classification.get("fixed_breaks", defaults.fixed_breaks)
        if fixed_breaks is None:
            fixed_breaks = ()
        color_ramp = classification.get("color_ramp", defaults.color_ramp)
        id_candidates = columns.get("id_candidates", defaults.id_candidates)
        if isinstance(id_candidates, str):
            id_candidates = [id_candidates]

        fields = FieldNames(
            primary=columns.get("primary", defaults.fields.primary),
            naturalized=columns.get("naturalized", defaults.fields.naturalized),
            not_naturalized=columns.get("not_naturalized", defaults.fields.not_naturalized),
            count=columns.get("count", defaults.fields.count),
        )

        try:
            fraction_threshold = float(
                classification.get("fraction_threshold", defaults.fraction_threshold)
            )
        except (TypeError, ValueError):
            raise SetupConfigurationError(
                f"fraction_threshold is not a number: {classification.get('fraction_threshold')!r}"
            ) from None

        settings = cls(
            policy=ClassificationPolicy.parse(classification.get("policy", defaults.policy)),
            fixed_breaks=tuple(validate_breaks(fixed_breaks)),
            color_ramp=tuple(color_ramp or ()),
            fields=fields,
            id_candidates=tuple(id_candidates or ()),
            fraction_threshold=fraction_threshold,
        )
        settings.validate()
        logger.debug(
            f"  ⚙️ Classification: policy={settings.policy.value}, "
            f"{settings.bin_count} bins, primary field '{fields.primary}'"
        )
        return settings
