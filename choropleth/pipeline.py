"""
One-shot classification setup for a tract dataset.

Runs after the dataset has loaded and before any rendering callback is wired:

1. Detect the dataset scale (fraction vs percentage) from the primary field
2. Normalise every primary value onto the canonical scale
3. Compute breaks for the configured policy
4. Validate breaks and ramp together into a colour scheme
5. Derive legend labels

The result is immutable; selection state lives in a separate controller.

Usage:
    features = load_tract_features(path)
    choropleth = build_choropleth(features, config.get_classification_settings())
    choropleth.color_for(features[0])
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .classifier import compute_breaks
from .colors import ColorScheme, build_color_scheme, case_expression
from .features import UNKNOWN_TRACT, FeatureRecord, get_tract_id, json_value
from .legend import build_labels, legend_entries
from .normalizer import detect_fraction_scale, normalize
from .presenter import DisplayRecord, present
from .selection import SelectionController
from .settings import ClassificationSettings


@dataclass(frozen=True)
class TractChoropleth:
    """Classified tracts plus the scheme and legend used to paint them."""

    features: Tuple[FeatureRecord, ...]
    settings: ClassificationSettings
    is_fraction: bool
    values: Tuple[Optional[float], ...]
    scheme: ColorScheme
    labels: Tuple[str, ...]

    @property
    def breaks(self) -> Tuple[float, ...]:
        return self.scheme.breaks

    @property
    def colors(self) -> Tuple[str, ...]:
        return self.scheme.colors

    def tract_id(self, feature: FeatureRecord) -> str:
        return get_tract_id(feature.properties, self.settings.id_candidates)

    def value_for(self, feature: FeatureRecord) -> Optional[float]:
        return normalize(feature.get(self.settings.fields.primary), self.is_fraction)

    def bin_for(self, feature: FeatureRecord) -> int:
        return self.scheme.bin_for(self.value_for(feature))

    def color_for(self, feature: FeatureRecord) -> str:
        return self.scheme.color_for_value(self.value_for(feature))

    def present(
        self, feature: FeatureRecord, headline_label: str = "foreign born"
    ) -> DisplayRecord:
        return present(
            feature,
            self.is_fraction,
            fields=self.settings.fields,
            id_candidates=self.settings.id_candidates,
            headline_label=headline_label,
        )

    def find(self, tract_id: str) -> List[FeatureRecord]:
        """All features carrying ``tract_id`` (more than one on an id collision)."""
        return [f for f in self.features if self.tract_id(f) == tract_id]

    def legend(self) -> List[Tuple[str, str]]:
        return legend_entries(self.scheme)

    def paint_expression(self) -> Any:
        return case_expression(self.scheme, self.settings.fields.primary, self.is_fraction)

    def new_selection(self) -> SelectionController:
        return SelectionController()

    def highlighted_features(self, selection: SelectionController) -> List[FeatureRecord]:
        """Features the highlight overlay should draw for the current selection state."""
        ids = set(selection.highlighted_ids())
        if not ids:
            return []
        return [f for f in self.features if self.tract_id(f) in ids]

    def to_geojson(self) -> Dict[str, Any]:
        """
        Export an annotated FeatureCollection.

        Each feature gets ``__uid``, ``__value``, ``__bin`` and ``__color``
        properties; source records are left untouched. Non-finite numbers are
        written as null so the result is strict JSON.
        """
        out_features = []
        for feature, value in zip(self.features, self.values):
            properties = {key: json_value(raw) for key, raw in feature.properties.items()}
            index = self.scheme.bin_for(value)
            properties.update(
                {
                    "__uid": self.tract_id(feature),
                    "__value": value,
                    "__bin": index,
                    "__color": self.scheme.colors[index],
                }
            )
            geometry = feature.geometry
            if hasattr(geometry, "__geo_interface__"):
                geometry = geometry.__geo_interface__
            out_features.append({"type": "Feature", "properties": properties, "geometry": geometry})

        return {"type": "FeatureCollection", "features": out_features}

    def log_summary(self) -> None:
        logger.info(f"  📏 Scale: {'fraction (x100)' if self.is_fraction else 'percentage'}")
        logger.info(f"  📊 Breaks ({self.settings.policy.value}): {list(self.breaks)}")
        for color, label in self.legend():
            logger.info(f"     {color}  {label}")


def build_choropleth(
    features: Sequence[FeatureRecord], settings: Optional[ClassificationSettings] = None
) -> TractChoropleth:
    """
    Classify a loaded dataset.

    Args:
        features: Tract feature records in dataset order
        settings: Classification settings (defaults if None)

    Returns:
        Immutable TractChoropleth

    Raises:
        SetupConfigurationError: If the settings cannot produce a valid scheme
    """
    settings = (settings or ClassificationSettings()).validate()
    features = tuple(features)
    primary = settings.fields.primary

    logger.info(f"🎨 Classifying {len(features):,} tracts on '{primary}'")

    is_fraction = detect_fraction_scale(
        (f.get(primary) for f in features), threshold=settings.fraction_threshold
    )
    values = tuple(normalize(f.get(primary), is_fraction) for f in features)

    missing = sum(1 for v in values if v is None)
    if missing:
        logger.warning(
            f"⚠️ {missing:,} tracts have no usable '{primary}' value (painted as bin 0)"
        )
    unknown = sum(
        1 for f in features if get_tract_id(f.properties, settings.id_candidates) == UNKNOWN_TRACT
    )
    if unknown:
        logger.warning(f"⚠️ {unknown:,} tracts have no identifier field ('{UNKNOWN_TRACT}')")

    breaks = compute_breaks(values, settings.policy, settings.fixed_breaks)
    scheme = build_color_scheme(breaks, settings.color_ramp)
    labels = tuple(build_labels(scheme.breaks))

    choropleth = TractChoropleth(
        features=features,
        settings=settings,
        is_fraction=is_fraction,
        values=values,
        scheme=scheme,
        labels=labels,
    )
    logger.success(f"✅ Classified into {scheme.bin_count} bins")
    return choropleth
