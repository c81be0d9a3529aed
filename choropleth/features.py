"""
Feature records and stable tract identifiers.

A feature is an opaque geometry payload plus a mapping of attribute name to raw
value. The core never inspects the geometry; it only probes attributes.

Usage:
    from choropleth.features import load_tract_features, get_tract_id

    features = load_tract_features("data/geospatial/mapdata.geojson")
    tract_id = get_tract_id(features[0].properties)
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import geopandas as gpd
import numpy as np
import pandas as pd
from loguru import logger

UNKNOWN_TRACT = "Unknown tract"

DEFAULT_ID_CANDIDATES: List[str] = ["tract", "TRACT", "TRACTCE", "NAME", "GEOID", "geoid"]

Properties = Mapping[str, Any]


@dataclass(frozen=True)
class FeatureRecord:
    """A single tract: attribute mapping plus untouched geometry."""

    properties: Dict[str, Any] = field(default_factory=dict)
    geometry: Any = None

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)


def _key(value: Any) -> str:
    """Render an attribute value as a trimmed identifier string ('' if absent)."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def get_tract_id(
    properties: Optional[Properties], candidates: Sequence[str] = DEFAULT_ID_CANDIDATES
) -> str:
    """
    Derive the stable identifier for a feature.

    Candidates are probed in order and the first present, non-empty, trimmed
    value wins. Falls back to ``"Unknown tract"``.

    Args:
        properties: Feature attribute mapping (may be None)
        candidates: Priority-ordered attribute names

    Returns:
        Identifier string
    """
    if not properties:
        return UNKNOWN_TRACT
    for name in candidates:
        key = _key(properties.get(name))
        if key:
            return key
    return UNKNOWN_TRACT


def features_from_geojson(collection: Mapping[str, Any]) -> List[FeatureRecord]:
    """Build feature records from a GeoJSON FeatureCollection mapping."""
    records = []
    for feature in collection.get("features") or []:
        properties = dict(feature.get("properties") or {})
        records.append(FeatureRecord(properties=properties, geometry=feature.get("geometry")))
    return records


def json_value(value: Any) -> Any:
    """Plain-Python form of an attribute value; NaN, inf and pandas NA become None."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value is pd.NA or value is pd.NaT:
        return None
    return value


def features_from_geodataframe(gdf: gpd.GeoDataFrame) -> List[FeatureRecord]:
    """Build feature records from a GeoDataFrame, keeping shapely geometries as-is."""
    geometry_col = gdf.geometry.name
    attribute_cols = [col for col in gdf.columns if col != geometry_col]

    records = []
    for row in gdf.to_dict("records"):
        properties = {}
        for col in attribute_cols:
            properties[col] = json_value(row.get(col))
        records.append(FeatureRecord(properties=properties, geometry=row.get(geometry_col)))
    return records


def load_tract_features(path: Union[str, Path]) -> List[FeatureRecord]:
    """
    Load a tract dataset from disk with geopandas.

    Args:
        path: Path to any vector file geopandas can read (GeoJSON, GPKG, ...)

    Returns:
        List of feature records in file order

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Tract dataset not found: {path}")

    logger.info(f"📂 Loading tract features from {path}")
    gdf = gpd.read_file(path)
    logger.info(f"  ✓ Loaded {len(gdf):,} features")
    if gdf.crs:
        logger.debug(f"    CRS: {gdf.crs}")
    logger.debug(f"    Columns: {list(gdf.columns)[:10]}{'...' if len(gdf.columns) > 10 else ''}")

    return features_from_geodataframe(gdf)
