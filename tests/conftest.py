"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest
import yaml
from loguru import logger

from choropleth.features import FeatureRecord, features_from_geojson


def _square(x: float, y: float, size: float = 0.01) -> Dict[str, Any]:
    return {
        "type": "Polygon",
        "coordinates": [
            [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]],
        ],
    }


@pytest.fixture
def fraction_collection() -> Dict[str, Any]:
    """Five San Francisco-ish tracts with fraction-encoded shares."""
    rows = [
        ("0101.00", 0.05, 0.03, 0.02, 120),
        ("0102.00", 0.15, 0.10, 0.05, 480),
        ("0103.00", 0.25, 0.12, 0.13, 1250),
        ("0104.00", 0.35, 0.20, 0.15, 2210),
        ("0105.00", 0.42, 0.30, 0.12, 3345),
    ]
    features = []
    for i, (tract, fb, nat, not_nat, count) in enumerate(rows):
        features.append(
            {
                "type": "Feature",
                "properties": {
                    "TRACTCE": tract,
                    "GEOID": f"06075{tract.replace('.', '')}",
                    "pct_foreign_born": fb,
                    "pct_foreign_born_naturalized": nat,
                    "pct_foreign_born_not_naturalized": not_nat,
                    "foreign_born": count,
                },
                "geometry": _square(-122.45 + i * 0.01, 37.75),
            }
        )
    return {"type": "FeatureCollection", "features": features}


@pytest.fixture
def fraction_features(fraction_collection) -> List[FeatureRecord]:
    return features_from_geojson(fraction_collection)


@pytest.fixture
def percentage_features() -> List[FeatureRecord]:
    """Percentage-encoded tracts, including one with no usable value."""
    return [
        FeatureRecord({"tract": "A", "pct_foreign_born": 5, "foreign_born": 10}),
        FeatureRecord({"tract": "B", "pct_foreign_born": "15", "foreign_born": 20}),
        FeatureRecord({"tract": "C", "pct_foreign_born": 25.0, "foreign_born": 30}),
        FeatureRecord({"tract": "D", "pct_foreign_born": 35, "foreign_born": 40}),
        FeatureRecord({"tract": "E", "pct_foreign_born": 45, "foreign_born": 50}),
        FeatureRecord({"tract": "F", "pct_foreign_born": "n/a"}),
    ]


@pytest.fixture
def project_dir(tmp_path, fraction_collection) -> Path:
    """Project tree with config.yaml, a tract GeoJSON and an html dir."""
    geo_dir = tmp_path / "data" / "geospatial"
    geo_dir.mkdir(parents=True)
    with open(geo_dir / "mapdata.geojson", "w") as f:
        json.dump(fraction_collection, f)

    config = {
        "project_name": "Test tracts",
        "description": "Fixture project",
        "input_files": {"tracts_geojson": "data/geospatial/mapdata.geojson"},
        "directories": {"html": "html"},
        "classification": {"policy": "fixed", "fixed_breaks": [10, 20, 30, 40]},
    }
    ops_dir = tmp_path / "ops"
    ops_dir.mkdir()
    with open(ops_dir / "config.yaml", "w") as f:
        yaml.safe_dump(config, f)
    return tmp_path


@pytest.fixture
def config_path(project_dir) -> Path:
    return project_dir / "ops" / "config.yaml"


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI runs replace loguru sinks; put a plain stderr sink back afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")
