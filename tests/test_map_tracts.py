"""Tests for the folium tract map."""

import folium

from analysis.map_tracts import (
    build_info_html,
    build_legend_html,
    build_map_features,
    create_tract_map,
    save_tract_map,
)
from choropleth.features import FeatureRecord
from choropleth.pipeline import build_choropleth
from ops import Config


def _config(tmp_path):
    return Config(
        data={"visualization": {"legend_title": "Foreign born"}}, project_root_override=tmp_path
    )


class TestMapFeatures:
    def test_display_fields_are_added(self, fraction_features):
        choropleth = build_choropleth(fraction_features)
        data = build_map_features(choropleth, "foreign born")

        props = data["features"][4]["properties"]
        assert props["tract_label"] == "0105.00"
        assert props["headline"] == "42.0% foreign born (3,345)"
        assert props["__color"] == "#045a8d"
        assert "0105.00" in props["info_html"]

    def test_features_without_geometry_are_dropped(self, fraction_features):
        features = fraction_features + [FeatureRecord({"tract": "X", "pct_foreign_born": 0.3})]
        data = build_map_features(build_choropleth(features), "foreign born")
        assert len(data["features"]) == 5

    def test_info_html_is_escaped(self):
        feature = FeatureRecord({"tract": "<b>1</b>", "pct_foreign_born": 3})
        record = build_choropleth([feature]).present(feature)
        markup = build_info_html(record)
        assert "&lt;b&gt;1&lt;/b&gt;" in markup
        assert "Not naturalized: —" in markup


class TestCreateMap:
    def test_legend_lists_every_bin(self, fraction_features):
        choropleth = build_choropleth(fraction_features)
        markup = build_legend_html(choropleth, "Foreign born")

        assert "Foreign born" in markup
        for color, label in choropleth.legend():
            assert color in markup
            assert label in markup

    def test_map_renders(self, fraction_features, tmp_path):
        choropleth = build_choropleth(fraction_features)
        m = create_tract_map(choropleth, _config(tmp_path))

        assert isinstance(m, folium.Map)
        rendered = m.get_root().render()
        assert "tract-legend" in rendered
        assert "≤ 10%" in rendered
        assert "0103.00" in rendered

    def test_save_map(self, fraction_features, tmp_path):
        choropleth = build_choropleth(fraction_features)
        path = save_tract_map(choropleth, _config(tmp_path))

        assert path == tmp_path.resolve() / "html" / "tracts_map.html"
        assert path.exists()
        assert "≥ 40%" in path.read_text(encoding="utf-8")

    def test_save_map_explicit_path(self, fraction_features, tmp_path):
        target = tmp_path / "out" / "map.html"
        path = save_tract_map(build_choropleth(fraction_features), _config(tmp_path), target)
        assert path == target
        assert target.exists()
