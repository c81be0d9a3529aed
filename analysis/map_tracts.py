#!/usr/bin/env python3
"""
Tract Choropleth Map (folium)

Renders a classified tract dataset as a standalone interactive HTML map:
- Fill colour per tract from the classification scheme
- White tract outlines with a thicker outline on hover
- Tooltip with the tract id and headline figure
- Click popup with the full info card
- Fixed legend box with one swatch per bin

The map is a consumer of the choropleth core: all values, colours and labels
come from a TractChoropleth; nothing is reclassified here.
"""

import html
from pathlib import Path
from typing import Any, Dict, List, Optional

import folium
from loguru import logger

from choropleth.pipeline import TractChoropleth
from choropleth.presenter import DisplayRecord
from ops import Config

TOOLTIP_FIELDS = ["tract_label", "headline"]
POPUP_FIELDS = ["info_html"]


def build_info_html(record: DisplayRecord) -> str:
    """Info card markup for one tract."""
    return f"""
    <div class="info-title-row">
      <div class="event"><strong>{html.escape(record.identifier)}</strong></div>
      <div class="when">{html.escape(record.headline)}</div>
    </div>
    <div class="info-desc">
      Naturalized: {html.escape(record.naturalized_pct)}<br/>
      Not naturalized: {html.escape(record.not_naturalized_pct)}
    </div>
    """


def build_legend_html(choropleth: TractChoropleth, title: str) -> str:
    """Fixed legend box, one row per bin from low to high."""
    rows = []
    for color, label in choropleth.legend():
        rows.append(
            f"""
          <div style="display:flex;align-items:center;gap:8px;margin:4px 0;">
            <div style="width:18px;height:12px;border-radius:2px;background:{color};"></div>
            <span>{html.escape(label)}</span>
          </div>"""
        )

    return f"""
        <div class="tract-legend" style="position: fixed; bottom: 24px; right: 12px; z-index: 9999;
             background: rgba(255,255,255,0.92); padding: 10px 12px; border-radius: 8px;
             box-shadow: 0 1px 6px rgba(0,0,0,0.2); font: 12px/1.2 system-ui, -apple-system, Segoe UI, Roboto, sans-serif;">
          <div style="font-weight:600; margin-bottom:6px;">{html.escape(title)}</div>{"".join(rows)}
        </div>
        """


def build_map_features(choropleth: TractChoropleth, headline_label: str) -> Dict[str, Any]:
    """
    Annotated FeatureCollection with the display fields the map widgets read.

    Features without geometry cannot be drawn and are dropped.
    """
    collection = choropleth.to_geojson()
    drawable: List[Dict[str, Any]] = []

    for feature, source in zip(collection["features"], choropleth.features):
        if feature["geometry"] is None:
            continue
        record = choropleth.present(source, headline_label=headline_label)
        feature["properties"].update(
            {
                "tract_label": record.identifier,
                "headline": record.headline,
                "naturalized_display": record.naturalized_pct,
                "not_naturalized_display": record.not_naturalized_pct,
                "info_html": build_info_html(record),
            }
        )
        drawable.append(feature)

    skipped = len(collection["features"]) - len(drawable)
    if skipped:
        logger.warning(f"⚠️ Skipped {skipped:,} tracts without geometry")

    return {"type": "FeatureCollection", "features": drawable}


def create_tract_map(choropleth: TractChoropleth, config: Config) -> folium.Map:
    """
    Create the interactive folium map.

    Args:
        choropleth: Classified tracts
        config: Configuration instance (visualization section)

    Returns:
        folium.Map ready to save
    """
    logger.info("🗺️ Creating interactive tract map...")

    center = config.get_visualization_setting("center")
    headline_label = config.get_visualization_setting("headline_label")
    fill_opacity = config.get_visualization_setting("fill_opacity")
    line_color = config.get_visualization_setting("line_color")
    line_weight = config.get_visualization_setting("line_weight")
    line_opacity = config.get_visualization_setting("line_opacity")
    highlight_weight = config.get_visualization_setting("highlight_weight")

    logger.debug(f"     Map center: {center[0]:.4f}, {center[1]:.4f}")

    m = folium.Map(
        location=list(center),
        zoom_start=config.get_visualization_setting("zoom_start"),
        tiles=config.get_visualization_setting("tiles"),
        prefer_canvas=True,
    )

    data = build_map_features(choropleth, headline_label)
    logger.debug(
        f"     📊 Drawing {len(data['features']):,} tracts in {choropleth.scheme.bin_count} bins"
    )

    folium.GeoJson(
        data=data,
        name=config.get_visualization_setting("legend_title"),
        style_function=lambda feature: {
            "fillColor": feature["properties"]["__color"],
            "fillOpacity": fill_opacity,
            "color": line_color,
            "weight": line_weight,
            "opacity": line_opacity,
        },
        highlight_function=lambda feature: {
            "color": line_color,
            "weight": highlight_weight,
            "opacity": line_opacity,
        },
        tooltip=folium.GeoJsonTooltip(
            fields=TOOLTIP_FIELDS,
            aliases=["", ""],
            labels=False,
            sticky=False,
        ),
        popup=folium.GeoJsonPopup(
            fields=POPUP_FIELDS,
            labels=False,
        ),
    ).add_to(m)

    legend_html = build_legend_html(choropleth, config.get_visualization_setting("legend_title"))
    m.get_root().html.add_child(folium.Element(legend_html))

    return m


def save_tract_map(
    choropleth: TractChoropleth, config: Config, output_path: Optional[Path] = None
) -> Path:
    """
    Render and write the HTML map.

    Args:
        choropleth: Classified tracts
        config: Configuration instance
        output_path: Target file (defaults to the configured html dir)

    Returns:
        Path of the written file
    """
    output_path = Path(output_path or config.get_tract_map_path())
    m = create_tract_map(choropleth, config)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(output_path))
    logger.success(f"  ✅ Interactive tract map saved: {output_path}")
    return output_path
