"""
Builders that turn complaint points, overlays and uploaded features into
folium layers.
"""

import html
import logging
from typing import Any, Dict, List, Optional

import folium
from folium.plugins import HeatMap

from .colors import hue_color_map
from .legend import LegendGroup, LegendItem
from ..config.map_config import MapConfig
from ..config.overlay_catalog import OverlayConfig, OverlayType
from ..data.complaints import CATEGORIES, CATEGORY_LABELS, ComplaintPoint
from ..data.field_inference import guess_label_field
from ..geometry.bounds import Bounds, feature_intersects_bounds

logger = logging.getLogger(__name__)

CATEGORIES_MODE = 'categories'
HEATMAP_MODE = 'heatmap'

MARKER_SHAPES = {
    # shape: (number_of_sides, rotation); None -> circle marker
    'circle': None,
    'square': (4, 45),
    'diamond': (4, 0),
    'triangle': (3, 0),
}
DASH_STYLES = {
    'solid': None,
    'dashed': '8 6',
    'dotted': '2 6',
}


def polygon_stroke_width(zoom: float) -> int:
    if zoom >= 15:
        return 3
    if zoom >= 12:
        return 2
    return 1


def road_line_width(zoom: float) -> float:
    if zoom >= 17:
        return 4
    if zoom >= 15:
        return 3
    if zoom >= 13:
        return 2
    return 1.5


def clean_features(data: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Features of a GeoJSON document with geometry present and properties as dicts."""
    features = []
    for feature in (data or {}).get('features') or []:
        if not isinstance(feature, dict) or not feature.get('geometry'):
            continue
        properties = feature.get('properties')
        features.append({
            'type': 'Feature',
            'geometry': feature['geometry'],
            'properties': properties if isinstance(properties, dict) else {},
        })
    return features


def _has_field(features: List[Dict[str, Any]], field_name: Optional[str]) -> bool:
    # GeoJsonTooltip validates its fields against the first feature only
    return bool(field_name) and bool(features) and field_name in features[0]['properties']


def properties_popup(properties: Dict[str, Any], title: Optional[str] = None) -> folium.Popup:
    """Popup listing a feature's properties."""
    rows = ''.join(
        f"<b>{html.escape(str(key))}:</b> {html.escape(str(value))}<br>"
        for key, value in properties.items()
    )
    heading = f"<strong>{html.escape(title)}</strong><br>" if title else ''
    return folium.Popup(f"<div style=\"max-width: 260px;\">{heading}{rows}</div>", max_width=300)


# --- Complaint layer -------------------------------------------------------

def build_complaint_markers(points: List[ComplaintPoint], config: MapConfig,
                            labels_on: bool = False) -> folium.FeatureGroup:
    """One circle marker per complaint point, filled by category."""
    group = folium.FeatureGroup(name='Complaint Points')

    for point in points:
        popup_html = f"""
        <strong>{html.escape(point.location or 'Location')}</strong><br/>
        Complaints: {point.complaints}
        """
        tooltip = None
        if labels_on and point.location:
            tooltip = folium.Tooltip(
                point.location,
                permanent=True,
                direction='top',
                class_name='sheet-point-label'
            )

        folium.CircleMarker(
            location=[point.lat, point.lng],
            radius=config.complaint_marker_radius,
            color=config.complaint_border_color,
            weight=1,
            fill=True,
            fill_color=config.complaint_colors.get(point.category, config.complaint_default_color),
            fill_opacity=0.9,
            popup=folium.Popup(popup_html.strip(), max_width=250),
            tooltip=tooltip
        ).add_to(group)

    return group


def build_complaint_heatmap(points: List[ComplaintPoint], config: MapConfig) -> HeatMap:
    """Heat layer weighted by max(complaints, 1)."""
    heat_data = [[point.lat, point.lng, point.heat_weight] for point in points]
    return HeatMap(
        heat_data,
        name='Complaints (Heatmap)',
        radius=config.heatmap_radius,
        blur=config.heatmap_blur,
        max_zoom=config.heatmap_max_zoom
    )


def complaint_category_legend(config: MapConfig) -> LegendGroup:
    return LegendGroup(
        title='Complaint Points',
        items=tuple(
            LegendItem(CATEGORY_LABELS[category], config.complaint_colors[category])
            for category in CATEGORIES
        )
    )


def complaint_heatmap_legend(config: MapConfig) -> LegendGroup:
    return LegendGroup(
        title='Complaints (Heatmap)',
        items=(LegendItem('Low → High intensity', config.heatmap_legend_color),)
    )


# --- Overlays --------------------------------------------------------------

class OverlayLayer:
    """
    A polygon/point overlay from the catalog.

    The color map is built once per instance from the label field values.
    """

    def __init__(self, overlay: OverlayConfig, data: Dict[str, Any], config: MapConfig):
        self.overlay = overlay
        self.config = config
        self.features = clean_features(data)
        self.label_field = self._resolve_label_field()
        self.opacity = config.overlay_default_opacity
        self.visible = False

        if self.label_field:
            values = [feature['properties'].get(self.label_field) for feature in self.features]
        else:
            values = [overlay.name]
        self.color_map = hue_color_map(values or [overlay.name])

    def _resolve_label_field(self) -> Optional[str]:
        if self.overlay.label_field:
            return self.overlay.label_field
        if self.overlay.type == OverlayType.MUNICIPALITY.value:
            return 'NAME_1'
        if self.overlay.type == OverlayType.ZONE.value:
            return 'zone'
        return guess_label_field(self.features)

    @property
    def label_class(self) -> str:
        if self.overlay.type == OverlayType.MUNICIPALITY.value:
            return 'municipality-label'
        if self.overlay.type == OverlayType.ZONE.value:
            return 'zone-label'
        return 'protected-label'

    def fill_color(self, properties: Dict[str, Any]) -> str:
        key = properties.get(self.label_field) if self.label_field else self.overlay.name
        first_color = next(iter(self.color_map.values()), self.config.complaint_default_color)
        if key is None:
            return first_color
        return self.color_map.get(str(key), first_color)

    def legend_group(self) -> Optional[LegendGroup]:
        if self.label_field:
            items = tuple(LegendItem(value, color) for value, color in self.color_map.items() if value)
        else:
            first_color = next(iter(self.color_map.values()), self.config.complaint_default_color)
            items = (LegendItem(self.overlay.name, first_color),)
        if not items:
            return None
        return LegendGroup(title=self.overlay.name, items=items)

    def to_folium(self, zoom: float) -> folium.GeoJson:
        weight = polygon_stroke_width(zoom)
        opacity = self.opacity

        def style_function(feature):
            return {
                'color': self.config.overlay_stroke_color,
                'weight': weight,
                'fillColor': self.fill_color(feature.get('properties') or {}),
                'fillOpacity': opacity,
            }

        tooltip = None
        if _has_field(self.features, self.label_field):
            tooltip = folium.GeoJsonTooltip(fields=[self.label_field], labels=False)
        elif not self.label_field:
            tooltip = folium.Tooltip(self.overlay.name)

        return folium.GeoJson(
            {'type': 'FeatureCollection', 'features': self.features},
            name=self.overlay.name,
            style_function=style_function,
            tooltip=tooltip
        )


class RoadsLayer:
    """Major roads, drawn only when zoomed in far enough and only inside the view."""

    def __init__(self, data: Dict[str, Any], config: MapConfig):
        self.features = clean_features(data)
        self.config = config

    @staticmethod
    def road_name(properties: Dict[str, Any]) -> Optional[str]:
        return properties.get('name') or properties.get('NAME') or properties.get('Name')

    def shows_lines(self, zoom: float) -> bool:
        return zoom >= self.config.roads_min_zoom

    def shows_labels(self, zoom: float) -> bool:
        return zoom >= self.config.road_labels_min_zoom

    def features_in_view(self, bounds: Bounds, zoom: float) -> List[Dict[str, Any]]:
        if not self.shows_lines(zoom):
            return []
        return [feature for feature in self.features if feature_intersects_bounds(feature, bounds)]

    def to_folium(self, bounds: Optional[Bounds] = None, zoom: float = 16) -> Optional[folium.GeoJson]:
        """GeoJSON layer of the roads in view, or None when nothing is drawn."""
        features = self.features if bounds is None else self.features_in_view(bounds, zoom)
        if not features:
            return None
        weight = road_line_width(zoom)
        style = {
            'color': self.config.road_color,
            'weight': weight,
            'opacity': self.config.road_opacity,
        }

        tooltip = None
        if _has_field(features, 'name'):
            tooltip = folium.GeoJsonTooltip(fields=['name'], labels=False)

        return folium.GeoJson(
            {'type': 'FeatureCollection', 'features': features},
            name='Major Roads',
            style_function=lambda feature: style,
            tooltip=tooltip
        )


def roads_legend() -> LegendGroup:
    return LegendGroup(title='Major Roads', items=(LegendItem('Major Roads', '#e5e7eb'),))


# --- Uploaded layers -------------------------------------------------------

def _point_positions(geometry: Dict[str, Any]) -> List[List[float]]:
    if geometry.get('type') == 'Point':
        return [geometry['coordinates']]
    if geometry.get('type') == 'MultiPoint':
        return list(geometry['coordinates'])
    if geometry.get('type') == 'GeometryCollection':
        return [position for member in geometry.get('geometries') or []
                for position in _point_positions(member)]
    return []


def has_point_positions(features: List[Dict[str, Any]]) -> bool:
    return any(_point_positions(feature['geometry']) for feature in features)


def build_point_layer(name: str, features: List[Dict[str, Any]], color_map: Dict[str, str],
                      style_field: Optional[str], label_field: Optional[str],
                      marker_shape: str = 'circle', default_color: str = '#3388ff') -> folium.FeatureGroup:
    """Markers for uploaded point features, using the chosen glyph."""
    if marker_shape not in MARKER_SHAPES:
        raise ValueError(f"Unknown marker shape: {marker_shape}")
    polygon_spec = MARKER_SHAPES[marker_shape]
    group = folium.FeatureGroup(name=name)

    for feature in features:
        properties = feature['properties']
        color = _category_color(properties, style_field, color_map, default_color)
        label = properties.get(label_field) if label_field else None
        title = str(label) if label not in (None, '') else None

        for lng, lat, *_ in _point_positions(feature['geometry']):
            options = dict(
                location=[lat, lng],
                color='#374151',
                weight=1,
                fill=True,
                fill_color=color,
                fill_opacity=0.9,
                popup=properties_popup(properties, title),
                tooltip=title
            )
            if polygon_spec is None:
                folium.CircleMarker(radius=6, **options).add_to(group)
            else:
                sides, rotation = polygon_spec
                folium.RegularPolygonMarker(
                    number_of_sides=sides, rotation=rotation, radius=8, **options
                ).add_to(group)

    return group


def build_shape_layer(name: str, features: List[Dict[str, Any]], color_map: Dict[str, str],
                      style_field: Optional[str], label_field: Optional[str],
                      geometry_type: str, line_width: float = 2, dash_style: str = 'solid',
                      default_color: str = '#3388ff') -> folium.GeoJson:
    """GeoJSON layer for uploaded lines or polygons."""
    if dash_style not in DASH_STYLES:
        raise ValueError(f"Unknown dash style: {dash_style}")
    dash_array = DASH_STYLES[dash_style]
    is_polygon = geometry_type == 'polygon'

    def style_function(feature):
        color = _category_color(feature.get('properties') or {}, style_field, color_map, default_color)
        style = {
            'color': '#374151' if is_polygon else color,
            'weight': line_width,
            'dashArray': dash_array,
        }
        if is_polygon:
            style.update({'fillColor': color, 'fillOpacity': 0.5})
        return style

    tooltip = None
    if _has_field(features, label_field):
        tooltip = folium.GeoJsonTooltip(fields=[label_field], labels=False)

    return folium.GeoJson(
        {'type': 'FeatureCollection', 'features': features},
        name=name,
        style_function=style_function,
        tooltip=tooltip
    )


def _category_color(properties: Dict[str, Any], style_field: Optional[str],
                    color_map: Dict[str, str], default_color: str) -> str:
    if not style_field:
        return default_color
    value = properties.get(style_field)
    if value is None:
        return default_color
    return color_map.get(str(value), default_color)
