#!/usr/bin/env python3
"""
End-to-end tests for the map session: complaint layer, overlays, roads,
uploaded layers and the legend kept in step with them.
"""

import sys
from dataclasses import replace
from pathlib import Path

import folium
import pytest
from folium.plugins import HeatMap

sys.path.insert(0, str(Path(__file__).parent))

from noise_map.config import MapConfig, get_overlay_config
from noise_map.data.complaints import HIGH, LOW, build_complaint_points
from noise_map.geometry.bounds import Bounds
from noise_map.map_session import (
    COMPLAINTS_KEY,
    COMPLAINT_HEAT_LAYER,
    COMPLAINT_MARKERS_LAYER,
    ROADS_KEY,
    MapSession
)
from noise_map.uploads.pipeline import UploadConfig, UploadPipeline

SHEET_CSV = (
    "Location,Easting,Northing,Number of Complaints\n"
    "Port of Spain,680000,1160000,8\n"
    "Arima,690000,1170000,1\n"
)

MUNICIPALITIES = {
    'type': 'FeatureCollection',
    'features': [
        {'type': 'Feature', 'properties': {'NAME_1': name},
         'geometry': {'type': 'Polygon', 'coordinates': [[
             [lng, 10.5], [lng + 0.1, 10.5], [lng + 0.1, 10.6], [lng, 10.5]
         ]]}}
        for name, lng in [('Port of Spain', -61.55), ('Arima', -61.3)]
    ]
}

ROADS = {
    'type': 'FeatureCollection',
    'features': [
        {'type': 'Feature', 'properties': {'name': 'Churchill Roosevelt Highway'},
         'geometry': {'type': 'LineString', 'coordinates': [[-61.45, 10.63], [-61.30, 10.63]]}},
        {'type': 'Feature', 'properties': {'name': 'Claude Noel Highway'},
         'geometry': {'type': 'LineString', 'coordinates': [[-60.75, 11.18], [-60.70, 11.20]]}},
    ]
}


def _session(**overrides):
    config = MapConfig.create_offline_config()
    config = replace(config, **overrides)
    return MapSession(config)


@pytest.fixture
def session():
    session = _session(sheet_urls=['sheet-a'])
    assert session.load_complaints(fetch=lambda url: SHEET_CSV)
    return session


def test_complaints_end_to_end(session):
    """Two sheet rows become classified markers with a category legend."""
    categories = {point.location: point.category for point in session.complaint_points}
    assert categories == {'Port of Spain': HIGH, 'Arima': LOW}

    # Loaded but hidden until toggled on
    assert not session.surface.has(COMPLAINT_MARKERS_LAYER)
    assert session.legend.get(COMPLAINTS_KEY) is None

    session.set_complaints_visible(True)
    assert session.surface.count_descendants(folium.CircleMarker) == 2
    group = session.legend.get(COMPLAINTS_KEY)
    assert group.title == 'Complaint Points'
    assert [item.label for item in group.items] == [
        'Low (0–1 complaints)', 'Medium (2–6 complaints)', 'High (7+ complaints)'
    ]


def test_heatmap_replaces_markers(session):
    """Heatmap mode draws exactly one weighted heat layer and no markers."""
    session.set_complaints_visible(True)
    session.set_display_mode('heat')

    assert session.surface.count_descendants(folium.CircleMarker) == 0
    heat_layers = session.surface.layers_of_type(HeatMap)
    assert len(heat_layers) == 1
    assert session.surface.has(COMPLAINT_HEAT_LAYER)
    assert sorted(row[2] for row in heat_layers[0].data) == [1, 8]
    assert session.legend.get(COMPLAINTS_KEY).title == 'Complaints (Heatmap)'

    session.set_display_mode('categories')
    assert session.surface.layers_of_type(HeatMap) == []
    assert session.surface.count_descendants(folium.CircleMarker) == 2


def test_unknown_display_mode(session):
    with pytest.raises(ValueError):
        session.set_display_mode('clusters')


def test_labels_are_permanent_tooltips(session):
    session.set_complaints_visible(True)
    session.set_labels_visible(True)
    tooltips = [
        child
        for marker in session.surface.get(COMPLAINT_MARKERS_LAYER)._children.values()
        for child in marker._children.values()
        if isinstance(child, folium.Tooltip)
    ]
    assert len(tooltips) == 2
    assert all(tooltip.options.get('permanent') for tooltip in tooltips)


def test_hiding_complaints_clears_layer_and_legend(session):
    session.set_complaints_visible(True)
    session.set_complaints_visible(False)
    assert not session.surface.has(COMPLAINT_MARKERS_LAYER)
    assert COMPLAINTS_KEY not in session.legend.keys()


def test_failed_reload_keeps_previous_points(session):
    def failing_fetch(url):
        raise ConnectionError("offline")

    assert session.load_complaints(fetch=failing_fetch) is False
    assert len(session.complaint_points) == 2


def test_stale_complaint_load_is_discarded():
    session = _session()
    older = session.begin_complaint_load()
    newer = session.begin_complaint_load()
    rows = [{'Location': 'Late', 'Easting': '680000', 'Northing': '1160000'}]

    assert session.set_complaint_points(build_complaint_points(rows), older) is False
    assert session.complaint_points == []
    assert session.set_complaint_points(build_complaint_points(rows), newer) is True
    assert len(session.complaint_points) == 1


def _overlay_session():
    overlays = [get_overlay_config(oid) for oid in ('municipality', 'noise_zones', 'major_roads')]
    session = _session(overlays=overlays)
    payloads = {
        overlays[0].url: MUNICIPALITIES,
        overlays[2].url: ROADS,
    }

    def fetch(url):
        if url not in payloads:
            raise ConnectionError("404")
        return payloads[url]

    loaded = session.load_overlays(fetch=fetch)
    assert loaded == 2
    return session


def test_overlay_toggle_and_opacity():
    session = _overlay_session()
    # The failed overlay is simply absent
    assert list(session.overlays) == ['municipality']

    session.set_overlay_visible('municipality', True)
    assert session.surface.has('overlay:municipality')
    group = session.legend.get('municipality')
    assert [item.label for item in group.items] == ['Port of Spain', 'Arima']

    session.set_overlay_opacity('municipality', 0.3)
    assert session.get_overlay('municipality').opacity == 0.3

    session.set_overlay_visible('municipality', False)
    assert not session.surface.has('overlay:municipality')
    assert session.legend.get('municipality') is None


def test_overlay_errors():
    session = _overlay_session()
    with pytest.raises(KeyError):
        session.set_overlay_visible('noise_zones', True)
    with pytest.raises(ValueError):
        session.set_overlay_opacity('municipality', 1.5)


def test_roads_follow_zoom_and_view():
    """Roads draw only at zoom >= 16 and only inside the viewport."""
    session = _overlay_session()
    session.set_roads_visible(True)
    assert session.legend.get(ROADS_KEY) is not None

    # Zoomed out: legend entry but no lines
    assert not session.surface.has(ROADS_KEY)

    port_of_spain = Bounds(south=10.55, west=-61.6, north=10.7, east=-61.2)
    session.set_view(port_of_spain, 16)
    assert session.surface.has(ROADS_KEY)
    names = [feature['properties']['name'] for feature in session.roads_in_view(port_of_spain, 16)]
    assert names == ['Churchill Roosevelt Highway']
    assert session.roads.shows_labels(16) is False
    assert session.roads.shows_labels(18) is True

    assert session.roads_in_view(port_of_spain, 12) == []

    session.toggle_roads()
    assert not session.surface.has(ROADS_KEY)
    assert session.legend.get(ROADS_KEY) is None


def _uploaded_layer(name):
    pipeline = UploadPipeline()
    staged = pipeline.stage(f'{name}.csv', b"name,lat,lon\nSavannah,10.67,-61.51\n")
    return pipeline.apply(staged.token, UploadConfig(name=name))


def test_uploaded_layers_remove_and_clear():
    session = _session()
    first = _uploaded_layer('First')
    second = _uploaded_layer('Second')
    session.add_uploaded_layer(first)
    session.add_uploaded_layer(second)
    assert session.legend.keys() == [first.layer_id, second.layer_id]

    session.remove_uploaded_layer(first.layer_id)
    assert not session.surface.has(first.layer_id)
    assert session.legend.get(first.layer_id) is None

    with pytest.raises(KeyError):
        session.remove_uploaded_layer(first.layer_id)

    assert session.clear_uploaded_layers() == 1
    assert session.uploaded_layers == []
    assert len(session.surface) == 0


def test_inset_picks_island():
    session = _session()
    assert session.inset_view(11.25, -60.7)['island'] == 'TOBAGO'
    trinidad = session.inset_view(10.5, -61.3)
    assert trinidad['island'] == 'TRINIDAD'
    assert trinidad['bounds'] == Bounds.from_corners(session.config.bounds_trinidad)


def test_basemap_toggle_and_page(session):
    assert session.toggle_basemap() == 'imagery'
    assert session.toggle_basemap() == 'streets'

    html = session.render_html()
    assert 'No layers visible' in html

    session.set_complaints_visible(True)
    html = session.render_html()
    assert 'High (7+ complaints)' in html
    assert 'Port of Spain' in html


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
