#!/usr/bin/env python3
"""
Tests for staging and applying user uploads.
"""

import json
import sys
from pathlib import Path

import folium
import pytest

sys.path.insert(0, str(Path(__file__).parent))

from noise_map.config.map_config import UTM_20N, WGS84
from noise_map.data.source_reader import UploadError
from noise_map.uploads.pipeline import (
    StaleUploadError,
    UploadConfig,
    UploadPipeline,
    rows_to_feature_collection
)
from noise_map.visualization.colors import PALETTES
from noise_map.visualization.render_surface import RenderSurface

UTM_CSV = b"Site,Easting,Northing,Type\nQRC,680000,1160000,School\nArima,690000,1170000,Hospital\n"
LATLNG_CSV = (
    b"name,lat,lon\n"
    b"Savannah,10.67,-61.51\n"
    b"Broken,abc,-61.40\n"
    b"Far away,95,-61.40\n"
    b"Chaguaramas,10.68,-61.64\n"
)
ZONES_GEOJSON = json.dumps({
    'type': 'FeatureCollection',
    'features': [
        {'type': 'Feature', 'properties': {'zone': zone},
         'geometry': {'type': 'Polygon', 'coordinates': [[
             [-61.5 + idx * 0.1, 10.5], [-61.45 + idx * 0.1, 10.5],
             [-61.45 + idx * 0.1, 10.55], [-61.5 + idx * 0.1, 10.5]
         ]]}}
        for idx, zone in enumerate(['Residential', 'Industrial', 'Residential'])
    ]
}).encode()


def _markers(element, marker_type):
    surface = RenderSurface()
    surface.add('layer', element)
    return surface.count_descendants(marker_type)


def test_preview_suggests_fields():
    pipeline = UploadPipeline()
    staged = pipeline.stage('sites.csv', UTM_CSV)
    preview = staged.preview()

    assert preview['token'] == 1
    assert preview['kind'] == 'csv'
    assert preview['record_count'] == 2
    assert preview['suggested_x_field'] == 'Easting'
    assert preview['suggested_y_field'] == 'Northing'
    assert preview['suggested_label_field'] == 'Site'


def test_utm_csv_becomes_point_layer():
    pipeline = UploadPipeline()
    staged = pipeline.stage('sites.csv', UTM_CSV)
    layer = pipeline.apply(staged.token, UploadConfig(name='Sites', style_field='Type', crs=UTM_20N))

    assert layer.feature_count == 2
    assert layer.geometry_type == 'point'
    assert layer.layer_id.startswith('upload-')
    assert layer.color_map == {'School': PALETTES['bold'][0], 'Hospital': PALETTES['bold'][1]}
    assert [item.label for item in layer.legend_group.items] == ['School', 'Hospital']
    assert _markers(layer.element, folium.CircleMarker) == 2


def test_invalid_rows_are_dropped():
    """Non-numeric and out-of-range coordinates are skipped; the rest render."""
    pipeline = UploadPipeline()
    staged = pipeline.stage('places.csv', LATLNG_CSV)
    layer = pipeline.apply(staged.token, UploadConfig(name='Places', crs=WGS84))

    assert layer.feature_count == 2
    # No style field: single default-colored legend entry
    assert len(layer.legend_group.items) == 1
    assert layer.legend_group.items[0].label == 'Places'


def test_wrong_crs_yields_no_features():
    pipeline = UploadPipeline()
    staged = pipeline.stage('sites.csv', UTM_CSV)
    with pytest.raises(UploadError) as excinfo:
        pipeline.apply(staged.token, UploadConfig(name='Sites', crs=WGS84))
    assert 'coordinate system' in str(excinfo.value)


def test_utm_rows_outside_zone_are_dropped():
    pipeline = UploadPipeline()
    staged = pipeline.stage('far.csv', b"name,Easting,Northing\nA,680000,1000000000\n")
    with pytest.raises(UploadError):
        pipeline.apply(staged.token, UploadConfig(name='Far', crs=UTM_20N))

    staged = pipeline.stage('mixed.csv', b"name,Easting,Northing\nA,680000,1000000000\nB,680000,1160000\n")
    layer = pipeline.apply(staged.token, UploadConfig(name='Mixed', crs=UTM_20N))
    assert layer.feature_count == 1


def test_geometry_collection_upload_is_drawn():
    """Collections of shapes render as a GeoJSON layer, collections of points as markers."""
    shapes = json.dumps({'type': 'FeatureCollection', 'features': [
        {'type': 'Feature', 'properties': {'name': 'Site'},
         'geometry': {'type': 'GeometryCollection', 'geometries': [
             {'type': 'Polygon', 'coordinates': [[[-61.5, 10.5], [-61.45, 10.5], [-61.45, 10.55], [-61.5, 10.5]]]},
             {'type': 'LineString', 'coordinates': [[-61.5, 10.5], [-61.4, 10.6]]},
         ]}},
    ]}).encode()
    pipeline = UploadPipeline()
    staged = pipeline.stage('site.geojson', shapes)
    assert staged.source.geometry_type == 'polygon'
    layer = pipeline.apply(staged.token, UploadConfig(name='Site'))
    assert isinstance(layer.element, folium.GeoJson)
    assert layer.feature_count == 1

    points = json.dumps({'type': 'FeatureCollection', 'features': [
        {'type': 'Feature', 'properties': {'name': 'Pair'},
         'geometry': {'type': 'GeometryCollection', 'geometries': [
             {'type': 'Point', 'coordinates': [-61.51, 10.67]},
             {'type': 'Point', 'coordinates': [-61.64, 10.68]},
         ]}},
    ]}).encode()
    staged = pipeline.stage('pair.geojson', points)
    assert staged.source.geometry_type == 'point'
    layer = pipeline.apply(staged.token, UploadConfig(name='Pair'))
    assert _markers(layer.element, folium.CircleMarker) == 2


def test_polygon_upload_with_spectrum_palette():
    pipeline = UploadPipeline()
    staged = pipeline.stage('zones.geojson', ZONES_GEOJSON)
    assert staged.source.geometry_type == 'polygon'

    layer = pipeline.apply(staged.token, UploadConfig(
        name='Zones', style_field='zone', palette='spectrum', line_width=3, dash_style='dashed'
    ))
    assert isinstance(layer.element, folium.GeoJson)
    assert layer.color_map == {'Residential': 'hsl(0, 55%, 78%)', 'Industrial': 'hsl(180, 55%, 78%)'}
    assert layer.feature_count == 3


def test_marker_shape_uses_polygon_markers():
    pipeline = UploadPipeline()
    staged = pipeline.stage('sites.csv', UTM_CSV)
    layer = pipeline.apply(staged.token, UploadConfig(name='Sites', crs=UTM_20N, marker_shape='square'))
    assert _markers(layer.element, folium.RegularPolygonMarker) == 2


def test_older_token_is_stale():
    """Applying an upload superseded by a newer one is rejected."""
    pipeline = UploadPipeline()
    first = pipeline.stage('first.csv', UTM_CSV)
    second = pipeline.stage('second.csv', UTM_CSV)

    with pytest.raises(StaleUploadError):
        pipeline.apply(first.token, UploadConfig(name='First', crs=UTM_20N))

    layer = pipeline.apply(second.token, UploadConfig(name='Second', crs=UTM_20N))
    assert layer.name == 'Second'


def test_token_cannot_be_applied_twice():
    pipeline = UploadPipeline()
    staged = pipeline.stage('sites.csv', UTM_CSV)
    pipeline.apply(staged.token, UploadConfig(name='Sites', crs=UTM_20N))
    with pytest.raises(StaleUploadError):
        pipeline.apply(staged.token, UploadConfig(name='Sites', crs=UTM_20N))


def test_failed_upload_still_supersedes():
    pipeline = UploadPipeline()
    staged = pipeline.stage('sites.csv', UTM_CSV)
    with pytest.raises(UploadError):
        pipeline.stage('sites.kml', b'<kml/>')
    with pytest.raises(StaleUploadError):
        pipeline.apply(staged.token, UploadConfig(name='Sites', crs=UTM_20N))


def test_missing_coordinate_columns():
    pipeline = UploadPipeline()
    staged = pipeline.stage('names.csv', b"name,notes\nA,b\n")
    with pytest.raises(UploadError):
        pipeline.apply(staged.token, UploadConfig(name='Names'))


@pytest.mark.parametrize('overrides', [
    {'name': '  '},
    {'palette': 'neon'},
    {'crs': 'epsg:2000'},
    {'marker_shape': 'star'},
    {'dash_style': 'wavy'},
    {'line_width': 0},
])
def test_invalid_config_is_rejected(overrides):
    options = {'name': 'Layer'}
    options.update(overrides)
    with pytest.raises(UploadError):
        UploadConfig(**options).validate()


def test_rows_to_feature_collection_skips_non_numeric():
    rows = [{'x': '1', 'y': '2'}, {'x': '', 'y': '2'}, {'x': 'a', 'y': 'b'}]
    collection = rows_to_feature_collection(rows, 'x', 'y')
    assert len(collection['features']) == 1
    assert collection['features'][0]['geometry']['coordinates'] == [1.0, 2.0]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
