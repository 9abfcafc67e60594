#!/usr/bin/env python3
"""
Tests for label, style, geometry and coordinate field heuristics.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from noise_map.data.field_inference import (
    classify_geometry_type,
    guess_coordinate_fields,
    guess_label_field,
    lookup_alias,
    parse_number,
    propose_style_field
)


def _features(*property_bags):
    return [{'type': 'Feature', 'geometry': None, 'properties': props} for props in property_bags]


def test_label_candidates_are_tried_in_order():
    """'zone' outranks 'name' even when 'name' comes first in the feature."""
    features = _features({'name': 'Port of Spain', 'zone': 'Residential'})
    assert guess_label_field(features) == 'zone'


def test_label_falls_back_to_first_string_property():
    features = _features({'id': 4, 'district': '', 'parish': 'St. George'})
    assert guess_label_field(features) == 'parish'


def test_label_only_looks_at_first_feature():
    """A name present only on later features is not discovered."""
    features = _features({'id': 1}, {'id': 2, 'name': 'Arima'})
    assert guess_label_field(features) is None


def test_label_empty_input():
    assert guess_label_field([]) is None


def test_style_field_defaults_to_label():
    features = _features({'type': 'School', 'name': 'QRC'})
    assert propose_style_field(features, 'name') == 'name'
    assert propose_style_field(features) == 'type'


@pytest.mark.parametrize('types, expected', [
    (['Point'], 'point'),
    (['MultiPoint'], 'point'),
    (['LineString'], 'line'),
    ([None, 'MultiLineString'], 'line'),
    (['MultiPolygon'], 'polygon'),
    (['Point', 'Polygon'], 'point'),
    ([], 'point'),
])
def test_classify_geometry_type(types, expected):
    assert classify_geometry_type(types) == expected


@pytest.mark.parametrize('headers, expected', [
    (['Name', 'Easting', 'Northing'], ('Easting', 'Northing')),
    (['site', 'lon', 'lat'], ('lon', 'lat')),
    (['Longitude', 'Latitude'], ('Longitude', 'Latitude')),
    (['a', 'b'], (None, None)),
])
def test_guess_coordinate_fields(headers, expected):
    assert guess_coordinate_fields(headers) == expected


def test_lookup_alias_skip_blank():
    row = {'Location': '', 'Site': 'Market'}
    assert lookup_alias(row, ['Location', 'Site']) == ''
    assert lookup_alias(row, ['Location', 'Site'], skip_blank=True) == 'Market'
    assert lookup_alias(row, ['Name'], default='?') == '?'


@pytest.mark.parametrize('raw, expected', [
    (' 3.5 ', 3.5),
    ('680000', 680000.0),
    (12, 12.0),
    ('nan', None),
    ('inf', None),
    ('', None),
    ('abc', None),
    (None, None),
    (True, None),
])
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
