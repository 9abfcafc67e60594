#!/usr/bin/env python3
"""
Tests for complaint classification and sheet loading.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from noise_map.data.complaints import (
    HIGH,
    LOW,
    MEDIUM,
    build_complaint_point,
    build_complaint_points,
    classify,
    coerce_complaints
)
from noise_map.data.sheet_loader import load_all_sheets, parse_sheet


@pytest.mark.parametrize('count, expected', [
    (0, LOW),
    (1, LOW),
    (2, MEDIUM),
    (6, MEDIUM),
    (7, HIGH),
    (25, HIGH),
    (1.5, MEDIUM),
    ('7', HIGH),
    (-5, LOW),
    (None, LOW),
    ('n/a', LOW),
    ('', LOW),
])
def test_classify_boundaries(count, expected):
    """Low <= 1, Medium 2-6, High >= 7; anything unparseable counts as 0."""
    assert classify(count) == expected


def test_coerce_complaints():
    assert coerce_complaints('3') == 3
    assert isinstance(coerce_complaints('3'), int)
    assert coerce_complaints('2.5') == 2.5
    assert coerce_complaints(-4) == 0
    assert coerce_complaints(float('inf')) == 0


def test_rows_without_northing_are_dropped():
    """10 rows, 3 missing northing -> 7 points."""
    rows = []
    for idx in range(10):
        rows.append({
            'Location': f'Site {idx}',
            'Easting': str(680000 + idx * 100),
            'Northing': '' if idx in (2, 5, 8) else str(1160000 + idx * 100),
            'Number of Complaints': str(idx),
        })
    points = build_complaint_points(rows)
    assert len(points) == 7
    assert [point.location for point in points][:2] == ['Site 0', 'Site 1']


def test_location_and_count_aliases():
    """Blank location aliases are skipped; alternate count columns are honored."""
    point = build_complaint_point({
        'Location': '  ',
        'Site': 'Market',
        'Easting': '680000',
        'Northing': '1160000',
        'Complaints': '9',
    })
    assert point.location == 'Market'
    assert point.complaints == 9
    assert point.category == HIGH


def test_non_numeric_position_is_rejected():
    assert build_complaint_point({'Easting': 'abc', 'Northing': '1160000'}) is None
    assert build_complaint_point({'Easting': '680000'}) is None


@pytest.mark.parametrize('easting, northing', [
    ('680000', '1e9'),
    ('680000', '-5000'),
    ('5000000', '1160000'),
    ('50000', '1160000'),
])
def test_position_outside_utm_zone_is_rejected(easting, northing):
    """Impossible eastings/northings are dropped rather than wrapped onto the map."""
    assert build_complaint_point({'Easting': easting, 'Northing': northing}) is None


def test_heat_weight_has_floor_of_one():
    point = build_complaint_point({'Easting': '680000', 'Northing': '1160000'})
    assert point.complaints == 0
    assert point.heat_weight == 1


def test_parse_sheet_keeps_positioned_rows():
    text = (
        "Location,Easting,Northing,Number of Complaints\n"
        "A,680000,1160000,3\n"
        "B,,1160000,2\n"
        "C,690000,1170000,\n"
    )
    rows = parse_sheet(text)
    assert [row['Location'] for row in rows] == ['A', 'C']
    assert rows[0]['Easting'] == '680000'


def test_load_all_sheets_merges_in_order():
    sheets = {
        'sheet-a': "Location,Easting,Northing\nA,680000,1160000\n",
        'sheet-b': "Location,Easting,Northing\nB,690000,1170000\n",
    }
    rows = load_all_sheets(['sheet-a', 'sheet-b'], fetch=sheets.__getitem__)
    assert [row['Location'] for row in rows] == ['A', 'B']


def test_load_all_sheets_fails_as_a_whole():
    """One failing sheet fails the whole load."""
    def fetch(url):
        if url == 'sheet-b':
            raise ConnectionError("sheet unavailable")
        return "Location,Easting,Northing\nA,680000,1160000\n"

    with pytest.raises(ConnectionError):
        load_all_sheets(['sheet-a', 'sheet-b'], fetch=fetch)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
