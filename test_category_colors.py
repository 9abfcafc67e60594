#!/usr/bin/env python3
"""
Tests for deterministic category colors.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from noise_map.visualization.colors import (
    PALETTES,
    build_category_color_map,
    distinct_values,
    hue_color_map,
    palette_color_map
)


def test_distinct_values_first_occurrence_order():
    """Blanks and None are skipped; numbers become strings."""
    values = ['B', 'A', None, 'B', '', 3, 'C', '  ', 'A']
    assert distinct_values(values) == ['B', 'A', '3', 'C']


def test_palette_wraps_around():
    palette = PALETTES['bold']
    values = [f'v{idx}' for idx in range(len(palette) + 2)]
    colors = palette_color_map(values, palette)
    assert colors['v0'] == palette[0]
    assert colors[f'v{len(palette)}'] == palette[0]
    assert colors[f'v{len(palette) + 1}'] == palette[1]


def test_same_input_same_colors():
    values = ['Residential', 'Industrial', 'Commercial', 'Residential']
    assert build_category_color_map(values, 'pastel') == build_category_color_map(list(values), 'pastel')


def test_hue_spacing():
    """N distinct values get hues idx * 360 / N."""
    colors = hue_color_map(['a', 'b', 'c', 'd'])
    assert colors == {
        'a': 'hsl(0, 55%, 78%)',
        'b': 'hsl(90, 55%, 78%)',
        'c': 'hsl(180, 55%, 78%)',
        'd': 'hsl(270, 55%, 78%)',
    }


def test_spectrum_palette_uses_hues():
    colors = build_category_color_map(['x', 'y', 'z'], 'spectrum')
    assert colors['y'] == 'hsl(120, 55%, 78%)'


def test_unknown_palette_raises():
    with pytest.raises(ValueError):
        build_category_color_map(['a'], 'neon')


def test_empty_palette_raises():
    with pytest.raises(ValueError):
        palette_color_map(['a'], [])


@pytest.mark.parametrize('palette_name', ['bold', 'pastel'])
def test_first_occurrence_order_decides_colors(palette_name):
    """Reordering first occurrences swaps colors; rank i always gets palette[i]."""
    palette = PALETTES[palette_name]
    forward = ['School', 'Hospital', 'Church', 'School']
    reverse = ['Church', 'Hospital', 'School', 'Church']

    forward_colors = build_category_color_map(forward, palette_name)
    reverse_colors = build_category_color_map(reverse, palette_name)

    assert forward_colors['School'] != reverse_colors['School']
    for values, colors in ((forward, forward_colors), (reverse, reverse_colors)):
        for rank, value in enumerate(distinct_values(values)):
            assert colors[value] == palette[rank]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
