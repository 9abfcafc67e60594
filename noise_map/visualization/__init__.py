"""
Map generation and layer visualization.
"""

from .colors import build_category_color_map, hue_color_map, palette_color_map, PALETTES
from .legend import LegendGroup, LegendItem, LegendRegistry
from .render_surface import RenderSurface
from .map_builder import NoiseMapBuilder

__all__ = [
    'build_category_color_map',
    'hue_color_map',
    'palette_color_map',
    'PALETTES',
    'LegendGroup',
    'LegendItem',
    'LegendRegistry',
    'RenderSurface',
    'NoiseMapBuilder'
]
