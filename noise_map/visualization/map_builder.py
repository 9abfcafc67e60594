"""
Compose the interactive folium page from the current render surface.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import folium
from folium.plugins import Geocoder, MiniMap

from .legend import LegendRegistry
from .render_surface import RenderSurface
from ..config.map_config import MapConfig

logger = logging.getLogger(__name__)

STREETS = 'streets'
IMAGERY = 'imagery'

LABEL_CSS = """
<style>
    .sheet-point-label { font-size: 11px; font-weight: 600; }
    .municipality-label, .zone-label, .protected-label { font-size: 11px; }
</style>
"""


class NoiseMapBuilder:
    """
    Build folium maps for the noise map session.
    """

    def __init__(self, config: Optional[MapConfig] = None):
        self.config = config or MapConfig()

    def build(self, surface: RenderSurface, legend: LegendRegistry, basemap: str = STREETS,
              center: Optional[Tuple[float, float]] = None,
              zoom: Optional[int] = None) -> folium.Map:
        """
        Create the map page.

        Args:
            surface: Layers currently on the map
            legend: Legend registry to render into the page
            basemap: Active basemap ('streets' or 'imagery')
            center: Map center (lat, lon); defaults to the configured view
            zoom: Initial zoom; defaults to the configured zoom

        Returns:
            Folium map object
        """
        m = folium.Map(
            location=list(center or self.config.center),
            zoom_start=zoom if zoom is not None else self.config.zoom_start,
            tiles=None,
            control_scale=True,
            zoom_control=True
        )

        self._add_basemaps(m, basemap)
        self._add_inset(m)
        self._add_geocoder(m)

        for key, element in surface.items():
            element.add_to(m)
            logger.debug(f"Rendered layer {key}")

        m.get_root().html.add_child(folium.Element(LABEL_CSS))
        m.get_root().html.add_child(folium.Element(legend.to_html()))
        folium.LayerControl(position='topright', collapsed=True).add_to(m)

        return m

    def _add_basemaps(self, m: folium.Map, basemap: str) -> None:
        streets = folium.TileLayer(
            tiles=self.config.streets_tiles,
            attr=self.config.streets_attribution,
            name='Streets',
            max_zoom=self.config.streets_max_zoom
        )
        imagery = folium.TileLayer(
            tiles=self.config.imagery_tiles,
            attr=self.config.imagery_attribution,
            name='Satellite',
            max_zoom=self.config.imagery_max_zoom,
            subdomains=self.config.imagery_subdomains
        )

        # The first base layer added is the one shown
        ordered = [imagery, streets] if basemap == IMAGERY else [streets, imagery]
        for tile_layer in ordered:
            tile_layer.add_to(m)

    def _add_inset(self, m: folium.Map) -> None:
        inset_tiles = folium.TileLayer(
            tiles=self.config.inset_tiles,
            attr='&copy; CARTO',
            subdomains='abcd'
        )
        MiniMap(
            tile_layer=inset_tiles,
            position='bottomright',
            zoom_level_fixed=8,
            toggle_display=True
        ).add_to(m)

    def _add_geocoder(self, m: folium.Map) -> None:
        west, south, east, north = self.config.geocoder_bbox
        Geocoder(
            collapsed=False,
            position='topright',
            add_marker=True,
            provider='nominatim',
            provider_options={
                'geocodingQueryParams': {
                    'countrycodes': 'tt',
                    'viewbox': f"{west},{north},{east},{south}",
                    'bounded': 1,
                }
            }
        ).add_to(m)

    def save_interactive_html(self, map_obj: folium.Map, filepath: str) -> None:
        """
        Save interactive map to HTML file.

        Args:
            map_obj: Folium map object
            filepath: Output file path
        """
        try:
            Path(filepath).parent.mkdir(parents=True, exist_ok=True)
            map_obj.save(filepath)
            logger.info(f"Interactive map saved to {filepath}")

        except Exception as e:
            logger.error(f"Failed to save map to {filepath}: {e}")
            raise
