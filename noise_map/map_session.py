"""
Rendering coordinator for the noise map.

MapSession owns every piece of mutable map state (legend registry, layers on
the render surface, visibility flags, uploaded layers) and keeps the surface
and the legend consistent: each mutation updates both before returning.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import folium

from .config.map_config import MapConfig
from .config.overlay_catalog import OverlayConfig
from .data.complaints import ComplaintPoint, build_complaint_points
from .data.overlay_loader import JsonFetcher, fetch_json, load_overlays
from .data.sheet_loader import Fetcher, fetch_text, load_all_sheets
from .geometry.bounds import Bounds, island_for_center
from .uploads.pipeline import UploadedLayer
from .visualization.layers import (
    CATEGORIES_MODE,
    HEATMAP_MODE,
    OverlayLayer,
    RoadsLayer,
    build_complaint_heatmap,
    build_complaint_markers,
    complaint_category_legend,
    complaint_heatmap_legend,
    roads_legend
)
from .visualization.legend import LegendRegistry
from .visualization.map_builder import IMAGERY, STREETS, NoiseMapBuilder
from .visualization.render_surface import RenderSurface

logger = logging.getLogger(__name__)

COMPLAINTS_KEY = 'complaints'
COMPLAINT_MARKERS_LAYER = 'complaints:markers'
COMPLAINT_HEAT_LAYER = 'complaints:heatmap'
ROADS_KEY = 'major_roads'

DISPLAY_MODE_ALIASES = {
    'categories': CATEGORIES_MODE,
    'heatmap': HEATMAP_MODE,
    'heat': HEATMAP_MODE,
}


class MapSession:
    """
    Single-owner coordinator for map state.
    """

    def __init__(self, config: Optional[MapConfig] = None,
                 legend: Optional[LegendRegistry] = None,
                 surface: Optional[RenderSurface] = None):
        self.config = config or MapConfig()
        self.legend = legend or LegendRegistry()
        self.surface = surface or RenderSurface()
        self.builder = NoiseMapBuilder(self.config)

        self.basemap = STREETS
        self.zoom = self.config.zoom_start

        # Complaint layer state
        self.complaint_points: List[ComplaintPoint] = []
        self.complaints_visible = False
        self.labels_visible = False
        self.display_mode = CATEGORIES_MODE
        self._complaint_generation = 0

        self.overlays: Dict[str, OverlayLayer] = {}

        self.roads: Optional[RoadsLayer] = None
        self.roads_visible = False
        self.view_bounds: Optional[Bounds] = None

        self.uploaded_layers: List[UploadedLayer] = []

    # --- Basemap -------------------------------------------------------

    def toggle_basemap(self) -> str:
        """Switch streets <-> imagery and return the active basemap."""
        self.basemap = IMAGERY if self.basemap == STREETS else STREETS
        logger.info(f"Basemap switched to {self.basemap}")
        return self.basemap

    # --- Complaint layer ---------------------------------------------------

    def begin_complaint_load(self) -> int:
        """Start a complaint reload; only the latest generation may publish its points."""
        self._complaint_generation += 1
        return self._complaint_generation

    def load_complaints(self, fetch: Optional[Fetcher] = None) -> bool:
        """
        Fetch all configured sheets and rebuild the complaint points.

        A failed sheet load leaves the complaint layer untouched and returns False.
        """
        generation = self.begin_complaint_load()
        fetch = fetch or (lambda url: fetch_text(url, timeout=self.config.request_timeout))
        try:
            rows = load_all_sheets(self.config.sheet_urls, fetch=fetch,
                                   max_workers=self.config.max_workers)
        except Exception as e:
            logger.error(f"Error loading sheet data: {e}")
            return False
        return self.set_complaint_points(build_complaint_points(rows), generation)

    def load_overlays(self, fetch: Optional[JsonFetcher] = None) -> int:
        """Fetch all configured overlays; failures are logged per overlay."""
        fetch = fetch or (lambda url: fetch_json(url, timeout=self.config.request_timeout))
        loaded = load_overlays(self.config.overlays, fetch=fetch,
                               max_workers=self.config.max_workers)
        # Register in catalog order regardless of completion order
        for overlay in self.config.overlays:
            if overlay.id in loaded:
                self.add_overlay(overlay, loaded[overlay.id])
        return len(loaded)

    def set_complaint_points(self, points: List[ComplaintPoint], generation: Optional[int] = None) -> bool:
        """
        Replace the complaint dataset wholesale.

        Returns:
            False when the load was superseded by a newer one and discarded
        """
        if generation is not None and generation != self._complaint_generation:
            logger.warning(f"Discarding stale complaint load {generation} "
                           f"(current is {self._complaint_generation})")
            return False

        self.complaint_points = list(points)
        if not self.complaint_points:
            logger.warning("No complaint points to render")
        self._update_complaint_layers()
        return True

    def set_complaints_visible(self, visible: bool) -> None:
        self.complaints_visible = visible
        self._update_complaint_layers()

    def set_display_mode(self, mode: str) -> None:
        """Switch between 'categories' and 'heatmap' ('heat' is accepted too)."""
        if mode not in DISPLAY_MODE_ALIASES:
            raise ValueError(f"Unknown display mode: {mode}")
        self.display_mode = DISPLAY_MODE_ALIASES[mode]
        self._update_complaint_layers()

    def set_labels_visible(self, visible: bool) -> None:
        self.labels_visible = visible
        self._update_complaint_layers()

    def _update_complaint_layers(self) -> None:
        self.surface.remove(COMPLAINT_MARKERS_LAYER)
        self.surface.remove(COMPLAINT_HEAT_LAYER)

        if not self.complaints_visible or not self.complaint_points:
            self.legend.set_group(COMPLAINTS_KEY, None)
            return

        if self.display_mode == HEATMAP_MODE:
            self.surface.add(COMPLAINT_HEAT_LAYER,
                             build_complaint_heatmap(self.complaint_points, self.config))
            self.legend.set_group(COMPLAINTS_KEY, complaint_heatmap_legend(self.config))
        else:
            self.surface.add(COMPLAINT_MARKERS_LAYER,
                             build_complaint_markers(self.complaint_points, self.config,
                                                     labels_on=self.labels_visible))
            self.legend.set_group(COMPLAINTS_KEY, complaint_category_legend(self.config))

    # --- Overlays ------------------------------------------------------------

    def add_overlay(self, overlay: OverlayConfig, data: Dict[str, Any]) -> None:
        """Register a loaded overlay. Roads are routed to the roads layer."""
        if overlay.is_roads:
            self.set_roads_data(data)
            return

        layer = OverlayLayer(overlay, data, self.config)
        if not layer.features:
            logger.warning(f"Overlay {overlay.id} has no drawable features")
            return
        self.overlays[overlay.id] = layer
        if layer.visible:
            self._refresh_overlay(overlay.id)

    def get_overlay(self, overlay_id: str) -> OverlayLayer:
        layer = self.overlays.get(overlay_id)
        if layer is None:
            raise KeyError(f"Overlay not found: {overlay_id}")
        return layer

    def set_overlay_visible(self, overlay_id: str, visible: bool) -> None:
        layer = self.get_overlay(overlay_id)
        layer.visible = visible
        self._refresh_overlay(overlay_id)

    def set_overlay_opacity(self, overlay_id: str, opacity: float) -> None:
        if not 0 <= opacity <= 1:
            raise ValueError("opacity must be between 0 and 1")
        layer = self.get_overlay(overlay_id)
        layer.opacity = opacity
        if layer.visible:
            self._refresh_overlay(overlay_id)

    def _refresh_overlay(self, overlay_id: str) -> None:
        layer = self.overlays[overlay_id]
        key = f"overlay:{overlay_id}"
        if layer.visible:
            self.surface.add(key, layer.to_folium(self.zoom))
            self.legend.set_group(overlay_id, layer.legend_group())
        else:
            self.surface.remove(key)
            self.legend.set_group(overlay_id, None)

    def set_zoom(self, zoom: float) -> None:
        """Restyle zoom-dependent layers."""
        self.zoom = zoom
        for overlay_id, layer in self.overlays.items():
            if layer.visible:
                self._refresh_overlay(overlay_id)
        self._update_roads()

    # --- Roads ---------------------------------------------------------------

    def set_roads_data(self, data: Dict[str, Any]) -> None:
        self.roads = RoadsLayer(data, self.config)
        self._update_roads()

    def set_roads_visible(self, visible: bool) -> None:
        self.roads_visible = visible
        self.legend.set_group(ROADS_KEY, roads_legend() if visible else None)
        self._update_roads()

    def toggle_roads(self) -> bool:
        self.set_roads_visible(not self.roads_visible)
        return self.roads_visible

    def set_view(self, bounds: Bounds, zoom: float) -> None:
        """Record the current viewport and restyle layers that depend on it."""
        self.view_bounds = bounds
        self.set_zoom(zoom)

    def roads_in_view(self, bounds: Bounds, zoom: float) -> List[Dict[str, Any]]:
        """Road features to draw for a viewport; empty when hidden or zoomed out."""
        if self.roads is None or not self.roads_visible:
            return []
        return self.roads.features_in_view(bounds, zoom)

    def _update_roads(self) -> None:
        self.surface.remove(ROADS_KEY)
        if self.roads is None or not self.roads_visible or not self.roads.shows_lines(self.zoom):
            return
        element = self.roads.to_folium(self.view_bounds, self.zoom)
        if element is not None:
            self.surface.add(ROADS_KEY, element)

    # --- Uploaded layers -----------------------------------------------------

    def add_uploaded_layer(self, layer: UploadedLayer) -> None:
        self.uploaded_layers.append(layer)
        self.surface.add(layer.layer_id, layer.element)
        self.legend.set_group(layer.layer_id, layer.legend_group)
        logger.info(f"Added uploaded layer '{layer.name}' ({layer.feature_count} features)")

    def remove_uploaded_layer(self, layer_id: str) -> UploadedLayer:
        for idx, layer in enumerate(self.uploaded_layers):
            if layer.layer_id == layer_id:
                del self.uploaded_layers[idx]
                self.surface.remove(layer_id)
                self.legend.set_group(layer_id, None)
                logger.info(f"Removed uploaded layer '{layer.name}'")
                return layer
        raise KeyError(f"Uploaded layer not found: {layer_id}")

    def clear_uploaded_layers(self) -> int:
        count = len(self.uploaded_layers)
        for layer in list(self.uploaded_layers):
            self.remove_uploaded_layer(layer.layer_id)
        return count

    # --- Inset & page --------------------------------------------------------

    def inset_view(self, lat: float, lng: float) -> Dict[str, Any]:
        """Island and bounds the inset map should frame for a map center."""
        tobago = Bounds.from_corners(self.config.bounds_tobago)
        island = island_for_center(lat, lng, tobago)
        corners = self.config.bounds_tobago if island == 'TOBAGO' else self.config.bounds_trinidad
        return {'island': island, 'bounds': Bounds.from_corners(corners)}

    def build_map(self, center: Optional[Tuple[float, float]] = None,
                  zoom: Optional[int] = None) -> folium.Map:
        """Compose a folium page from the current surface and legend."""
        return self.builder.build(self.surface, self.legend, basemap=self.basemap,
                                  center=center, zoom=zoom)

    def render_html(self, center: Optional[Tuple[float, float]] = None,
                    zoom: Optional[int] = None) -> str:
        return self.build_map(center, zoom).get_root().render()
