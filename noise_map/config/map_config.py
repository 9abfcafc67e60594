"""
Configuration parameters for the Trinidad & Tobago noise map.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .overlay_catalog import OverlayConfig, OVERLAY_CATALOG

# Supported source coordinate systems
WGS84 = 'wgs84'
UTM_20N = 'utm20n'
SUPPORTED_CRS = {
    WGS84: 'EPSG:4326',
    UTM_20N: 'EPSG:32620',
}

DEFAULT_SHEET_URLS = [
    'https://docs.google.com/spreadsheets/d/e/2PACX-1vTe1IWRLcQKE6U_9VO7SPqdFYbhjiZ8RhsG3eZUYzpnM9xeOK6y7nBK6BAi7q2vkkHALkDoVbXFbmY6/pub?output=csv',
]


@dataclass
class MapConfig:
    """Configuration parameters for map rendering and data loading."""

    # Initial view (roughly centered on Trinidad & Tobago)
    center: Tuple[float, float] = (10.5, -61.3)
    zoom_start: int = 10

    # Basemaps
    streets_tiles: str = 'https://server.arcgisonline.com/ArcGIS/rest/services/World_Street_Map/MapServer/tile/{z}/{y}/{x}'
    streets_attribution: str = (
        'Tiles &copy; Esri — Source: Esri, HERE, Garmin, FAO, NOAA, USGS, '
        '© OpenStreetMap contributors, and the GIS User Community'
    )
    streets_max_zoom: int = 18  # above this esri streets renders badly
    imagery_tiles: str = 'https://{s}.google.com/vt/lyrs=s&x={x}&y={y}&z={z}'
    imagery_attribution: str = (
        'Google - Contributions: Maxar Technologies, Airbus, CNES, SIO, NOAA, '
        'U.S. Navy, NGA, GEBCO'
    )
    imagery_subdomains: List[str] = field(default_factory=lambda: ['mt0', 'mt1', 'mt2', 'mt3'])
    imagery_max_zoom: int = 20

    # Inset locator map
    inset_tiles: str = 'https://{s}.basemaps.cartocdn.com/light_nolabels/{z}/{x}/{y}{r}.png'
    inset_max_zoom: int = 14  # viewport rectangle is clamped to this zoom
    bounds_trinidad: Tuple[Tuple[float, float], Tuple[float, float]] = ((9.95, -61.95), (10.95, -60.45))
    bounds_tobago: Tuple[Tuple[float, float], Tuple[float, float]] = ((11.05, -60.95), (11.4, -60.4))

    # Geocoder restricted to Trinidad & Tobago (west, south, east, north)
    geocoder_bbox: Tuple[float, float, float, float] = (-61.95, 10.0, -60.5, 11.5)

    # Complaint layer
    complaint_colors: Dict[str, str] = field(default_factory=lambda: {
        'Low': '#a7f3d0',     # 0-1
        'Medium': '#fde68a',  # 2-6
        'High': '#fecaca',    # 7+
    })
    complaint_default_color: str = '#e5e7eb'
    complaint_marker_radius: int = 6
    complaint_border_color: str = '#6b7280'
    heatmap_radius: int = 25
    heatmap_blur: int = 15
    heatmap_max_zoom: int = 17
    heatmap_legend_color: str = '#fb923c'

    # Overlays
    overlay_default_opacity: float = 0.7
    overlay_stroke_color: str = '#6b7280'
    road_color: str = '#ffffff'
    road_opacity: float = 0.6
    roads_min_zoom: int = 16
    road_labels_min_zoom: int = 18
    overlays: List[OverlayConfig] = field(default_factory=lambda: list(OVERLAY_CATALOG))

    # Data loading
    sheet_urls: List[str] = field(default_factory=lambda: list(DEFAULT_SHEET_URLS))
    request_timeout: float = 30.0  # seconds
    max_workers: int = 8

    def validate(self) -> None:
        """Validate configuration parameters."""
        lat, lng = self.center
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise ValueError("center must be a valid (lat, lng) pair")
        if not 0 <= self.overlay_default_opacity <= 1:
            raise ValueError("overlay_default_opacity must be between 0 and 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        ids = [overlay.id for overlay in self.overlays]
        if len(ids) != len(set(ids)):
            raise ValueError("overlay ids must be unique")

    @classmethod
    def create_default_config(cls) -> 'MapConfig':
        """Create the default configuration (published sheet + full overlay catalog)."""
        return cls()

    @classmethod
    def create_offline_config(cls) -> 'MapConfig':
        """Create configuration with no remote data sources."""
        return cls(sheet_urls=[], overlays=[])
