"""
Configuration management for the noise map.
"""

from .map_config import MapConfig, WGS84, UTM_20N, SUPPORTED_CRS
from .overlay_catalog import OverlayConfig, OVERLAY_CATALOG, get_overlay_config

__all__ = [
    'MapConfig',
    'WGS84',
    'UTM_20N',
    'SUPPORTED_CRS',
    'OverlayConfig',
    'OVERLAY_CATALOG',
    'get_overlay_config'
]
