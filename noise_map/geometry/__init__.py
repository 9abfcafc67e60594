"""
Geometry utilities for the noise map.

This module contains:
- UTM zone 20N to WGS84 reprojection
- Bounding box filtering and inset helpers
"""

from .reprojection import (
    ReprojectionError,
    utm_to_latlng,
    latlng_to_utm,
    reproject_geometry,
    reproject_feature_collection
)
from .bounds import Bounds, feature_intersects_bounds, island_for_center

__all__ = [
    'ReprojectionError',
    'utm_to_latlng',
    'latlng_to_utm',
    'reproject_geometry',
    'reproject_feature_collection',
    'Bounds',
    'feature_intersects_bounds',
    'island_for_center'
]
