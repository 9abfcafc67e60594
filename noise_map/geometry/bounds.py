"""
Bounding box helpers for viewport filtering and the inset locator map.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from shapely.geometry import box

from .reprojection import ReprojectionError, to_geometry

logger = logging.getLogger(__name__)

TRINIDAD = 'TRINIDAD'
TOBAGO = 'TOBAGO'


@dataclass(frozen=True)
class Bounds:
    """Geographic bounding box in degrees."""
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_corners(cls, corners: Tuple[Tuple[float, float], Tuple[float, float]]) -> 'Bounds':
        """Build from ((south, west), (north, east)) as used by folium."""
        (south, west), (north, east) = corners
        return cls(south=south, west=west, north=north, east=east)

    def to_corners(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        return ((self.south, self.west), (self.north, self.east))

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    def to_box(self):
        return box(self.west, self.south, self.east, self.north)


def feature_bounds(feature: Dict[str, Any]) -> Optional[Bounds]:
    """Bounding box of a GeoJSON feature, or None when it has no usable geometry."""
    geometry = feature.get('geometry') if isinstance(feature, dict) else None
    if not geometry:
        return None
    try:
        shaped = to_geometry(geometry)
    except ReprojectionError as e:
        logger.debug(f"Ignoring feature without usable geometry: {e}")
        return None
    if shaped.is_empty:
        return None
    west, south, east, north = shaped.bounds
    return Bounds(south=south, west=west, north=north, east=east)


def feature_intersects_bounds(feature: Dict[str, Any], bounds: Bounds) -> bool:
    """True when the feature's bounding box intersects the view bounds."""
    fbounds = feature_bounds(feature)
    if fbounds is None:
        return False
    return fbounds.to_box().intersects(bounds.to_box())


def island_for_center(lat: float, lng: float, tobago_bounds: Bounds) -> str:
    """Pick the island the inset map should frame for a map center."""
    return TOBAGO if tobago_bounds.contains(lat, lng) else TRINIDAD
