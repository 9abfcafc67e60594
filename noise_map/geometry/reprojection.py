"""
Coordinate reprojection from UTM zone 20N (EPSG:32620) to geographic WGS84.

Geometries are lifted into shapely's typed geometry tree (Point, LineString,
Polygon, Multi*, GeometryCollection) and converted with a structural
transform, so nesting depth never has to be guessed from array shapes.
"""

import logging
import math
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import shapely
from pyproj import Transformer
from shapely.geometry import mapping, shape
from shapely.geometry.base import BaseGeometry

from ..config.map_config import SUPPORTED_CRS, UTM_20N, WGS84

logger = logging.getLogger(__name__)

# Positions zone 20N can represent (northern hemisphere, false easting 500 km).
# pyproj wraps values outside this into plausible looking lat/lng.
UTM_EASTING_RANGE = (100000.0, 900000.0)
UTM_NORTHING_RANGE = (0.0, 10000000.0)


class ReprojectionError(ValueError):
    """Raised when a geometry cannot be reprojected."""


@lru_cache(maxsize=None)
def _transformer(source: str, target: str) -> Transformer:
    # always_xy keeps GeoJSON (x, y) = (lng, lat) axis order on both sides
    return Transformer.from_crs(SUPPORTED_CRS[source], SUPPORTED_CRS[target], always_xy=True)


def utm_to_latlng(easting: float, northing: float) -> Tuple[float, float]:
    """
    Convert a UTM zone 20N position to geographic coordinates.

    Args:
        easting: Easting in meters
        northing: Northing in meters

    Returns:
        (lat, lng) in degrees
    """
    lng, lat = _transformer(UTM_20N, WGS84).transform(easting, northing)
    return lat, lng


def latlng_to_utm(lat: float, lng: float) -> Tuple[float, float]:
    """Inverse of utm_to_latlng. Returns (easting, northing) in meters."""
    easting, northing = _transformer(WGS84, UTM_20N).transform(lng, lat)
    return easting, northing


def to_geometry(geometry: Dict[str, Any]) -> BaseGeometry:
    """
    Lift a GeoJSON geometry mapping into a typed shapely geometry.

    Raises:
        ReprojectionError: If the mapping is not a well-formed geometry
    """
    if not isinstance(geometry, dict) or 'type' not in geometry:
        raise ReprojectionError(f"Expected a GeoJSON geometry mapping, got {type(geometry).__name__}")
    try:
        return shape(geometry)
    except Exception as e:
        raise ReprojectionError(
            f"Malformed {geometry.get('type')} geometry: {e}"
        ) from e


def _as_lists(value: Any) -> Any:
    """Convert the tuples produced by shapely.mapping back into GeoJSON lists."""
    if isinstance(value, (list, tuple)):
        return [_as_lists(item) for item in value]
    if isinstance(value, dict):
        return {key: _as_lists(item) for key, item in value.items()}
    return value


def _positions(geometry: BaseGeometry):
    """Yield every (x, y[, z]) position of a geometry."""
    if hasattr(geometry, 'geoms'):
        for part in geometry.geoms:
            yield from _positions(part)
    elif geometry.geom_type == 'Polygon':
        for ring in [geometry.exterior, *geometry.interiors]:
            yield from ring.coords
    else:
        yield from geometry.coords


def is_finite_geometry(geometry: BaseGeometry) -> bool:
    """True when the geometry is non-empty and every coordinate is finite."""
    if geometry.is_empty:
        return False
    return all(math.isfinite(value) for position in _positions(geometry) for value in position)


def in_geographic_range(geometry: BaseGeometry) -> bool:
    """True when every position is a valid (lng, lat) pair."""
    return all(-180 <= position[0] <= 180 and -90 <= position[1] <= 90
               for position in _positions(geometry))


def utm_position_in_domain(easting: float, northing: float) -> bool:
    """True when (easting, northing) lies inside the zone 20N projection domain."""
    return (UTM_EASTING_RANGE[0] <= easting <= UTM_EASTING_RANGE[1]
            and UTM_NORTHING_RANGE[0] <= northing <= UTM_NORTHING_RANGE[1])


def in_utm_domain(geometry: BaseGeometry) -> bool:
    return all(utm_position_in_domain(position[0], position[1]) for position in _positions(geometry))


def reproject(geometry: BaseGeometry, source: str = UTM_20N, target: str = WGS84) -> BaseGeometry:
    """
    Structurally transform a shapely geometry between supported CRSs.

    A new geometry is returned; shapely geometries are immutable.
    """
    if source == target:
        return geometry
    return shapely.transform(geometry, _transformer(source, target).transform, interleaved=False)


def reproject_geometry(geometry: Dict[str, Any], source: str = UTM_20N,
                       target: str = WGS84) -> Dict[str, Any]:
    """
    Reproject a GeoJSON geometry mapping.

    Args:
        geometry: GeoJSON geometry (Point, LineString, Polygon, Multi*, GeometryCollection)
        source: Source CRS key ('utm20n' or 'wgs84')
        target: Target CRS key

    Returns:
        A fresh geometry mapping with the same structure. The input is not mutated.

    Raises:
        ReprojectionError: If the geometry is malformed
    """
    if source not in SUPPORTED_CRS or target not in SUPPORTED_CRS:
        raise ReprojectionError(f"Unsupported coordinate system: {source} -> {target}")

    shaped = to_geometry(geometry)
    try:
        converted = reproject(shaped, source, target)
    except Exception as e:
        raise ReprojectionError(f"Failed to reproject {geometry.get('type')} geometry: {e}") from e
    return _as_lists(mapping(converted))


def reproject_feature_collection(feature_collection: Dict[str, Any], source: str = UTM_20N,
                                 target: str = WGS84) -> Dict[str, Any]:
    """
    Reproject every feature of a FeatureCollection.

    Features whose geometry is missing, malformed, outside the source
    projection's domain or produces non-finite coordinates are dropped
    individually.

    Returns:
        New FeatureCollection dict
    """
    features: List[Dict[str, Any]] = []
    dropped = 0

    for feature in feature_collection.get('features', []):
        converted = _reproject_feature(feature, source, target)
        if converted is None:
            dropped += 1
            continue
        features.append(converted)

    if dropped:
        logger.debug(f"Dropped {dropped} features with invalid geometry during reprojection")

    return {'type': 'FeatureCollection', 'features': features}


def _reproject_feature(feature: Dict[str, Any], source: str, target: str) -> Optional[Dict[str, Any]]:
    geometry = feature.get('geometry') if isinstance(feature, dict) else None
    if not geometry:
        return None

    try:
        shaped = to_geometry(geometry)
        if source == UTM_20N and not shaped.is_empty and not in_utm_domain(shaped):
            logger.debug("Skipping feature outside the UTM zone 20N domain")
            return None
        shaped = reproject(shaped, source, target)
    except Exception as e:
        logger.debug(f"Skipping feature: {e}")
        return None

    if not is_finite_geometry(shaped):
        return None
    if target == WGS84 and not in_geographic_range(shaped):
        return None

    return {
        'type': 'Feature',
        'geometry': _as_lists(mapping(shaped)),
        'properties': dict(feature.get('properties') or {}),
    }
