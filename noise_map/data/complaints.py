"""
Complaint records and severity classification.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .field_inference import lookup_alias, parse_number
from ..geometry.reprojection import utm_position_in_domain, utm_to_latlng

logger = logging.getLogger(__name__)

LOW = 'Low'
MEDIUM = 'Medium'
HIGH = 'High'
CATEGORIES = [LOW, MEDIUM, HIGH]

CATEGORY_LABELS = {
    LOW: 'Low (0–1 complaints)',
    MEDIUM: 'Medium (2–6 complaints)',
    HIGH: 'High (7+ complaints)',
}

EASTING_FIELD = 'Easting'
NORTHING_FIELD = 'Northing'
LOCATION_ALIASES = ['Location', 'location', 'Site', 'Name']
COMPLAINT_ALIASES = ['Number of Complaints', 'Complaints', 'No_of_Complaints', 'Number_of_Complaints']


@dataclass(frozen=True)
class ComplaintPoint:
    """A single complaint location in geographic coordinates."""
    location: str
    lat: float
    lng: float
    complaints: float
    category: str

    @property
    def heat_weight(self) -> float:
        return max(self.complaints, 1)


def coerce_complaints(value: Any) -> float:
    """Coerce a raw complaint count; missing, non-numeric or negative values become 0."""
    number = parse_number(value)
    if number is None or number < 0:
        return 0
    return int(number) if number.is_integer() else number


def classify(count: Any) -> str:
    """
    Bucket a complaint count.

    Low: <= 1, Medium: 2-6, High: >= 7. Invalid input counts as 0.
    """
    value = coerce_complaints(count)
    if value <= 1:
        return LOW
    if value <= 6:
        return MEDIUM
    return HIGH


def build_complaint_point(row: Mapping[str, Any]) -> Optional[ComplaintPoint]:
    """
    Build a ComplaintPoint from a sheet row.

    Returns:
        None when easting/northing are missing, not finite numbers or
        outside the UTM zone 20N domain
    """
    easting = parse_number(row.get(EASTING_FIELD))
    northing = parse_number(row.get(NORTHING_FIELD))
    if easting is None or northing is None:
        return None
    if not utm_position_in_domain(easting, northing):
        return None

    lat, lng = utm_to_latlng(easting, northing)
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None

    location = lookup_alias(row, LOCATION_ALIASES, skip_blank=True, default='')
    complaints = coerce_complaints(lookup_alias(row, COMPLAINT_ALIASES))

    return ComplaintPoint(
        location=str(location).strip(),
        lat=lat,
        lng=lng,
        complaints=complaints,
        category=classify(complaints)
    )


def build_complaint_points(rows: List[Dict[str, Any]]) -> List[ComplaintPoint]:
    """Convert sheet rows to complaint points, dropping rows without valid positions."""
    points = []
    for row in rows:
        point = build_complaint_point(row)
        if point is None:
            logger.debug(f"Dropping row without valid easting/northing: {row}")
            continue
        points.append(point)

    logger.info(f"Built {len(points)} complaint points from {len(rows)} rows")
    return points
