"""
Heuristics for picking label, style and coordinate fields out of untyped
property bags.

Label inference only looks at the first feature. Heterogeneous inputs are
not guaranteed a label field that every feature carries.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

LABEL_CANDIDATES = [
    'zone', 'ZONE',
    'name', 'Name', 'NAME',
    'label', 'Label', 'LABEL',
    'category', 'Category', 'CATEGORY',
]

X_FIELD_ALIASES = ['Easting', 'easting', 'EASTING', 'X', 'x',
                   'lng', 'lon', 'long', 'Longitude', 'longitude', 'LONGITUDE']
Y_FIELD_ALIASES = ['Northing', 'northing', 'NORTHING', 'Y', 'y',
                   'lat', 'Latitude', 'latitude', 'LATITUDE']

GEOMETRY_KINDS = (('Point', 'point'), ('Polygon', 'polygon'), ('Line', 'line'))


def is_blank(value: Any) -> bool:
    """None, or a value whose string form is empty after stripping."""
    return value is None or str(value).strip() == ''


def parse_number(value: Any) -> Optional[float]:
    """Parse a finite number from a raw cell; None for blanks, text, NaN or infinity."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def lookup_alias(row: Mapping[str, Any], aliases: Sequence[str], skip_blank: bool = False,
                 default: Any = None) -> Any:
    """
    Return the value of the first alias present in a row.

    Args:
        row: Property bag
        aliases: Keys to try, in order
        skip_blank: Also skip empty strings (not just missing keys / None)
        default: Returned when no alias qualifies
    """
    for alias in aliases:
        value = row.get(alias)
        if value is None:
            continue
        if skip_blank and is_blank(value):
            continue
        return value
    return default


def _first_properties(features: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    if not features:
        return {}
    return features[0].get('properties') or {}


def property_keys(features: Sequence[Dict[str, Any]]) -> List[str]:
    """Property keys of the first feature (best-effort schema)."""
    return list(_first_properties(features).keys())


def guess_label_field(features: Sequence[Dict[str, Any]]) -> Optional[str]:
    """
    Guess a human-readable label property.

    Tries LABEL_CANDIDATES against the first feature, then falls back to the
    first property holding a non-blank string.

    Returns:
        Property name, or None if nothing qualifies
    """
    props = _first_properties(features)
    if not props:
        return None

    for key in LABEL_CANDIDATES:
        if key in props:
            return key

    for key, value in props.items():
        if isinstance(value, str) and value.strip() != '':
            return key

    return None


def propose_style_field(features: Sequence[Dict[str, Any]],
                        label_field: Optional[str] = None) -> Optional[str]:
    """Propose a category field for styling: the label field, else the first string property."""
    if label_field:
        return label_field
    for key, value in _first_properties(features).items():
        if isinstance(value, str) and value.strip() != '':
            return key
    return None


def classify_geometry_type(geometry_types: Iterable[Optional[str]]) -> str:
    """
    Classify a layer as 'point', 'line' or 'polygon'.

    The first geometry type containing Point / Polygon / Line decides;
    defaults to 'point'.
    """
    for geometry_type in geometry_types:
        if not geometry_type:
            continue
        for marker, kind in GEOMETRY_KINDS:
            if marker in geometry_type:
                return kind
    return 'point'


def _geometry_types(geometry: Dict[str, Any]) -> Iterable[Optional[str]]:
    if geometry.get('type') == 'GeometryCollection':
        for member in geometry.get('geometries') or []:
            if isinstance(member, dict):
                yield from _geometry_types(member)
    else:
        yield geometry.get('type')


def feature_geometry_types(features: Sequence[Dict[str, Any]]) -> Iterable[Optional[str]]:
    """Geometry types in feature order; collections contribute their members' types."""
    for feature in features:
        geometry = feature.get('geometry') or {}
        yield from _geometry_types(geometry)


def guess_coordinate_fields(headers: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
    """Pick (x_field, y_field) columns for tabular point data."""
    header_set = set(headers)
    x_field = next((alias for alias in X_FIELD_ALIASES if alias in header_set), None)
    y_field = next((alias for alias in Y_FIELD_ALIASES if alias in header_set), None)
    return x_field, y_field
