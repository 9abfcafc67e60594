"""
User upload pipeline: stage a file, then apply a styling configuration to
turn it into a map layer.

Every staged upload receives a generation token. Applying a token that is no
longer the latest staged upload is rejected, so a slow upload can never
overwrite a newer one.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from branca.element import Element as BrancaElement

from ..config.map_config import SUPPORTED_CRS, UTM_20N, WGS84
from ..data.field_inference import guess_coordinate_fields, parse_number
from ..data.source_reader import SourceData, UploadError, read_source
from ..geometry.reprojection import reproject_feature_collection
from ..visualization.colors import DEFAULT_PALETTE, PALETTES, build_category_color_map
from ..visualization.layers import (
    DASH_STYLES,
    MARKER_SHAPES,
    build_point_layer,
    build_shape_layer,
    has_point_positions
)
from ..visualization.legend import LegendGroup, LegendItem

logger = logging.getLogger(__name__)

DEFAULT_LAYER_COLOR = '#3388ff'


class StaleUploadError(UploadError):
    """Raised when applying an upload that has been superseded or never existed."""


@dataclass
class UploadConfig:
    """User choices for rendering an uploaded file."""
    name: str
    label_field: Optional[str] = None
    style_field: Optional[str] = None
    palette: str = DEFAULT_PALETTE
    crs: str = WGS84
    marker_shape: str = 'circle'  # points only
    line_width: float = 2.0  # lines and polygons
    dash_style: str = 'solid'  # lines and polygons
    x_field: Optional[str] = None  # tabular uploads only
    y_field: Optional[str] = None

    def validate(self) -> None:
        if not self.name or not self.name.strip():
            raise UploadError("Layer name is required")
        if self.palette not in PALETTES:
            raise UploadError(f"Unknown palette '{self.palette}'")
        if self.crs not in SUPPORTED_CRS:
            raise UploadError(f"Unsupported coordinate system '{self.crs}'")
        if self.marker_shape not in MARKER_SHAPES:
            raise UploadError(f"Unknown marker shape '{self.marker_shape}'")
        if self.dash_style not in DASH_STYLES:
            raise UploadError(f"Unknown dash style '{self.dash_style}'")
        if self.line_width <= 0:
            raise UploadError("line_width must be positive")


@dataclass
class StagedUpload:
    """A parsed file waiting for its styling configuration."""
    token: int
    filename: str
    source: SourceData

    def preview(self) -> Dict[str, Any]:
        x_field, y_field = (None, None)
        if self.source.kind == 'csv':
            x_field, y_field = guess_coordinate_fields(self.source.headers)
        return {
            'token': self.token,
            'filename': self.filename,
            'kind': self.source.kind,
            'geometry_type': self.source.geometry_type,
            'headers': self.source.headers,
            'record_count': self.source.record_count,
            'suggested_label_field': self.source.label_field,
            'suggested_style_field': self.source.style_field,
            'suggested_crs': self.source.suggested_crs,
            'suggested_x_field': x_field,
            'suggested_y_field': y_field,
        }


@dataclass
class UploadedLayer:
    """A rendered user layer."""
    layer_id: str
    name: str
    element: BrancaElement
    source_kind: str
    geometry_type: str
    feature_count: int
    color_map: Dict[str, str] = field(default_factory=dict)
    legend_group: Optional[LegendGroup] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'layer_id': self.layer_id,
            'name': self.name,
            'source_kind': self.source_kind,
            'geometry_type': self.geometry_type,
            'feature_count': self.feature_count,
        }


class UploadPipeline:
    """
    Stage uploaded files and build layers from them.
    """

    def __init__(self):
        self._generation = 0
        self._staged: Optional[StagedUpload] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def staged(self) -> Optional[StagedUpload]:
        return self._staged

    def stage(self, filename: str, content: bytes) -> StagedUpload:
        """
        Parse an uploaded file.

        Starting a new upload invalidates any earlier staged upload, even if
        this one fails to parse.

        Raises:
            UploadError: If the file is unsupported or yields no records
        """
        self._generation += 1
        token = self._generation
        self._staged = None

        source = read_source(filename, content)

        if token != self._generation:
            raise StaleUploadError("A newer upload was started while this file was being read")

        self._staged = StagedUpload(token=token, filename=filename, source=source)
        logger.info(f"Staged upload {token}: {filename} ({source.record_count} records)")
        return self._staged

    def apply(self, token: int, config: UploadConfig) -> UploadedLayer:
        """
        Build a layer from a staged upload.

        Raises:
            StaleUploadError: If the token is not the latest staged upload
            UploadError: If the configuration is invalid or no valid features remain
        """
        staged = self._staged
        if staged is None or staged.token != token or token != self._generation:
            raise StaleUploadError(f"Upload {token} is no longer current; upload the file again")

        config.validate()
        layer = build_uploaded_layer(staged.source, config)
        self._staged = None
        return layer


def rows_to_feature_collection(rows: List[Dict[str, Any]], x_field: str, y_field: str) -> Dict[str, Any]:
    """Point features from tabular rows; rows without numeric x/y are dropped."""
    features = []
    for row in rows:
        x = parse_number(row.get(x_field))
        y = parse_number(row.get(y_field))
        if x is None or y is None:
            continue
        features.append({
            'type': 'Feature',
            'geometry': {'type': 'Point', 'coordinates': [x, y]},
            'properties': dict(row),
        })
    return {'type': 'FeatureCollection', 'features': features}


def _source_feature_collection(source: SourceData, config: UploadConfig) -> Dict[str, Any]:
    if source.kind != 'csv':
        return source.feature_collection

    guessed_x, guessed_y = guess_coordinate_fields(source.headers)
    x_field = config.x_field or guessed_x
    y_field = config.y_field or guessed_y
    if not x_field or not y_field:
        raise UploadError("Could not find coordinate columns; choose the x and y fields")
    for column in (x_field, y_field):
        if column not in source.headers:
            raise UploadError(f"Column '{column}' not found in the uploaded file")

    return rows_to_feature_collection(source.rows, x_field, y_field)


def build_uploaded_layer(source: SourceData, config: UploadConfig) -> UploadedLayer:
    """
    Convert source data into a rendered layer.

    Raises:
        UploadError: If no feature has valid coordinates
    """
    feature_collection = _source_feature_collection(source, config)
    # Reprojection also validates: non-finite or out-of-range features are dropped
    projected = reproject_feature_collection(feature_collection, source=config.crs, target=WGS84)
    features = projected['features']

    if not features:
        hint = " (check the coordinate system)" if config.crs != UTM_20N else ''
        raise UploadError(f"No features with valid coordinates were found{hint}")

    color_map: Dict[str, str] = {}
    if config.style_field:
        values = [feature['properties'].get(config.style_field) for feature in features]
        color_map = build_category_color_map(values, config.palette)

    name = config.name.strip()
    # Markers need point positions; anything else is drawn as GeoJSON
    if source.geometry_type == 'point' and has_point_positions(features):
        element = build_point_layer(
            name, features, color_map, config.style_field, config.label_field,
            marker_shape=config.marker_shape, default_color=DEFAULT_LAYER_COLOR
        )
    else:
        element = build_shape_layer(
            name, features, color_map, config.style_field, config.label_field,
            geometry_type=source.geometry_type, line_width=config.line_width,
            dash_style=config.dash_style, default_color=DEFAULT_LAYER_COLOR
        )

    if color_map:
        legend_items = tuple(LegendItem(value, color) for value, color in color_map.items())
    else:
        legend_items = (LegendItem(name, DEFAULT_LAYER_COLOR),)

    dropped = len(feature_collection['features']) - len(features)
    if dropped:
        logger.info(f"Dropped {dropped} features with invalid coordinates from '{name}'")

    return UploadedLayer(
        layer_id=f"upload-{uuid.uuid4().hex[:8]}",
        name=name,
        element=element,
        source_kind=source.kind,
        geometry_type=source.geometry_type,
        feature_count=len(features),
        color_map=color_map,
        legend_group=LegendGroup(title=name, items=legend_items)
    )
