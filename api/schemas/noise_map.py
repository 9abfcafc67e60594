"""
Pydantic schemas for the noise map API.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator

from noise_map.config.map_config import SUPPORTED_CRS, WGS84
from noise_map.visualization.colors import DEFAULT_PALETTE, PALETTES
from noise_map.visualization.layers import DASH_STYLES, MARKER_SHAPES


class ComplaintLayerRequest(BaseModel):
    """Request model for complaint layer controls. Omitted fields are left unchanged."""
    visible: Optional[bool] = Field(default=None, description="Show or hide complaint points")
    display_mode: Optional[str] = Field(default=None, description="'categories', 'heatmap' or 'heat'")
    labels: Optional[bool] = Field(default=None, description="Show permanent location labels")

    @field_validator('display_mode')
    @classmethod
    def validate_display_mode(cls, v):
        if v is not None and v not in ('categories', 'heatmap', 'heat'):
            raise ValueError("display_mode must be 'categories', 'heatmap' or 'heat'")
        return v


class OverlayRequest(BaseModel):
    """Request model for a single overlay toggle row."""
    visible: Optional[bool] = Field(default=None, description="Show or hide the overlay")
    opacity: Optional[float] = Field(default=None, ge=0.0, le=1.0, description="Fill opacity (0-1)")


class RoadsRequest(BaseModel):
    visible: bool = Field(..., description="Show or hide major roads")


class LegendItemModel(BaseModel):
    label: str
    color: Optional[str] = None


class LegendGroupModel(BaseModel):
    key: str = Field(..., description="Key of the layer owning this group")
    title: str
    items: List[LegendItemModel]


class LegendResponse(BaseModel):
    groups: List[LegendGroupModel] = Field(..., description="Groups in display order")


class OverlayInfo(BaseModel):
    id: str
    name: str
    type: str
    visible: bool
    opacity: float
    label_field: Optional[str] = None
    feature_count: int


class MapStateResponse(BaseModel):
    """Snapshot of the visible UI state."""
    basemap: str
    complaints_visible: bool
    display_mode: str
    labels_visible: bool
    complaint_count: int
    roads_visible: bool
    visible_overlays: List[str]
    uploaded_layers: int
    surface_layers: List[str]


class RoadsViewResponse(BaseModel):
    show_labels: bool = Field(..., description="Whether road labels are shown at this zoom")
    feature_collection: Dict[str, Any] = Field(..., description="Roads in view as GeoJSON FeatureCollection")


class InsetResponse(BaseModel):
    island: str
    south: float
    west: float
    north: float
    east: float


class UploadPreviewResponse(BaseModel):
    """Parsed upload awaiting configuration."""
    token: int = Field(..., description="Token to pass to the apply endpoint")
    filename: str
    kind: str = Field(..., description="'csv', 'geojson' or 'shapefile'")
    geometry_type: str = Field(..., description="'point', 'line' or 'polygon'")
    headers: List[str]
    record_count: int
    suggested_label_field: Optional[str] = None
    suggested_style_field: Optional[str] = None
    suggested_crs: Optional[str] = None
    suggested_x_field: Optional[str] = None
    suggested_y_field: Optional[str] = None


class UploadConfigRequest(BaseModel):
    """Styling choices for an uploaded layer."""
    name: str = Field(..., min_length=1, description="Display name")
    label_field: Optional[str] = Field(default=None, description="Property used for labels")
    style_field: Optional[str] = Field(default=None, description="Property used for category colors")
    palette: str = Field(default=DEFAULT_PALETTE, description="'bold', 'pastel' or 'spectrum'")
    crs: str = Field(default=WGS84, description="'wgs84' (degrees) or 'utm20n' (EPSG:32620)")
    marker_shape: str = Field(default='circle', description="Point glyph")
    line_width: float = Field(default=2.0, gt=0, le=20, description="Line width for lines/polygons")
    dash_style: str = Field(default='solid', description="'solid', 'dashed' or 'dotted'")
    x_field: Optional[str] = Field(default=None, description="X/easting/longitude column (CSV only)")
    y_field: Optional[str] = Field(default=None, description="Y/northing/latitude column (CSV only)")

    @field_validator('palette')
    @classmethod
    def validate_palette(cls, v):
        if v not in PALETTES:
            raise ValueError(f"palette must be one of {sorted(PALETTES)}")
        return v

    @field_validator('crs')
    @classmethod
    def validate_crs(cls, v):
        if v not in SUPPORTED_CRS:
            raise ValueError(f"crs must be one of {sorted(SUPPORTED_CRS)}")
        return v

    @field_validator('marker_shape')
    @classmethod
    def validate_marker_shape(cls, v):
        if v not in MARKER_SHAPES:
            raise ValueError(f"marker_shape must be one of {sorted(MARKER_SHAPES)}")
        return v

    @field_validator('dash_style')
    @classmethod
    def validate_dash_style(cls, v):
        if v not in DASH_STYLES:
            raise ValueError(f"dash_style must be one of {sorted(DASH_STYLES)}")
        return v


class UploadedLayerResponse(BaseModel):
    layer_id: str
    name: str
    source_kind: str
    geometry_type: str
    feature_count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    complaint_data_loaded: bool = Field(..., description="Whether complaint data is loaded")
    complaint_points_count: int = Field(..., description="Number of complaint points loaded")
    overlays_loaded: int = Field(..., description="Number of overlays loaded")


class ErrorResponse(BaseModel):
    """Error response model."""
    success: bool = Field(False, description="Always false for error responses")
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Detailed error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
