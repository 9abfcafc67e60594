"""
Service layer for the noise map API.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import geojson

from noise_map import __version__
from noise_map.config.map_config import MapConfig
from noise_map.geometry.bounds import Bounds
from noise_map.map_session import MapSession
from noise_map.uploads.pipeline import UploadConfig, UploadPipeline
from api.schemas.noise_map import (
    ComplaintLayerRequest,
    HealthResponse,
    InsetResponse,
    LegendGroupModel,
    LegendItemModel,
    LegendResponse,
    MapStateResponse,
    OverlayInfo,
    OverlayRequest,
    RoadsViewResponse,
    UploadConfigRequest,
    UploadPreviewResponse,
    UploadedLayerResponse
)

logger = logging.getLogger(__name__)

OFFLINE_ENV = "NOISE_MAP_OFFLINE"


class NoiseMapService:
    """
    Service class holding the single map session behind the API.
    """

    def __init__(self, config: Optional[MapConfig] = None):
        self.config = config or self._config_from_env()
        self.session = MapSession(self.config)
        self.pipeline = UploadPipeline()
        self.is_initialized = False

    @staticmethod
    def _config_from_env() -> MapConfig:
        if os.environ.get(OFFLINE_ENV, "").lower() in ("1", "true", "yes"):
            return MapConfig.create_offline_config()
        return MapConfig.create_default_config()

    def initialize(self) -> None:
        """Load overlays and complaint sheets. Failures leave the service degraded."""
        logger.info("Initializing noise map service...")
        self.config.validate()
        overlays = self.session.load_overlays()
        complaints_ok = self.session.load_complaints() if self.config.sheet_urls else False
        if complaints_ok:
            # Complaint points are on by default in the UI
            self.session.set_complaints_visible(True)
        self.is_initialized = complaints_ok
        logger.info(f"Service initialized with {len(self.session.complaint_points)} complaint points "
                    f"and {overlays} overlays")

    def get_health_status(self) -> HealthResponse:
        return HealthResponse(
            status="healthy" if self.is_initialized else "degraded",
            version=__version__,
            complaint_data_loaded=self.is_initialized,
            complaint_points_count=len(self.session.complaint_points),
            overlays_loaded=len(self.session.overlays) + (1 if self.session.roads is not None else 0)
        )

    # --- Map state ------------------------------------------------------------

    def get_state(self) -> MapStateResponse:
        session = self.session
        return MapStateResponse(
            basemap=session.basemap,
            complaints_visible=session.complaints_visible,
            display_mode=session.display_mode,
            labels_visible=session.labels_visible,
            complaint_count=len(session.complaint_points),
            roads_visible=session.roads_visible,
            visible_overlays=[oid for oid, layer in session.overlays.items() if layer.visible],
            uploaded_layers=len(session.uploaded_layers),
            surface_layers=session.surface.keys()
        )

    def render_html(self) -> str:
        return self.session.render_html()

    def get_legend(self) -> LegendResponse:
        groups = []
        for key, group in self.session.legend.render_snapshot():
            groups.append(LegendGroupModel(
                key=key,
                title=group.title,
                items=[LegendItemModel(label=item.label, color=item.color) for item in group.items]
            ))
        return LegendResponse(groups=groups)

    def toggle_basemap(self) -> MapStateResponse:
        self.session.toggle_basemap()
        return self.get_state()

    def update_complaints(self, request: ComplaintLayerRequest) -> MapStateResponse:
        if request.display_mode is not None:
            self.session.set_display_mode(request.display_mode)
        if request.labels is not None:
            self.session.set_labels_visible(request.labels)
        if request.visible is not None:
            self.session.set_complaints_visible(request.visible)
        return self.get_state()

    def reload_complaints(self) -> bool:
        loaded = self.session.load_complaints()
        if loaded:
            self.is_initialized = True
        return loaded

    # --- Overlays ---------------------------------------------------------------

    def list_overlays(self) -> List[OverlayInfo]:
        return [self._overlay_info(overlay_id) for overlay_id in self.session.overlays]

    def update_overlay(self, overlay_id: str, request: OverlayRequest) -> OverlayInfo:
        if request.opacity is not None:
            self.session.set_overlay_opacity(overlay_id, request.opacity)
        if request.visible is not None:
            self.session.set_overlay_visible(overlay_id, request.visible)
        return self._overlay_info(overlay_id)

    def _overlay_info(self, overlay_id: str) -> OverlayInfo:
        layer = self.session.get_overlay(overlay_id)
        return OverlayInfo(
            id=overlay_id,
            name=layer.overlay.name,
            type=layer.overlay.type,
            visible=layer.visible,
            opacity=layer.opacity,
            label_field=layer.label_field,
            feature_count=len(layer.features)
        )

    # --- Roads ------------------------------------------------------------------

    def set_roads_visible(self, visible: bool) -> MapStateResponse:
        self.session.set_roads_visible(visible)
        return self.get_state()

    def roads_view(self, bounds: Bounds, zoom: float) -> RoadsViewResponse:
        self.session.set_view(bounds, zoom)
        features = self.session.roads_in_view(bounds, zoom)
        feature_collection = geojson.FeatureCollection([
            geojson.Feature(geometry=feature['geometry'], properties=feature.get('properties') or {})
            for feature in features
        ])
        show_labels = bool(features) and self.session.roads.shows_labels(zoom)
        return RoadsViewResponse(show_labels=show_labels, feature_collection=feature_collection)

    def inset(self, lat: float, lng: float) -> InsetResponse:
        view = self.session.inset_view(lat, lng)
        bounds = view['bounds']
        return InsetResponse(island=view['island'], south=bounds.south, west=bounds.west,
                             north=bounds.north, east=bounds.east)

    # --- Uploads ----------------------------------------------------------------

    def stage_upload(self, filename: str, content: bytes) -> UploadPreviewResponse:
        staged = self.pipeline.stage(filename, content)
        return UploadPreviewResponse(**staged.preview())

    def apply_upload(self, token: int, request: UploadConfigRequest) -> UploadedLayerResponse:
        layer = self.pipeline.apply(token, UploadConfig(**request.model_dump()))
        self.session.add_uploaded_layer(layer)
        return UploadedLayerResponse(**layer.to_dict())

    def list_uploaded_layers(self) -> List[UploadedLayerResponse]:
        return [UploadedLayerResponse(**layer.to_dict()) for layer in self.session.uploaded_layers]

    def remove_uploaded_layer(self, layer_id: str) -> UploadedLayerResponse:
        layer = self.session.remove_uploaded_layer(layer_id)
        return UploadedLayerResponse(**layer.to_dict())

    def clear_uploaded_layers(self) -> Dict[str, Any]:
        return {"removed": self.session.clear_uploaded_layers()}


# Global service instance
map_service = NoiseMapService()
