"""
FastAPI routes for viewing and controlling the noise map.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import HTMLResponse
import logging

from api.schemas.noise_map import (
    ComplaintLayerRequest,
    InsetResponse,
    LegendResponse,
    MapStateResponse,
    OverlayInfo,
    OverlayRequest,
    RoadsRequest,
    RoadsViewResponse
)
from api.services.map_service import map_service
from noise_map.geometry.bounds import Bounds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/map", tags=["map"])


@router.get("/view", response_class=HTMLResponse, summary="Rendered Map Page")
async def view_map():
    """
    Render the current map state (basemap, layers and legend) as a Leaflet page.
    """
    return HTMLResponse(content=map_service.render_html())


@router.get("/state", response_model=MapStateResponse, summary="Map State")
async def get_state():
    return map_service.get_state()


@router.get("/legend", response_model=LegendResponse, summary="Legend Groups")
async def get_legend():
    """
    Legend groups for the visible layers, in the order they were added.
    """
    return map_service.get_legend()


@router.post("/basemap/toggle", response_model=MapStateResponse, summary="Toggle Basemap")
async def toggle_basemap():
    """Switch between the streets and satellite basemaps."""
    return map_service.toggle_basemap()


@router.post("/complaints", response_model=MapStateResponse, summary="Complaint Layer Controls")
async def update_complaints(request: ComplaintLayerRequest):
    """
    Update complaint visibility, display mode and labels.

    Example:
        ```json
        {"visible": true, "display_mode": "heatmap", "labels": false}
        ```
    """
    logger.info(f"Complaint layer update: {request.model_dump(exclude_none=True)}")
    return map_service.update_complaints(request)


@router.post("/complaints/reload", response_model=MapStateResponse, summary="Reload Complaint Sheets")
async def reload_complaints():
    """
    Re-fetch every complaint sheet. The previous points are kept if any sheet fails.
    """
    if not map_service.reload_complaints():
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Complaint sheets could not be loaded"
        )
    return map_service.get_state()


@router.get("/overlays", response_model=List[OverlayInfo], summary="List Overlays")
async def list_overlays():
    return map_service.list_overlays()


@router.post("/overlays/{overlay_id}", response_model=OverlayInfo, summary="Update Overlay")
async def update_overlay(overlay_id: str, request: OverlayRequest):
    """
    Show/hide an overlay or change its fill opacity.
    """
    return map_service.update_overlay(overlay_id, request)


@router.post("/roads", response_model=MapStateResponse, summary="Toggle Major Roads")
async def set_roads(request: RoadsRequest):
    return map_service.set_roads_visible(request.visible)


@router.get("/roads/view", response_model=RoadsViewResponse, summary="Roads In View")
async def roads_in_view(
    south: float = Query(..., ge=-90, le=90),
    west: float = Query(..., ge=-180, le=180),
    north: float = Query(..., ge=-90, le=90),
    east: float = Query(..., ge=-180, le=180),
    zoom: float = Query(..., ge=0, le=22)
):
    """
    Major road features intersecting the viewport. Empty below zoom 16 or when roads are hidden.
    """
    if south > north:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="south must not be greater than north")
    return map_service.roads_view(Bounds(south, west, north, east), zoom)


@router.get("/inset", response_model=InsetResponse, summary="Inset Map Bounds")
async def inset_bounds(lat: float = Query(..., ge=-90, le=90), lng: float = Query(..., ge=-180, le=180)):
    """
    Island (Trinidad or Tobago) and bounds the inset map frames for a map center.
    """
    return map_service.inset(lat, lng)
