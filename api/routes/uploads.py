"""
FastAPI routes for user file uploads.
"""

from typing import List

from fastapi import APIRouter, File, UploadFile
import logging

from api.schemas.noise_map import UploadConfigRequest, UploadPreviewResponse, UploadedLayerResponse
from api.services.map_service import map_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.post("", response_model=UploadPreviewResponse, summary="Upload a Data File")
async def upload_file(file: UploadFile = File(...)):
    """
    Parse a CSV, GeoJSON or zipped shapefile and return a preview with
    suggested label, style and coordinate fields.

    Starting a new upload invalidates any earlier staged upload.
    """
    content = await file.read()
    logger.info(f"Upload received: {file.filename} ({len(content)} bytes)")
    return map_service.stage_upload(file.filename or "", content)


@router.post("/{token}/apply", response_model=UploadedLayerResponse, summary="Add Uploaded Layer")
async def apply_upload(token: int, request: UploadConfigRequest):
    """
    Build a map layer from the staged upload identified by token.

    Example:
        ```json
        {"name": "Schools", "style_field": "type", "palette": "pastel", "crs": "utm20n"}
        ```
    """
    return map_service.apply_upload(token, request)


@router.get("/layers", response_model=List[UploadedLayerResponse], summary="List Uploaded Layers")
async def list_layers():
    return map_service.list_uploaded_layers()


@router.delete("/layers/{layer_id}", response_model=UploadedLayerResponse, summary="Remove Uploaded Layer")
async def remove_layer(layer_id: str):
    return map_service.remove_uploaded_layer(layer_id)


@router.delete("/layers", summary="Remove All Uploaded Layers")
async def clear_layers():
    return map_service.clear_uploaded_layers()
