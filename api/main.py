"""
Noise Map API - FastAPI Main Application

A RESTful API serving the Trinidad & Tobago noise complaint map and its layer controls.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import uvicorn

from api.routes.map_view import router as map_router
from api.routes.uploads import router as uploads_router
from api.services.map_service import map_service
from noise_map import __version__
from noise_map.data.source_reader import UploadError
from noise_map.uploads.pipeline import StaleUploadError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - startup and shutdown events.
    """
    logger.info("Starting Noise Map API...")

    map_service.initialize()
    health = map_service.get_health_status()
    if health.complaint_data_loaded:
        logger.info(f"✓ Map service ready with {health.complaint_points_count} complaint points")
    else:
        logger.warning("⚠ Map service running in degraded mode - complaint data not loaded")

    yield

    logger.info("Shutting down Noise Map API...")


app = FastAPI(
    title="Noise Map API",
    description="""
    **Interactive map of noise complaints across Trinidad & Tobago**

    Complaint sheets are reprojected from UTM zone 20N, classified by complaint
    count and drawn as category markers or a heatmap, alongside thematic overlays
    and user-supplied data files.

    ## Features

    - **Complaint Layer**: Low / Medium / High markers or a weighted heatmap
    - **Overlays**: Municipalities, protected areas, noise zones, major roads and more
    - **Uploads**: CSV, GeoJSON and zipped shapefiles with category styling
    - **Legend**: One group per visible layer

    ## Quick Start

    1. Check service health: `GET /health`
    2. Open the map: `GET /api/map/view`
    3. Upload a file: `POST /api/uploads`, then `POST /api/uploads/{token}/apply`
    """,
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            "details": details
        }
    )


def jsonable_errors(exc: RequestValidationError):
    # Error contexts may carry exception instances
    return [
        {key: (str(value) if key == "ctx" else value) for key, value in error.items()}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors with detailed information.
    """
    logger.warning(f"Validation error for {request.url}: {exc}")
    return _error(422, "validation_error", "Request validation failed", jsonable_errors(exc))


@app.exception_handler(StaleUploadError)
async def stale_upload_handler(request: Request, exc: StaleUploadError):
    logger.warning(f"Stale upload for {request.url}: {exc}")
    return _error(409, "stale_upload", str(exc))


@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError):
    logger.warning(f"Upload rejected for {request.url}: {exc}")
    return _error(400, "upload_error", str(exc))


@app.exception_handler(KeyError)
async def not_found_handler(request: Request, exc: KeyError):
    message = exc.args[0] if exc.args else "Not found"
    return _error(404, "not_found", str(message))


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"Bad request for {request.url}: {exc}")
    return _error(400, "bad_request", str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle unexpected errors gracefully.
    """
    logger.error(f"Unexpected error for {request.url}: {exc}")
    return _error(500, "internal_server_error", "An unexpected error occurred")


app.include_router(map_router)
app.include_router(uploads_router)


@app.get("/", tags=["general"])
async def root():
    """
    API root endpoint with basic information.
    """
    return {
        "api": "Noise Map API",
        "version": __version__,
        "status": "operational",
        "documentation": "/docs",
        "health_check": "/health",
        "map": "/api/map/view",
        "coverage_area": "Trinidad & Tobago"
    }


@app.get("/health", tags=["general"])
async def api_health():
    """
    Service health including complaint data status.
    """
    return map_service.get_health_status()


if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
