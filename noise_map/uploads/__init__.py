"""
User file uploads: staging, configuration and layer building.
"""

from .pipeline import (
    StaleUploadError,
    StagedUpload,
    UploadConfig,
    UploadedLayer,
    UploadPipeline,
    build_uploaded_layer
)

__all__ = [
    'StaleUploadError',
    'StagedUpload',
    'UploadConfig',
    'UploadedLayer',
    'UploadPipeline',
    'build_uploaded_layer'
]
