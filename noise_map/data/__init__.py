"""
Data loading and processing for the noise map.

This module contains:
- Complaint records and severity classification
- Source readers for uploaded CSV / GeoJSON / zipped shapefiles
- Field inference heuristics
- Remote sheet and overlay loaders
"""

from .complaints import ComplaintPoint, classify, build_complaint_points
from .field_inference import guess_label_field, classify_geometry_type, lookup_alias
from .source_reader import SourceData, UploadError, read_source
from .sheet_loader import load_all_sheets
from .overlay_loader import load_overlays

__all__ = [
    'ComplaintPoint',
    'classify',
    'build_complaint_points',
    'guess_label_field',
    'classify_geometry_type',
    'lookup_alias',
    'SourceData',
    'UploadError',
    'read_source',
    'load_all_sheets',
    'load_overlays'
]
