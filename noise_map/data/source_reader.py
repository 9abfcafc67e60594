"""
Readers that normalize user-supplied files into rows or a FeatureCollection.

Supported inputs:
- Delimited text with a header row (.csv, .txt)
- GeoJSON documents (.geojson, .json): FeatureCollection, Feature or bare Geometry
- Zipped shapefile bundles (.zip)
"""

import csv
import io
import json
import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import geopandas as gpd
import pandas as pd

from .field_inference import (
    classify_geometry_type,
    feature_geometry_types,
    guess_label_field,
    is_blank,
    property_keys,
    propose_style_field
)
from ..config.map_config import UTM_20N, WGS84

logger = logging.getLogger(__name__)

GEOMETRY_TYPES = {
    'Point', 'MultiPoint', 'LineString', 'MultiLineString',
    'Polygon', 'MultiPolygon', 'GeometryCollection'
}


class UploadError(ValueError):
    """Raised when a user-supplied file cannot be turned into a layer."""


@dataclass
class SourceData:
    """Normalized result of reading a source file."""
    kind: str  # 'csv', 'geojson' or 'shapefile'
    geometry_type: str  # 'point', 'line' or 'polygon'
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    feature_collection: Optional[Dict[str, Any]] = None
    suggested_crs: Optional[str] = None

    @property
    def features(self) -> List[Dict[str, Any]]:
        if self.feature_collection is None:
            return []
        return self.feature_collection['features']

    @property
    def record_count(self) -> int:
        return len(self.rows) if self.kind == 'csv' else len(self.features)

    @property
    def label_field(self) -> Optional[str]:
        return guess_label_field(self._property_bags())

    @property
    def style_field(self) -> Optional[str]:
        return propose_style_field(self._property_bags(), self.label_field)

    def _property_bags(self) -> List[Dict[str, Any]]:
        if self.kind == 'csv':
            return [{'properties': row} for row in self.rows[:1]]
        return self.features


class CsvSourceReader:
    """Delimited text with a header row; every value is kept as a string."""

    kind = 'csv'

    def read(self, content: bytes) -> SourceData:
        text = _decode(content)
        try:
            frame = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error) as e:
            raise UploadError(f"Could not parse delimited text: {e}") from e

        headers = [str(column) for column in frame.columns]
        rows = [
            {str(key): value for key, value in record.items()}
            for record in frame.to_dict(orient='records')
            if not all(is_blank(value) for value in record.values())
        ]

        if not rows:
            raise UploadError("The file contains no data rows")

        return SourceData(kind=self.kind, geometry_type='point', headers=headers, rows=rows)


class GeoJsonSourceReader:
    """GeoJSON FeatureCollection, Feature or bare Geometry."""

    kind = 'geojson'

    def read(self, content: bytes) -> SourceData:
        try:
            data = json.loads(_decode(content))
        except json.JSONDecodeError as e:
            raise UploadError(f"Invalid JSON: {e}") from e

        feature_collection = normalize_feature_collection(data)
        return _feature_source(self.kind, feature_collection)


class ShapefileSourceReader:
    """Zipped shapefile bundle (.shp, .shx, .dbf and optionally .prj)."""

    kind = 'shapefile'

    def read(self, content: bytes) -> SourceData:
        with tempfile.TemporaryDirectory() as tmpdir:
            try:
                with zipfile.ZipFile(io.BytesIO(content)) as bundle:
                    bundle.extractall(tmpdir)
            except zipfile.BadZipFile as e:
                raise UploadError(f"Not a valid zip archive: {e}") from e

            shp_path = _find_shp(tmpdir)
            if shp_path is None:
                raise UploadError("The zip archive does not contain a .shp file")

            try:
                gdf = gpd.read_file(shp_path)
            except Exception as e:
                raise UploadError(f"Could not read shapefile: {e}") from e

        suggested_crs = _suggest_crs(gdf)
        feature_collection = normalize_feature_collection(json.loads(gdf.to_json(drop_id=True)))
        source = _feature_source(self.kind, feature_collection)
        source.suggested_crs = suggested_crs
        return source


def _decode(content: bytes) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode('utf-8-sig')
    except UnicodeDecodeError:
        return content.decode('latin-1')


def _find_shp(directory: str) -> Optional[str]:
    for root, _dirs, files in os.walk(directory):
        for name in sorted(files):
            if name.lower().endswith('.shp') and not name.startswith('._'):
                return os.path.join(root, name)
    return None


def _suggest_crs(gdf: gpd.GeoDataFrame) -> Optional[str]:
    if gdf.crs is None:
        return None
    epsg = gdf.crs.to_epsg()
    if epsg == 32620:
        return UTM_20N
    if epsg == 4326:
        return WGS84
    logger.warning(f"Shapefile CRS {gdf.crs} is not supported; choose the coordinate system manually")
    return None


def _feature_source(kind: str, feature_collection: Dict[str, Any]) -> SourceData:
    features = feature_collection['features']
    return SourceData(
        kind=kind,
        geometry_type=classify_geometry_type(feature_geometry_types(features)),
        headers=property_keys(features),
        feature_collection=feature_collection
    )


def normalize_feature_collection(data: Any) -> Dict[str, Any]:
    """
    Normalize FeatureCollection / Feature / bare Geometry into a FeatureCollection.

    Raises:
        UploadError: If the document yields no features
    """
    if not isinstance(data, dict):
        raise UploadError("GeoJSON document must be an object")

    doc_type = data.get('type')
    if doc_type == 'FeatureCollection':
        raw_features = data.get('features') or []
    elif doc_type == 'Feature':
        raw_features = [data]
    elif doc_type in GEOMETRY_TYPES:
        raw_features = [{'type': 'Feature', 'geometry': data, 'properties': {}}]
    else:
        raw_features = []

    features = [
        {
            'type': 'Feature',
            'geometry': raw.get('geometry'),
            'properties': raw.get('properties') if isinstance(raw.get('properties'), dict) else {},
        }
        for raw in raw_features
        if isinstance(raw, dict)
    ]

    if not features:
        raise UploadError("No features found in the uploaded file")

    return {'type': 'FeatureCollection', 'features': features}


READERS = {
    '.csv': CsvSourceReader,
    '.txt': CsvSourceReader,
    '.geojson': GeoJsonSourceReader,
    '.json': GeoJsonSourceReader,
    '.zip': ShapefileSourceReader,
}


def read_source(filename: str, content: bytes) -> SourceData:
    """
    Read an uploaded file into SourceData.

    Args:
        filename: Original filename, used to pick the reader
        content: Raw file bytes

    Raises:
        UploadError: For unsupported files or unusable content
    """
    ext = os.path.splitext(filename or '')[1].lower()
    if ext == '.shp':
        raise UploadError(
            "Shapefiles must be uploaded as a .zip containing the .shp, .shx, .dbf "
            "(and ideally .prj) files"
        )

    reader_cls = READERS.get(ext)
    if reader_cls is None:
        raise UploadError(f"Unsupported file type '{ext or filename}'. Upload a CSV, GeoJSON or zipped shapefile")

    source = reader_cls().read(content)
    logger.info(f"Read {source.record_count} {source.geometry_type} records from {filename} ({source.kind})")
    return source
