#!/usr/bin/env python3
"""
Noise Map - Command Line Interface

Builds a static interactive HTML map from the published complaint sheets,
the overlay catalog and optionally a local file.
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import MapConfig, SUPPORTED_CRS, WGS84
from .data.source_reader import UploadError
from .map_session import MapSession
from .uploads import UploadConfig, UploadPipeline

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trinidad & Tobago Noise Map builder")
    parser.add_argument("--output", default="noise_map.html", help="Output HTML file")
    parser.add_argument("--mode", default="categories", choices=["categories", "heatmap"],
                        help="Complaint display mode")
    parser.add_argument("--labels", action="store_true", help="Show complaint location labels")
    parser.add_argument("--no-complaints", action="store_true", help="Hide the complaint layer")
    parser.add_argument("--overlay", action="append", default=[], metavar="ID",
                        help="Overlay id to show (repeatable)")
    parser.add_argument("--roads", action="store_true", help="Show major roads")
    parser.add_argument("--satellite", action="store_true", help="Start on satellite imagery")
    parser.add_argument("--upload", help="CSV, GeoJSON or zipped shapefile to add as a layer")
    parser.add_argument("--upload-crs", default=WGS84, choices=sorted(SUPPORTED_CRS),
                        help="Coordinate system of the uploaded file")
    parser.add_argument("--offline", action="store_true", help="Skip remote sheets and overlays")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Build the map and write it to disk."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = MapConfig.create_offline_config() if args.offline else MapConfig.create_default_config()
    config.validate()
    session = MapSession(config)

    if not args.offline:
        session.load_overlays()
        if not session.load_complaints():
            logger.warning("Complaint data unavailable; building map without complaint points")

    if args.satellite:
        session.toggle_basemap()

    session.set_display_mode(args.mode)
    session.set_labels_visible(args.labels)
    session.set_complaints_visible(not args.no_complaints)

    for overlay_id in args.overlay:
        try:
            session.set_overlay_visible(overlay_id, True)
        except KeyError:
            logger.warning(f"Overlay {overlay_id} is not loaded; skipping")

    if args.roads:
        session.set_roads_visible(True)

    if args.upload:
        path = Path(args.upload)
        pipeline = UploadPipeline()
        try:
            staged = pipeline.stage(path.name, path.read_bytes())
            preview = staged.preview()
            layer = pipeline.apply(staged.token, UploadConfig(
                name=path.stem,
                label_field=preview['suggested_label_field'],
                style_field=preview['suggested_style_field'],
                crs=preview['suggested_crs'] or args.upload_crs
            ))
        except (OSError, UploadError) as e:
            logger.error(f"Could not add {path}: {e}")
            return 1
        session.add_uploaded_layer(layer)

    session.builder.save_interactive_html(session.build_map(), args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
