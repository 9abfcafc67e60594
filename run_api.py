#!/usr/bin/env python3
"""
Startup script for the Noise Map API server.

Set NOISE_MAP_OFFLINE=1 to start without fetching remote sheets and overlays.
"""

import os
import uvicorn
import argparse


def main():
    """Start the FastAPI server."""
    parser = argparse.ArgumentParser(description="Noise Map API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--offline", action="store_true", help="Skip remote sheets and overlays")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"],
                        help="Log level")

    args = parser.parse_args()

    if args.offline:
        os.environ["NOISE_MAP_OFFLINE"] = "1"

    print(f"Noise Map API on http://{args.host}:{args.port} (map at /api/map/view, docs at /docs)")

    os.chdir(os.path.dirname(os.path.abspath(__file__)))

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        access_log=True
    )


if __name__ == "__main__":
    main()
