"""
Concurrent loading of the remote GeoJSON overlays.

Each overlay is an independent failure domain: a failed fetch is logged and
the remaining overlays still load.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional

import requests

from ..config.overlay_catalog import OverlayConfig

logger = logging.getLogger(__name__)

JsonFetcher = Callable[[str], Dict[str, Any]]


def fetch_json(url: str, timeout: float = 30.0) -> Dict[str, Any]:
    """GET a URL and decode its JSON body."""
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.json()


def load_overlays(overlays: List[OverlayConfig], fetch: Optional[JsonFetcher] = None,
                  max_workers: int = 8,
                  on_loaded: Optional[Callable[[OverlayConfig, Dict[str, Any]], None]] = None
                  ) -> Dict[str, Dict[str, Any]]:
    """
    Fetch all overlays concurrently.

    Args:
        overlays: Overlay configurations to fetch
        fetch: URL -> decoded GeoJSON (defaults to an HTTP GET)
        max_workers: Thread pool size
        on_loaded: Optional callback invoked (in the calling thread) per loaded overlay

    Returns:
        Mapping of overlay id to GeoJSON data for overlays that loaded
    """
    fetch = fetch or fetch_json
    loaded: Dict[str, Dict[str, Any]] = {}
    if not overlays:
        return loaded

    with ThreadPoolExecutor(max_workers=min(max_workers, len(overlays))) as executor:
        futures = {executor.submit(fetch, overlay.url): overlay for overlay in overlays}
        for future in as_completed(futures):
            overlay = futures[future]
            try:
                data = future.result()
            except Exception as e:
                logger.error(f"Error loading layer {overlay.id}: {e}")
                continue

            loaded[overlay.id] = data
            if on_loaded is not None:
                on_loaded(overlay, data)

    logger.info(f"Loaded {len(loaded)}/{len(overlays)} overlays")
    return loaded
