"""
Loading of the published complaint spreadsheets.

All sheets are fetched concurrently and merged; the merge only completes
when every sheet has loaded.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
import requests

from .complaints import EASTING_FIELD, NORTHING_FIELD
from .field_inference import is_blank

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], str]


def fetch_text(url: str, timeout: float = 30.0) -> str:
    """GET a URL and return its body as text."""
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def parse_sheet(text: str) -> List[Dict[str, Any]]:
    """
    Parse exported sheet CSV, keeping only rows that carry both Easting and Northing.

    Values are kept as strings.
    """
    frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    rows = frame.to_dict(orient='records')
    return [
        row for row in rows
        if not is_blank(row.get(EASTING_FIELD)) and not is_blank(row.get(NORTHING_FIELD))
    ]


def load_sheet(url: str, fetch: Optional[Fetcher] = None) -> List[Dict[str, Any]]:
    """Load a single sheet URL."""
    fetch = fetch or fetch_text
    return parse_sheet(fetch(url))


def load_all_sheets(urls: List[str], fetch: Optional[Fetcher] = None,
                    max_workers: int = 4) -> List[Dict[str, Any]]:
    """
    Load and merge all sheet URLs.

    Raises:
        Exception: The first failure of any sheet; partial results are discarded
    """
    if not urls:
        return []

    with ThreadPoolExecutor(max_workers=min(max_workers, len(urls))) as executor:
        results = list(executor.map(lambda url: load_sheet(url, fetch), urls))

    rows = [row for sheet_rows in results for row in sheet_rows]
    logger.info(f"Loaded {len(rows)} rows from {len(urls)} sheet(s)")
    return rows
