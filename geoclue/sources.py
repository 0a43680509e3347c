"""
JSON source fetching for INIT and the offline generator.

A source is either an http(s) URL (fetched with requests) or a local
file path. Both the world geometry and the distance matrix go through
fetch_json().
"""

import json
import logging
from pathlib import Path
from typing import Any, Union
from urllib.parse import urlparse

import requests

logger = logging.getLogger("GeoClue.Sources")

# Connect timeout only; large geometry downloads may take a while to stream
CONNECT_TIMEOUT_S = 10


def is_url(source: Union[str, Path]) -> bool:
    """True for http(s) URLs, False for local paths."""
    return urlparse(str(source)).scheme in ("http", "https")


def fetch_json(source: Union[str, Path]) -> Any:
    """
    Fetch and parse a JSON document from a URL or local path.

    Args:
        source: http(s) URL or filesystem path

    Returns:
        Parsed JSON value

    Raises:
        requests.RequestException: Network or HTTP status failure
        OSError: Local file could not be read
        ValueError: Body is not valid JSON
    """
    if is_url(source):
        logger.info(f"🌐 Fetching {source}")
        response = requests.get(str(source), timeout=(CONNECT_TIMEOUT_S, None))
        response.raise_for_status()
        return response.json()

    path = Path(source)
    logger.info(f"📂 Reading {path}")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
