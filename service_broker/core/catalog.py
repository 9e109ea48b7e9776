"""Service catalog core logic."""

from __future__ import annotations

import json
import logging

logger = logging.getLogger(__name__)


def load_catalog(path: str) -> dict:
    """Read and parse the catalog template. Raises OSError/ValueError."""
    with open(path, encoding="utf-8") as fh:
        catalog = json.load(fh)
    if not isinstance(catalog, dict) or not isinstance(catalog.get("services"), list):
        raise ValueError(f"Catalog at {path} has no 'services' list")
    return catalog


def get_catalog(catalog_path: str) -> dict:
    """Return the advertised services and plans, unmodified."""
    try:
        catalog = load_catalog(catalog_path)
    except (OSError, ValueError):
        logger.exception("Failed to load catalog from %s", catalog_path)
        return {"status_code": 500, "body": {}}

    return {"status_code": 200, "body": catalog}
