"""Response metadata attached to every tool result."""
from __future__ import annotations

import logging
import sqlite3
from typing import Any

from models import ResponseMetadata

logger = logging.getLogger(__name__)

DATA_SOURCE = "Fedlex (fedlex.admin.ch), Swiss Federal Chancellery"
JURISDICTION = "CH"
DISCLAIMER = (
    "This data is sourced from Fedlex under Open Government Data principles. "
    "The authoritative versions are in German, French, and Italian. "
    "English translations are unofficial. Always verify with the official Fedlex portal."
)


def read_freshness(conn: sqlite3.Connection) -> str | None:
    """Build timestamp from db_metadata, or None when the store does not record one."""
    try:
        row = conn.execute("SELECT value FROM db_metadata WHERE key = 'built_at'").fetchone()
    except sqlite3.OperationalError as e:
        logger.debug("No build timestamp available: %s", e)
        return None
    return row[0] if row else None


def generate_response_metadata(freshness: str | None = None) -> dict[str, Any]:
    meta = ResponseMetadata(
        data_source=DATA_SOURCE,
        jurisdiction=JURISDICTION,
        disclaimer=DISCLAIMER,
        freshness=freshness,
    )
    return meta.model_dump(exclude_none=True)


def tool_response(results: Any, freshness: str | None = None) -> dict[str, Any]:
    """Wrap a result in the uniform ``{results, _metadata}`` envelope."""
    return {"results": results, "_metadata": generate_response_metadata(freshness)}
