"""
Capability detection on the store schema.

Optional tables decide which tools are offered. Detection runs once when the
database is opened; the resulting set is static for the process lifetime.
"""
from __future__ import annotations

import logging
import sqlite3
from enum import Enum

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    CORE_LEGISLATION = "core_legislation"
    FULL_TEXT_SEARCH = "full_text_search"
    DEFINITIONS = "definitions"
    EU_REFERENCES = "eu_references"
    BUILD_METADATA = "build_metadata"


# Capability -> tables that must all exist
REQUIRED_TABLES: dict[Capability, tuple[str, ...]] = {
    Capability.CORE_LEGISLATION: ("legal_documents", "legal_provisions"),
    Capability.FULL_TEXT_SEARCH: ("provisions_fts",),
    Capability.DEFINITIONS: ("definitions",),
    Capability.EU_REFERENCES: ("eu_documents", "eu_references"),
    Capability.BUILD_METADATA: ("db_metadata",),
}

UPGRADE_MESSAGES: dict[Capability, str] = {
    Capability.FULL_TEXT_SEARCH: "this database has no full-text index (provisions_fts).",
    Capability.DEFINITIONS: "this database has no definitions table.",
    Capability.EU_REFERENCES: "this database has no EU cross-reference tables.",
}


def detect_capabilities(conn: sqlite3.Connection) -> frozenset[Capability]:
    tables = {
        row[0]
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type IN ('table', 'view')"
        ).fetchall()
    }
    caps = frozenset(
        cap for cap, required in REQUIRED_TABLES.items()
        if all(t in tables for t in required)
    )
    logger.info("Detected capabilities: %s", ", ".join(sorted(c.value for c in caps)) or "none")
    return caps


def upgrade_message(tool_name: str, missing: Capability) -> str:
    reason = UPGRADE_MESSAGES.get(missing, f"this database lacks {missing.value}.")
    return f"Tool '{tool_name}' is not available: {reason} Rebuild the database with build_db.py."
