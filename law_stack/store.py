"""
Read-only handle on the legislation database.

Opened once per process and shared by every tool call. Capabilities and the
freshness timestamp are read at open time and never change afterwards.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from .capabilities import Capability, detect_capabilities
from .metadata import read_freshness

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LawStore:
    conn: sqlite3.Connection
    capabilities: frozenset[Capability]
    freshness: str | None = None

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def close(self) -> None:
        self.conn.close()


def connect(db_path: Path) -> sqlite3.Connection:
    """Open the SQLite database read-only."""
    if not db_path.exists():
        raise FileNotFoundError(
            f"Database not found at {db_path}. Build it with: python build_db.py --output {db_path}"
        )
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA query_only = ON")  # read-only for safety
    return conn


def store_from_connection(conn: sqlite3.Connection) -> LawStore:
    conn.row_factory = sqlite3.Row
    capabilities = detect_capabilities(conn)
    freshness = read_freshness(conn) if Capability.BUILD_METADATA in capabilities else None
    return LawStore(conn=conn, capabilities=capabilities, freshness=freshness)


def open_store(db_path: Path) -> LawStore:
    store = store_from_connection(connect(db_path))
    logger.info(
        "Opened %s (built %s)",
        db_path,
        store.freshness or "unknown",
    )
    return store
