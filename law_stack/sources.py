"""Provenance (list_sources) and server self-description (about)."""
from __future__ import annotations

import sqlite3

from .capabilities import Capability, REQUIRED_TABLES
from .metadata import DATA_SOURCE, DISCLAIMER, JURISDICTION

SERVER_NAME = "swiss-law-mcp"
SERVER_LABEL = "Swiss Law MCP"
SERVER_VERSION = "1.1.0"

FEDLEX_SOURCE = {
    "name": "Fedlex",
    "authority": "Swiss Federal Chancellery",
    "url": "https://www.fedlex.admin.ch",
    "license": "Open Government Data (OGD), free reuse with attribution",
    "coverage": "Federal statutes and ordinances of the Systematic Compilation (SR)",
    "languages": ["de", "fr", "it", "en"],
    "limitations": [
        "English translations are unofficial and not available for every act.",
        "Cantonal law is not covered.",
        "Historical versions are not tracked; only the consolidated text at build time.",
        "EU cross-references are curated and may be incomplete.",
    ],
}

# Tables counted in dataset statistics, in report order
COUNTED_TABLES = (
    ("legal_documents", "documents"),
    ("legal_provisions", "provisions"),
    ("definitions", "definitions"),
    ("eu_documents", "eu_documents"),
    ("eu_references", "eu_references"),
)


def dataset_statistics(conn: sqlite3.Connection, capabilities: frozenset[Capability]) -> dict:
    present = {t for cap in capabilities for t in REQUIRED_TABLES[cap]}
    stats: dict = {}
    for table, label in COUNTED_TABLES:
        if table in present:
            stats[label] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    if Capability.CORE_LEGISLATION in capabilities:
        rows = conn.execute(
            "SELECT status, COUNT(*) AS n FROM legal_documents GROUP BY status ORDER BY n DESC, status"
        ).fetchall()
        stats["documents_by_status"] = {r["status"]: r["n"] for r in rows}
    return stats


def list_sources(
    conn: sqlite3.Connection,
    capabilities: frozenset[Capability],
    freshness: str | None = None,
) -> dict:
    result = {
        "sources": [FEDLEX_SOURCE],
        "jurisdiction": JURISDICTION,
        "statistics": dataset_statistics(conn, capabilities),
        "disclaimer": DISCLAIMER,
    }
    if freshness:
        result["built_at"] = freshness
    return result


def about(
    conn: sqlite3.Connection,
    capabilities: frozenset[Capability],
    tools: list[str],
    freshness: str | None = None,
) -> dict:
    result = {
        "server": {
            "name": SERVER_NAME,
            "label": SERVER_LABEL,
            "version": SERVER_VERSION,
        },
        "jurisdiction": JURISDICTION,
        "data_source": DATA_SOURCE,
        "capabilities": sorted(c.value for c in capabilities),
        "tools": tools,
        "statistics": dataset_statistics(conn, capabilities),
    }
    if freshness:
        result["freshness"] = freshness
    return result
