"""Term/definition lookup (only offered when the definitions table exists)."""
from __future__ import annotations

import sqlite3

from .legislation_search import clamp_limit
from .statute_id import resolve_document_id

DEFAULT_DEFINITIONS_LIMIT = 20
MAX_DEFINITIONS_LIMIT = 100


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_definitions(
    conn: sqlite3.Connection,
    term: str,
    document_id: str | None = None,
    limit: int = DEFAULT_DEFINITIONS_LIMIT,
) -> list[dict]:
    limit = clamp_limit(limit, DEFAULT_DEFINITIONS_LIMIT, MAX_DEFINITIONS_LIMIT)
    term = (term or "").strip()
    if not term:
        return []

    filters = ["d.term LIKE ? ESCAPE '\\'"]
    params: list = [_like_pattern(term)]
    if document_id:
        filters.append("d.document_id = ?")
        params.append(document_id)

    rows = conn.execute(
        f"""SELECT d.term, d.definition, d.source_provision, d.document_id,
                   ld.title AS document_title, ld.short_name
            FROM definitions d
            JOIN legal_documents ld ON ld.id = d.document_id
            WHERE {' AND '.join(filters)}
            ORDER BY length(d.term) ASC, d.id ASC
            LIMIT ?""",
        params + [limit],
    ).fetchall()
    return [dict(r) for r in rows]


def get_definitions(
    conn: sqlite3.Connection,
    term: str,
    document_id: str | None = None,
    limit: int = DEFAULT_DEFINITIONS_LIMIT,
) -> dict:
    resolved = None
    if document_id:
        resolved = resolve_document_id(conn, document_id)
        if not resolved:
            return {
                "term": term,
                "definitions": [],
                "warnings": [f'Document not found: "{document_id}"'],
            }
    definitions = search_definitions(conn, term, document_id=resolved, limit=limit)
    return {"term": term, "document_id": resolved, "definitions": definitions}
