"""
Legal stance builder: breadth-first citation sets for a research question.

Runs one provision search with the maximum candidate count and groups the
hits by statute, so the caller sees several statutes touching the topic
rather than many articles from the same one.
"""
from __future__ import annotations

import sqlite3

from .definitions import search_definitions
from .legislation_search import MAX_LIMIT, clamp_limit, search_legislation
from .statute_id import resolve_document_id

DEFAULT_STANCE_LIMIT = 5
MAX_STANCE_LIMIT = 20


def build_legal_stance(
    conn: sqlite3.Connection,
    query: str,
    document_id: str | None = None,
    limit: int = DEFAULT_STANCE_LIMIT,
    include_definitions: bool = False,
) -> dict:
    limit = clamp_limit(limit, DEFAULT_STANCE_LIMIT, MAX_STANCE_LIMIT)

    resolved = None
    if document_id:
        resolved = resolve_document_id(conn, document_id)
        if not resolved:
            return {
                "query": query,
                "document_id": document_id,
                "total_citations": 0,
                "documents": [],
                "warnings": [f'Document not found: "{document_id}"'],
            }

    hits = search_legislation(conn, query, document_id=resolved, limit=MAX_LIMIT)

    groups: dict[str, dict] = {}
    for hit in hits:
        group = groups.get(hit["document_id"])
        if group is None:
            group = groups[hit["document_id"]] = {
                "document_id": hit["document_id"],
                "document_title": hit["document_title"],
                "short_name": hit["short_name"],
                "status": hit["status"],
                "provisions": [],
            }
        if len(group["provisions"]) >= limit:
            continue
        label = hit["short_name"] or hit["document_title"]
        group["provisions"].append({
            "provision_ref": hit["provision_ref"],
            "section": hit["section"],
            "title": hit["title"],
            "snippet": hit["snippet"],
            "relevance_score": hit["relevance_score"],
            "citation": f"Art. {hit['section']} {label}",
        })

    documents = list(groups.values())
    stance = {
        "query": query,
        "document_id": resolved,
        "total_citations": sum(len(d["provisions"]) for d in documents),
        "documents": documents,
    }
    if include_definitions:
        stance["definitions"] = search_definitions(conn, query, document_id=resolved, limit=limit)
    return stance
