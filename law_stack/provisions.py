"""Provision lookup within a resolved statute."""
from __future__ import annotations

import re
import sqlite3

from .statute_id import resolve_document_id

_ARTICLE_PREFIX = re.compile(r"^(?:art(?:ikel|icle)?\.?)\s*", re.IGNORECASE)

PROVISION_FIELDS = "id, document_id, provision_ref, chapter, section, title, content"


def normalize_article_token(ref: str) -> str:
    """'Art. 143 bis' -> '143bis', 'art6' -> '6', '5a' -> '5a'."""
    token = _ARTICLE_PREFIX.sub("", ref.strip())
    return re.sub(r"\s+", "", token).lower()


def find_provision(
    conn: sqlite3.Connection,
    document_id: str,
    ref: str,
) -> sqlite3.Row | None:
    """
    Find a provision of ``document_id`` matching ``ref``.

    A reference matches under any of three encodings: the raw token
    ('art6' or '6'), the art-prefixed token ('art6'), or the section label ('6').
    """
    raw = ref.strip()
    token = normalize_article_token(raw)
    if not raw or not token:
        return None
    return conn.execute(
        f"""SELECT {PROVISION_FIELDS} FROM legal_provisions
            WHERE document_id = ?
              AND (provision_ref = ? OR provision_ref = ? OR section = ? OR section = ?)
            ORDER BY id LIMIT 1""",
        (document_id, raw, f"art{token}", token, raw),
    ).fetchone()


def get_document_row(conn: sqlite3.Connection, document_id: str) -> sqlite3.Row | None:
    return conn.execute(
        """SELECT id, title, title_en, short_name, status, issued_date,
                  in_force_date, url
           FROM legal_documents WHERE id = ?""",
        (document_id,),
    ).fetchone()


def get_provision(
    conn: sqlite3.Connection,
    document_id: str,
    section: str | None = None,
    provision_ref: str | None = None,
) -> dict:
    """Fetch one provision, or every provision of the statute when no ref is given."""
    doc_id = resolve_document_id(conn, document_id)
    if not doc_id:
        return {
            "found": False,
            "document_id": document_id,
            "warnings": [f'Document not found: "{document_id}"'],
        }
    doc = get_document_row(conn, doc_id)
    document = {
        "document_id": doc["id"],
        "document_title": doc["title"],
        "document_title_en": doc["title_en"],
        "short_name": doc["short_name"],
        "status": doc["status"],
        "url": doc["url"],
    }

    ref = provision_ref or section
    if ref is None:
        rows = conn.execute(
            f"SELECT {PROVISION_FIELDS} FROM legal_provisions WHERE document_id = ? ORDER BY id",
            (doc_id,),
        ).fetchall()
        return {
            "found": True,
            **document,
            "provision_count": len(rows),
            "provisions": [_provision_dict(r) for r in rows],
        }

    row = find_provision(conn, doc_id, ref)
    if row is None:
        return {
            "found": False,
            **document,
            "provision_ref": ref,
            "warnings": [f'Provision "{ref}" not found in {doc["title"]}'],
        }
    return {"found": True, **document, **_provision_dict(row)}


def _provision_dict(row: sqlite3.Row) -> dict:
    return {
        "provision_ref": row["provision_ref"],
        "chapter": row["chapter"],
        "section": row["section"],
        "title": row["title"],
        "content": row["content"],
    }
