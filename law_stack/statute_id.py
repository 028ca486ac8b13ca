"""
Statute ID resolution.

Resolves fuzzy document references (SR numbers, abbreviations, titles in any
of the official languages or English) to canonical legal_documents IDs.

Resolution order, first match wins:
    1. exact ID            'sr-235-1', 'SR-235-1'
    2. SR number           'SR 235.1', '235.1'
    3. title substring     'Datenschutz' (title, short_name, title_en; case-sensitive)
    4. same, case-insensitive

Multiple candidates are not ranked: the first row in store order wins.
"""
from __future__ import annotations

import logging
import re
import sqlite3

logger = logging.getLogger(__name__)

SR_NUMBER_PATTERN = re.compile(r"(?:SR\s*)?(\d+(?:\.\d+)*)", re.IGNORECASE)

# Searched in priority order for title matches
TITLE_COLUMNS = ("title", "short_name", "title_en")


def extract_sr_number(reference: str) -> str | None:
    """Return the first dotted SR numbering token in ``reference``, if any."""
    m = SR_NUMBER_PATTERN.search(reference or "")
    return m.group(1) if m else None


def resolve_document_id(conn: sqlite3.Connection, reference: str) -> str | None:
    """Resolve a document reference to a document ID, or None if nothing matches."""
    if not isinstance(reference, str):
        raise TypeError(f"document reference must be a string, got {type(reference).__name__}")

    trimmed = reference.strip()
    if not trimmed:
        return None

    row = conn.execute(
        "SELECT id FROM legal_documents WHERE id = ? COLLATE NOCASE ORDER BY rowid LIMIT 1",
        (trimmed,),
    ).fetchone()
    if row:
        return row[0]

    sr_number = extract_sr_number(trimmed)
    if sr_number:
        row = conn.execute(
            """SELECT id FROM legal_documents
               WHERE id LIKE ? OR short_name LIKE ?
               ORDER BY rowid LIMIT 1""",
            (f"%sr-{sr_number.replace('.', '-')}%", f"%{sr_number}%"),
        ).fetchone()
        if row:
            return row[0]

    # instr() is case-sensitive, unlike LIKE
    for column in TITLE_COLUMNS:
        row = conn.execute(
            f"SELECT id FROM legal_documents WHERE instr({column}, ?) > 0 ORDER BY rowid LIMIT 1",
            (trimmed,),
        ).fetchone()
        if row:
            return row[0]

    _register_casefold(conn)
    needle = trimmed.casefold()
    for column in TITLE_COLUMNS:
        row = conn.execute(
            f"""SELECT id FROM legal_documents
                WHERE instr(py_casefold({column}), ?) > 0
                ORDER BY rowid LIMIT 1""",
            (needle,),
        ).fetchone()
        if row:
            return row[0]

    logger.debug("No document matches reference %r", trimmed)
    return None


def _register_casefold(conn: sqlite3.Connection) -> None:
    # SQLite's lower() only folds ASCII; titles carry umlauts and accents.
    conn.create_function("py_casefold", 1, _casefold, deterministic=True)


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value
