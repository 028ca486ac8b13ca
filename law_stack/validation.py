"""
Citation validation against the statute database.

Parses the citation, resolves the statute, overlays lifecycle warnings and
checks that the cited article exists. Failures are reported through
``valid`` and ``warnings``; nothing here raises for bad or unknown input.
"""
from __future__ import annotations

import sqlite3

from models import ValidationResult

from .citation_parser import parse_citation
from .currency import status_warnings
from .provisions import find_provision, get_document_row
from .statute_id import resolve_document_id


def validate_citation(conn: sqlite3.Connection, citation: str) -> ValidationResult:
    parsed = parse_citation(citation)
    if parsed is None:
        return ValidationResult(
            valid=False,
            citation=citation,
            warnings=["Could not parse citation format"],
        )

    doc_id = resolve_document_id(conn, parsed.document_ref)
    if not doc_id:
        return ValidationResult(
            valid=False,
            citation=citation,
            warnings=[f'Document not found: "{parsed.document_ref}"'],
        )

    doc = get_document_row(conn, doc_id)
    warnings = status_warnings(doc["status"], doc["in_force_date"])

    if not parsed.article_ref:
        return ValidationResult(
            valid=True,
            citation=citation,
            normalized=doc["title"],
            document_id=doc_id,
            document_title=doc["title"],
            status=doc["status"],
            warnings=warnings,
        )

    provision = find_provision(conn, doc_id, parsed.article_ref)
    if provision is None:
        warnings.append(f'Provision "{parsed.article_ref}" not found in {doc["title"]}')
        return ValidationResult(
            valid=False,
            citation=citation,
            document_id=doc_id,
            document_title=doc["title"],
            status=doc["status"],
            warnings=warnings,
        )

    return ValidationResult(
        valid=True,
        citation=citation,
        normalized=f"Art. {parsed.article_ref} {doc['title']}",
        document_id=doc_id,
        document_title=doc["title"],
        provision_ref=provision["provision_ref"],
        status=doc["status"],
        warnings=warnings,
    )
