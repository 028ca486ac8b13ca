"""
EU cross-references for Swiss legislation.

Switzerland is not an EU member; alignment happens through bilateral
agreements and autonomous adaptation (nFADP ~ GDPR, ZertES ~ eIDAS).
The eu_references table records each Swiss-document -> EU-act edge,
optionally pinned to a single Swiss provision.

Compliance classification (validate_eu_compliance):
    not_applicable  no EU references at all
    unclear         references exist, none with a definite type
    partial         some, but not all, references have a definite type
    compliant       every reference has a definite type
Definite types name an actual alignment relation (implements, aligns_with,
complies_with, supplements, applies); 'references', 'cites_article' or an
empty type do not.
"""
from __future__ import annotations

import re
import sqlite3
from enum import Enum

from models import DocumentStatus, EUDocumentType

from .currency import check_currency
from .errors import InvalidArgumentsError
from .legislation_search import clamp_limit
from .provisions import find_provision, get_document_row
from .statute_id import resolve_document_id

DEFINITE_REFERENCE_TYPES = frozenset({
    "implements", "aligns_with", "complies_with", "supplements", "applies",
})

DEFAULT_EU_SEARCH_LIMIT = 20
MAX_EU_SEARCH_LIMIT = 100

_EU_NUMBER_PATTERN = re.compile(r"(\d{4})\s*/\s*(\d+)")


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    PARTIAL = "partial"
    UNCLEAR = "unclear"
    NOT_APPLICABLE = "not_applicable"


def classify_compliance(reference_types: list[str | None]) -> ComplianceStatus:
    if not reference_types:
        return ComplianceStatus.NOT_APPLICABLE
    definite = sum(1 for t in reference_types if t in DEFINITE_REFERENCE_TYPES)
    if definite == 0:
        return ComplianceStatus.UNCLEAR
    if definite < len(reference_types):
        return ComplianceStatus.PARTIAL
    return ComplianceStatus.COMPLIANT


_REFERENCE_SELECT = """
    SELECT
        er.id AS reference_id,
        er.document_id,
        er.provision_id,
        er.eu_document_id,
        er.eu_article,
        er.reference_type,
        er.is_primary_implementation,
        er.implementation_status,
        lp.provision_ref,
        ed.type AS eu_type,
        ed.year AS eu_year,
        ed.number AS eu_number,
        ed.title AS eu_title,
        ed.short_name AS eu_short_name,
        ed.url AS eu_url,
        ed.in_force AS eu_in_force
    FROM eu_references er
    LEFT JOIN eu_documents ed ON ed.id = er.eu_document_id
    LEFT JOIN legal_provisions lp ON lp.id = er.provision_id
"""


def resolve_eu_document_id(conn: sqlite3.Connection, reference: str) -> str | None:
    """Resolve 'regulation:2016/679', 'GDPR' or '2016/679' to an eu_documents ID."""
    if not isinstance(reference, str):
        raise TypeError(f"EU document reference must be a string, got {type(reference).__name__}")
    trimmed = reference.strip()
    if not trimmed:
        return None

    row = conn.execute(
        "SELECT id FROM eu_documents WHERE id = ? COLLATE NOCASE ORDER BY rowid LIMIT 1",
        (trimmed,),
    ).fetchone()
    if row:
        return row[0]

    row = conn.execute(
        "SELECT id FROM eu_documents WHERE short_name = ? COLLATE NOCASE ORDER BY rowid LIMIT 1",
        (trimmed,),
    ).fetchone()
    if row:
        return row[0]

    m = _EU_NUMBER_PATTERN.search(trimmed)
    if m:
        params: list = [int(m.group(1)), int(m.group(2))]
        type_filter = ""
        lowered = trimmed.lower()
        for eu_type in EUDocumentType:
            if eu_type.value in lowered:
                type_filter = " AND type = ?"
                params.append(eu_type.value)
                break
        row = conn.execute(
            f"SELECT id FROM eu_documents WHERE year = ? AND number = ?{type_filter} ORDER BY rowid LIMIT 1",
            params,
        ).fetchone()
        if row:
            return row[0]

    return None


def _eu_document_dict(row: sqlite3.Row) -> dict:
    return {
        "id": row["eu_document_id"],
        "type": row["eu_type"],
        "year": row["eu_year"],
        "number": row["eu_number"],
        "title": row["eu_title"],
        "short_name": row["eu_short_name"],
        "url": row["eu_url"],
    }


def _document_not_found(document_ref: str, **extra) -> dict:
    return {
        "found": False,
        "document_id": document_ref,
        **extra,
        "warnings": [f'Document not found: "{document_ref}"'],
    }


def get_eu_basis(
    conn: sqlite3.Connection,
    document_ref: str,
    include_articles: bool = False,
) -> dict:
    """EU acts a Swiss statute implements, aligns with or references."""
    doc_id = resolve_document_id(conn, document_ref)
    if not doc_id:
        return _document_not_found(document_ref, eu_documents=[])
    doc = get_document_row(conn, doc_id)

    rows = conn.execute(
        _REFERENCE_SELECT + " WHERE er.document_id = ? ORDER BY er.id",
        (doc_id,),
    ).fetchall()

    entries: dict[str, dict] = {}
    for row in rows:
        entry = entries.get(row["eu_document_id"])
        if entry is None:
            entry = entries[row["eu_document_id"]] = {
                **_eu_document_dict(row),
                "reference_type": row["reference_type"],
                "is_primary_implementation": False,
                "implementation_status": row["implementation_status"],
                "reference_count": 0,
            }
            if include_articles:
                entry["articles"] = []
                entry["swiss_provisions"] = []
        entry["reference_count"] += 1
        if row["is_primary_implementation"]:
            entry["is_primary_implementation"] = True
        if include_articles:
            if row["eu_article"] and row["eu_article"] not in entry["articles"]:
                entry["articles"].append(row["eu_article"])
            if row["provision_ref"] and row["provision_ref"] not in entry["swiss_provisions"]:
                entry["swiss_provisions"].append(row["provision_ref"])

    eu_documents = list(entries.values())
    return {
        "found": True,
        "document_id": doc_id,
        "document_title": doc["title"],
        "eu_documents": eu_documents,
        "statistics": {
            "total_eu_references": len(eu_documents),
            "directive_count": sum(1 for e in eu_documents if e["type"] == EUDocumentType.DIRECTIVE.value),
            "regulation_count": sum(1 for e in eu_documents if e["type"] == EUDocumentType.REGULATION.value),
        },
    }


def get_swiss_implementations(
    conn: sqlite3.Connection,
    eu_document_id: str,
    primary_only: bool = False,
    in_force_only: bool = False,
) -> dict:
    """Swiss statutes that reference a given EU act."""
    eu_id = resolve_eu_document_id(conn, eu_document_id)
    if not eu_id:
        return {
            "found": False,
            "eu_document_id": eu_document_id,
            "implementations": [],
            "warnings": [f'EU document not found: "{eu_document_id}"'],
        }

    eu_row = conn.execute(
        """SELECT id AS eu_document_id, type AS eu_type, year AS eu_year,
                  number AS eu_number, title AS eu_title,
                  short_name AS eu_short_name, url AS eu_url
           FROM eu_documents WHERE id = ?""",
        (eu_id,),
    ).fetchone()

    rows = conn.execute(
        """SELECT er.document_id, er.reference_type, er.is_primary_implementation,
                  er.implementation_status, er.eu_article,
                  ld.title, ld.title_en, ld.short_name, ld.status
           FROM eu_references er
           JOIN legal_documents ld ON ld.id = er.document_id
           WHERE er.eu_document_id = ?
           ORDER BY er.id""",
        (eu_id,),
    ).fetchall()

    implementations: dict[str, dict] = {}
    for row in rows:
        impl = implementations.get(row["document_id"])
        if impl is None:
            impl = implementations[row["document_id"]] = {
                "document_id": row["document_id"],
                "document_title": row["title"],
                "document_title_en": row["title_en"],
                "short_name": row["short_name"],
                "status": row["status"],
                "reference_type": row["reference_type"],
                "is_primary_implementation": False,
                "implementation_status": row["implementation_status"],
                "articles": [],
            }
        if row["is_primary_implementation"]:
            impl["is_primary_implementation"] = True
        if row["eu_article"] and row["eu_article"] not in impl["articles"]:
            impl["articles"].append(row["eu_article"])

    results = list(implementations.values())
    if primary_only:
        results = [r for r in results if r["is_primary_implementation"]]
    if in_force_only:
        results = [r for r in results if r["status"] == DocumentStatus.IN_FORCE.value]

    return {
        "found": True,
        "eu_document": _eu_document_dict(eu_row),
        "implementations": results,
        "statistics": {
            "total_implementations": len(results),
            "primary_implementations": sum(1 for r in results if r["is_primary_implementation"]),
            "in_force": sum(1 for r in results if r["status"] == DocumentStatus.IN_FORCE.value),
        },
    }


def search_eu_implementations(
    conn: sqlite3.Connection,
    query: str | None = None,
    type: str | None = None,
    year_from: int | None = None,
    year_to: int | None = None,
    has_swiss_implementation: bool | None = None,
    limit: int = DEFAULT_EU_SEARCH_LIMIT,
) -> dict:
    """Search the EU act catalogue, with the number of aligned Swiss statutes."""
    limit = clamp_limit(limit, DEFAULT_EU_SEARCH_LIMIT, MAX_EU_SEARCH_LIMIT)
    valid_types = tuple(t.value for t in EUDocumentType)
    if type is not None and type not in valid_types:
        raise InvalidArgumentsError(f"Unknown EU document type {type!r}; expected one of {', '.join(valid_types)}")

    filters: list[str] = []
    params: list = []
    if query and query.strip():
        pattern = f"%{query.strip()}%"
        filters.append("(ed.title LIKE ? OR ed.short_name LIKE ? OR ed.id LIKE ?)")
        params.extend([pattern, pattern, pattern])
    if type:
        filters.append("ed.type = ?")
        params.append(type)
    if year_from is not None:
        filters.append("ed.year >= ?")
        params.append(int(year_from))
    if year_to is not None:
        filters.append("ed.year <= ?")
        params.append(int(year_to))

    where = ("WHERE " + " AND ".join(filters)) if filters else ""
    having = ""
    if has_swiss_implementation is True:
        having = "HAVING swiss_implementation_count > 0"
    elif has_swiss_implementation is False:
        having = "HAVING swiss_implementation_count = 0"

    rows = conn.execute(
        f"""SELECT
                ed.id AS eu_document_id, ed.type AS eu_type, ed.year AS eu_year,
                ed.number AS eu_number, ed.title AS eu_title,
                ed.short_name AS eu_short_name, ed.url AS eu_url,
                COUNT(DISTINCT er.document_id) AS swiss_implementation_count,
                COALESCE(MAX(er.is_primary_implementation), 0) AS has_primary
            FROM eu_documents ed
            LEFT JOIN eu_references er ON er.eu_document_id = ed.id
            {where}
            GROUP BY ed.id
            {having}
            ORDER BY swiss_implementation_count DESC, ed.year DESC, ed.id ASC
            LIMIT ?""",
        params + [limit],
    ).fetchall()

    results = [
        {
            **_eu_document_dict(r),
            "swiss_implementation_count": r["swiss_implementation_count"],
            "has_primary_implementation": bool(r["has_primary"]),
        }
        for r in rows
    ]
    return {"eu_documents": results, "total_results": len(results)}


def get_provision_eu_basis(
    conn: sqlite3.Connection,
    document_ref: str,
    provision_ref: str,
) -> dict:
    """EU references pinned to one specific provision."""
    doc_id = resolve_document_id(conn, document_ref)
    if not doc_id:
        return _document_not_found(document_ref, provision_ref=provision_ref, eu_references=[])
    doc = get_document_row(conn, doc_id)

    provision = find_provision(conn, doc_id, provision_ref)
    if provision is None:
        return {
            "found": False,
            "document_id": doc_id,
            "document_title": doc["title"],
            "provision_ref": provision_ref,
            "eu_references": [],
            "warnings": [f'Provision "{provision_ref}" not found in {doc["title"]}'],
        }

    rows = conn.execute(
        _REFERENCE_SELECT + " WHERE er.document_id = ? AND er.provision_id = ? ORDER BY er.id",
        (doc_id, provision["id"]),
    ).fetchall()

    return {
        "found": True,
        "document_id": doc_id,
        "document_title": doc["title"],
        "provision_ref": provision["provision_ref"],
        "provision_title": provision["title"],
        "eu_references": [
            {
                **_eu_document_dict(r),
                "eu_article": r["eu_article"],
                "reference_type": r["reference_type"],
                "is_primary_implementation": bool(r["is_primary_implementation"]),
                "implementation_status": r["implementation_status"],
            }
            for r in rows
        ],
    }


def validate_eu_compliance(
    conn: sqlite3.Connection,
    document_ref: str,
    provision_ref: str | None = None,
    eu_document_id: str | None = None,
) -> dict:
    """Classify the EU alignment of a statute (or one provision)."""
    currency = check_currency(conn, document_ref, provision_ref)
    if not currency.found:
        return _document_not_found(document_ref)
    if provision_ref and not currency.provision_found:
        return {
            "found": False,
            "document_id": currency.document_id,
            "document_title": currency.document_title,
            "provision_ref": provision_ref,
            "warnings": currency.warnings,
        }

    warnings = list(currency.warnings)
    filters = ["er.document_id = ?"]
    params: list = [currency.document_id]

    if provision_ref:
        filters.append("lp.provision_ref = ?")
        params.append(currency.provision_ref)

    eu_id = None
    rows: list[sqlite3.Row] = []
    if eu_document_id:
        eu_id = resolve_eu_document_id(conn, eu_document_id)
        if not eu_id:
            warnings.append(f'EU document not found: "{eu_document_id}"')
        else:
            filters.append("er.eu_document_id = ?")
            params.append(eu_id)

    if not eu_document_id or eu_id:
        rows = conn.execute(
            _REFERENCE_SELECT + f" WHERE {' AND '.join(filters)} ORDER BY er.id",
            params,
        ).fetchall()

    status = classify_compliance([r["reference_type"] for r in rows])

    outdated: list[str] = []
    for r in rows:
        if r["eu_in_force"] == 0 and r["eu_document_id"] not in outdated:
            outdated.append(r["eu_document_id"])
    for eu_ref in outdated:
        warnings.append(f"Referenced EU act {eu_ref} is no longer in force; the alignment may be outdated.")

    indefinite = sum(1 for r in rows if r["reference_type"] not in DEFINITE_REFERENCE_TYPES)
    if indefinite:
        warnings.append(f"{indefinite} EU reference(s) carry no definite alignment type.")
    missing_status = sum(1 for r in rows if not r["implementation_status"])
    if rows and missing_status:
        warnings.append(f"{missing_status} EU reference(s) lack an implementation status.")

    eu_documents: list[str] = []
    for r in rows:
        if r["eu_document_id"] not in eu_documents:
            eu_documents.append(r["eu_document_id"])

    return {
        "found": True,
        "document_id": currency.document_id,
        "document_title": currency.document_title,
        "document_status": currency.status,
        "provision_ref": currency.provision_ref,
        "eu_document_id": eu_id,
        "compliance_status": status.value,
        "eu_references_found": len(rows),
        "definite_references": len(rows) - indefinite,
        "eu_documents": eu_documents,
        "warnings": warnings,
    }
