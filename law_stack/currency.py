"""Currency checks: is a statute (or one of its provisions) current law?"""
from __future__ import annotations

import sqlite3

from models import CurrencyResult, DocumentStatus

from .provisions import find_provision, get_document_row
from .statute_id import resolve_document_id


def status_warnings(status: str | None, in_force_date: str | None = None) -> list[str]:
    """Lifecycle warnings shared by check_currency and validate_citation."""
    if status == DocumentStatus.REPEALED.value:
        return ["WARNING: This statute has been repealed."]
    if status == DocumentStatus.NOT_YET_IN_FORCE.value:
        if in_force_date:
            return [f"WARNING: This statute is not yet in force (enters into force {in_force_date})."]
        return ["WARNING: This statute is not yet in force."]
    if status == DocumentStatus.AMENDED.value:
        return ["Note: This statute has been amended. Verify you are referencing the current version."]
    return []


def check_currency(
    conn: sqlite3.Connection,
    document_ref: str,
    provision_ref: str | None = None,
) -> CurrencyResult:
    doc_id = resolve_document_id(conn, document_ref)
    if not doc_id:
        return CurrencyResult(
            document_id=document_ref,
            found=False,
            warnings=[f'Document not found: "{document_ref}"'],
        )

    doc = get_document_row(conn, doc_id)
    status = doc["status"]
    result = CurrencyResult(
        document_id=doc_id,
        found=True,
        document_title=doc["title"],
        status=status,
        issued_date=doc["issued_date"],
        in_force_date=doc["in_force_date"],
        is_current=DocumentStatus(status).is_current,
        warnings=status_warnings(status, doc["in_force_date"]),
    )

    if provision_ref:
        provision = find_provision(conn, doc_id, provision_ref)
        result.provision_ref = provision["provision_ref"] if provision else provision_ref
        result.provision_found = provision is not None
        if provision is None:
            result.warnings.append(f'Provision "{provision_ref}" not found in {doc["title"]}')

    return result
