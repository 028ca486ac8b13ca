#!/usr/bin/env python3
"""
Build the Swiss legislation SQLite database from JSON seed files.

Reads one act per file from data/seed/*.json (document metadata plus its
provisions and definitions) and, if present, data/seed/eu-references.json
(EU acts and Swiss -> EU reference edges). Every record is validated with
the pydantic models in models.py before it is written.

Output: data/database.db

Schema: see db_schema.py
    legal_documents   one row per act (SR number ID, titles, status, dates)
    legal_provisions  one row per article, FTS5-indexed via triggers
    definitions       legal definitions extracted from the acts
    eu_documents      EU directives / regulations
    eu_references     Swiss act (or provision) -> EU act edges
    db_metadata       built_at, schema_version, jurisdiction, source

Usage:
    python build_db.py
    python build_db.py --seed-dir data/seed --output data/database.db -v
"""

import argparse
import json
import logging
import os
import sqlite3
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).parent))
from db_schema import (
    INSERT_DEFINITION_SQL,
    INSERT_DOCUMENT_SQL,
    INSERT_EU_DOCUMENT_SQL,
    INSERT_EU_REFERENCE_SQL,
    INSERT_PROVISION_SQL,
    SCHEMA_SQL,
    SCHEMA_VERSION,
)
from law_stack.metadata import DATA_SOURCE, JURISDICTION
from law_stack.provisions import find_provision
from models import EUDocument, EUReference, SeedAct

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-7s %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("build_db")

SEED_DIR = Path(os.environ.get("SWISS_LAW_SEED_DIR", "data/seed"))
OUTPUT_DB = Path(os.environ.get("SWISS_LAW_DB_PATH", "data/database.db"))
EU_SEED_FILE = "eu-references.json"


def load_seed_acts(seed_dir: Path) -> list[SeedAct]:
    """Parse and validate every act file. Invalid files are logged and skipped."""
    acts: list[SeedAct] = []
    for path in sorted(seed_dir.glob("*.json")):
        if path.name == EU_SEED_FILE:
            continue
        try:
            with open(path, encoding="utf-8") as f:
                acts.append(SeedAct.model_validate(json.load(f)))
        except (json.JSONDecodeError, ValidationError) as e:
            log.error("Skipping invalid seed file %s: %s", path.name, e)
    return acts


def load_eu_seed(seed_dir: Path) -> tuple[list[EUDocument], list[EUReference]]:
    path = seed_dir / EU_SEED_FILE
    if not path.exists():
        return [], []
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    documents: list[EUDocument] = []
    for raw in data.get("eu_documents", []):
        try:
            documents.append(EUDocument.model_validate(raw))
        except ValidationError as e:
            log.warning("Skipping invalid EU document %s: %s", raw.get("id"), e)

    references: list[EUReference] = []
    for raw in data.get("eu_references", []):
        try:
            references.append(EUReference.model_validate(raw))
        except ValidationError as e:
            log.warning("Skipping invalid EU reference %s -> %s: %s",
                        raw.get("document_id"), raw.get("eu_document_id"), e)
    return documents, references


def insert_act(conn: sqlite3.Connection, act: SeedAct) -> int:
    conn.execute(
        INSERT_DOCUMENT_SQL,
        (
            act.id, act.type, act.title, act.title_en, act.short_name, act.status.value,
            act.issued_date, act.in_force_date, act.url, act.description,
        ),
    )
    inserted = 0
    for p in act.provisions:
        cur = conn.execute(
            INSERT_PROVISION_SQL,
            (act.id, p.provision_ref, p.chapter, p.section, p.title, p.content),
        )
        if cur.rowcount == 0:
            log.warning("Duplicate provision %s in %s ignored", p.provision_ref, act.id)
        inserted += cur.rowcount
    for d in act.definitions:
        conn.execute(INSERT_DEFINITION_SQL, (act.id, d.term, d.definition, d.source_provision))
    return inserted


def insert_eu_data(
    conn: sqlite3.Connection,
    documents: list[EUDocument],
    references: list[EUReference],
) -> int:
    """Insert EU acts and reference edges; returns the number of edges written."""
    for doc in documents:
        conn.execute(
            INSERT_EU_DOCUMENT_SQL,
            (doc.id, doc.type.value, doc.year, doc.number, doc.title,
             doc.short_name, doc.url, int(doc.in_force)),
        )
    eu_ids = {doc.id for doc in documents}
    swiss_ids = {r[0] for r in conn.execute("SELECT id FROM legal_documents")}

    written = 0
    for ref in references:
        if ref.document_id not in swiss_ids:
            log.warning("EU reference to unknown Swiss document %s skipped", ref.document_id)
            continue
        if ref.eu_document_id not in eu_ids:
            log.warning("EU reference to unknown EU document %s skipped", ref.eu_document_id)
            continue
        provision_id = None
        if ref.provision_ref:
            provision = find_provision(conn, ref.document_id, ref.provision_ref)
            if provision is None:
                log.warning(
                    "EU reference pinned to unknown provision %s of %s skipped",
                    ref.provision_ref, ref.document_id,
                )
                continue
            provision_id = provision["id"]
        conn.execute(
            INSERT_EU_REFERENCE_SQL,
            (ref.document_id, provision_id, ref.eu_document_id, ref.eu_article,
             ref.reference_type, int(ref.is_primary_implementation), ref.implementation_status),
        )
        written += 1
    return written


def write_metadata(conn: sqlite3.Connection, built_at: str | None = None) -> None:
    rows = {
        "built_at": built_at or datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "schema_version": SCHEMA_VERSION,
        "jurisdiction": JURISDICTION,
        "source": DATA_SOURCE,
    }
    conn.executemany(
        "INSERT OR REPLACE INTO db_metadata (key, value) VALUES (?, ?)",
        list(rows.items()),
    )


def build_db(seed_dir: Path, output: Path) -> dict:
    """Main build pipeline. Returns row counts of the finished database."""
    if not seed_dir.is_dir():
        raise FileNotFoundError(f"Seed directory not found: {seed_dir}")

    acts = load_seed_acts(seed_dir)
    eu_documents, eu_references = load_eu_seed(seed_dir)
    log.info("Loaded %d acts, %d EU documents, %d EU references",
             len(acts), len(eu_documents), len(eu_references))

    output.parent.mkdir(parents=True, exist_ok=True)
    tmp_db = output.with_suffix(".tmp")
    tmp_db.unlink(missing_ok=True)

    conn = sqlite3.connect(str(tmp_db))
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.executescript(SCHEMA_SQL)

        total_provisions = 0
        for act in acts:
            count = insert_act(conn, act)
            total_provisions += count
            log.debug("  %s (%s): %d provisions", act.id, act.short_name or "?", count)
        conn.commit()

        eu_written = insert_eu_data(conn, eu_documents, eu_references)
        write_metadata(conn)
        conn.commit()

        log.info("Optimizing FTS5...")
        conn.execute("INSERT INTO provisions_fts(provisions_fts) VALUES('optimize')")
        conn.commit()

        stats = {
            "documents": conn.execute("SELECT COUNT(*) FROM legal_documents").fetchone()[0],
            "provisions": total_provisions,
            "definitions": conn.execute("SELECT COUNT(*) FROM definitions").fetchone()[0],
            "eu_documents": len(eu_documents),
            "eu_references": eu_written,
        }
    finally:
        conn.close()

    # Atomic rename
    tmp_db.replace(output)
    log.info("Saved to %s (%.1f MB): %s", output, output.stat().st_size / 1e6, stats)
    return stats


def main():
    parser = argparse.ArgumentParser(description="Build the Swiss legislation DB from JSON seed files")
    parser.add_argument("--seed-dir", type=Path, default=SEED_DIR)
    parser.add_argument("--output", type=Path, default=OUTPUT_DB)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    t0 = time.time()
    build_db(args.seed_dir, args.output)
    log.info("Total time: %.1f seconds", time.time() - t0)


if __name__ == "__main__":
    main()
