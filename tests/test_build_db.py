import json
import sqlite3
from pathlib import Path

import pytest

import build_db
from db_schema import (
    DOCUMENT_COLUMNS,
    EU_DOCUMENT_COLUMNS,
    EU_REFERENCE_COLUMNS,
    INSERT_DOCUMENT_SQL,
    INSERT_EU_REFERENCE_SQL,
    INSERT_PROVISION_SQL,
    PROVISION_COLUMNS,
    SCHEMA_SQL,
    SCHEMA_VERSION,
)
from law_stack.capabilities import Capability
from law_stack.registry import call_tool
from law_stack.store import open_store
from models import DocumentStatus, EUDocument, LegalProvision, SeedAct, make_document_id, make_provision_ref

REPO_SEED_DIR = Path(__file__).resolve().parent.parent / "data" / "seed"


def _write(path: Path, data) -> None:
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


@pytest.fixture()
def seed_dir(tmp_path: Path) -> Path:
    d = tmp_path / "seed"
    d.mkdir()
    _write(d / "sr-235-1.json", {
        "id": "sr-235-1",
        "title": "Bundesgesetz über den Datenschutz (Datenschutzgesetz, DSG)",
        "short_name": "DSG",
        "status": "in_force",
        "provisions": [
            {"provision_ref": "art1", "section": "1", "title": "Zweck",
             "content": "Schutz der Persönlichkeit bei der Bearbeitung von Personendaten."},
            {"provision_ref": "art1", "section": "1", "title": "Duplikat", "content": "ignoriert"},
            {"provision_ref": "art6", "section": "6", "title": "Grundsätze",
             "content": "Personendaten müssen rechtmässig bearbeitet werden."},
        ],
        "definitions": [{"term": "Personendaten", "definition": "alle Angaben ...", "source_provision": "art5"}],
    })
    _write(d / "broken.json", {"title": "no id, no provisions"})
    (d / "not-json.json").write_text("{", encoding="utf-8")
    _write(d / "eu-references.json", {
        "eu_documents": [
            {"id": "regulation:2016/679", "type": "regulation", "year": 2016, "number": 679,
             "short_name": "GDPR"},
            {"id": "gdpr", "type": "regulation", "year": 2016, "number": 679},
        ],
        "eu_references": [
            {"document_id": "sr-235-1", "eu_document_id": "regulation:2016/679",
             "reference_type": "aligns_with", "is_primary_implementation": True},
            {"document_id": "sr-235-1", "provision_ref": "6", "eu_document_id": "regulation:2016/679",
             "eu_article": "5", "reference_type": "aligns_with"},
            {"document_id": "sr-235-1", "provision_ref": "art99", "eu_document_id": "regulation:2016/679"},
            {"document_id": "sr-000-0", "eu_document_id": "regulation:2016/679"},
            {"document_id": "sr-235-1", "eu_document_id": "directive:2000/31"},
        ],
    })
    return d


def test_build_from_seed(seed_dir: Path, tmp_path: Path):
    output = tmp_path / "out" / "database.db"
    stats = build_db.build_db(seed_dir, output)

    assert stats == {
        "documents": 1,
        "provisions": 2,
        "definitions": 1,
        "eu_documents": 1,
        "eu_references": 2,
    }
    assert output.exists()
    assert not output.with_suffix(".tmp").exists()

    conn = sqlite3.connect(output)
    meta = dict(conn.execute("SELECT key, value FROM db_metadata").fetchall())
    pinned = conn.execute(
        """SELECT lp.provision_ref FROM eu_references er
           JOIN legal_provisions lp ON lp.id = er.provision_id"""
    ).fetchall()
    conn.close()
    assert meta["schema_version"] == SCHEMA_VERSION
    assert meta["jurisdiction"] == "CH"
    assert meta["built_at"]
    assert pinned == [("art6",)]


def test_built_database_serves_every_tool(seed_dir: Path, tmp_path: Path):
    output = tmp_path / "database.db"
    build_db.build_db(seed_dir, output)
    store = open_store(output)
    try:
        assert store.capabilities == frozenset(Capability)
        assert store.freshness is not None
        result = call_tool(store, "validate_citation", {"citation": "Art. 6 DSG"})["results"]
        assert result["valid"] is True
        hits = call_tool(store, "search_legislation", {"query": "Personendaten"})["results"]
        assert {h["provision_ref"] for h in hits} == {"art1", "art6"}
    finally:
        store.close()


def test_store_is_read_only(seed_dir: Path, tmp_path: Path):
    output = tmp_path / "database.db"
    build_db.build_db(seed_dir, output)
    store = open_store(output)
    try:
        with pytest.raises(sqlite3.OperationalError):
            store.conn.execute("DELETE FROM legal_documents")
    finally:
        store.close()


def test_rebuild_replaces_existing_database(seed_dir: Path, tmp_path: Path):
    output = tmp_path / "database.db"
    output.write_text("stale", encoding="utf-8")
    build_db.build_db(seed_dir, output)
    conn = sqlite3.connect(output)
    assert conn.execute("SELECT COUNT(*) FROM legal_documents").fetchone()[0] == 1
    conn.close()


def test_missing_seed_dir(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        build_db.build_db(tmp_path / "nope", tmp_path / "database.db")


def test_open_store_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError, match="build_db.py"):
        open_store(tmp_path / "missing.db")


def test_bundled_seed_builds(tmp_path: Path):
    stats = build_db.build_db(REPO_SEED_DIR, tmp_path / "database.db")
    assert stats["documents"] >= 2
    assert stats["eu_references"] >= 1


def test_cli(seed_dir: Path, tmp_path: Path, monkeypatch):
    output = tmp_path / "cli.db"
    monkeypatch.setattr(
        "sys.argv",
        ["build_db.py", "--seed-dir", str(seed_dir), "--output", str(output), "-v"],
    )
    build_db.main()
    assert output.exists()


# ── Schema and models ─────────────────────────────────────────

@pytest.mark.parametrize(
    "sql, columns",
    [
        (INSERT_DOCUMENT_SQL, DOCUMENT_COLUMNS),
        (INSERT_PROVISION_SQL, PROVISION_COLUMNS),
        (INSERT_EU_REFERENCE_SQL, EU_REFERENCE_COLUMNS),
    ],
)
def test_insert_placeholders_match_columns(sql, columns):
    assert sql.count("?") == len(columns)


def test_schema_columns_match_tables():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA_SQL)
    for table, columns in (
        ("legal_documents", DOCUMENT_COLUMNS),
        ("legal_provisions", PROVISION_COLUMNS),
        ("eu_documents", EU_DOCUMENT_COLUMNS),
        ("eu_references", EU_REFERENCE_COLUMNS),
    ):
        existing = {r[1] for r in conn.execute(f"PRAGMA table_info({table})")}
        assert set(columns) <= existing, table
    conn.close()


def test_fts_triggers_follow_updates():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA_SQL)
    conn.execute(INSERT_DOCUMENT_SQL, ("sr-1", "statute", "Test", None, None, "in_force",
                                       None, None, None, None))
    conn.execute(INSERT_PROVISION_SQL, ("sr-1", "art1", None, "1", "Alt", "Altbestand"))
    conn.execute("UPDATE legal_provisions SET content = 'Neufassung' WHERE provision_ref = 'art1'")
    match = "SELECT COUNT(*) FROM provisions_fts WHERE provisions_fts MATCH ?"
    assert conn.execute(match, ("altbestand",)).fetchone()[0] == 0
    assert conn.execute(match, ("neufassung",)).fetchone()[0] == 1
    conn.close()


def test_status_check_constraint():
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA_SQL)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(INSERT_DOCUMENT_SQL, ("sr-1", "statute", "Test", None, None, "valid",
                                           None, None, None, None))
    conn.close()


def test_model_helpers():
    assert make_document_id("235.1") == "sr-235-1"
    assert make_document_id("SR 0.101") == "sr-0-101"
    assert make_provision_ref("143 bis") == "art143bis"


def test_model_validation():
    with pytest.raises(ValueError):
        EUDocument(id="gdpr", type="regulation", year=2016, number=679)
    with pytest.raises(ValueError):
        LegalProvision(provision_ref="  ", section="1", content="x")
    act = SeedAct(id=" sr-1 ", title="Test", provisions=[])
    assert act.id == "sr-1"
    assert act.status.value == "in_force"
    long = LegalProvision(provision_ref="art1", section="1", content="x" * 60_000)
    assert len(long.content) == 50_000


def test_current_statuses():
    assert [s.value for s in DocumentStatus if s.is_current] == ["in_force", "amended"]
