from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from db_schema import (
    CORE_SCHEMA_SQL,
    INSERT_DEFINITION_SQL,
    INSERT_DOCUMENT_SQL,
    INSERT_EU_DOCUMENT_SQL,
    INSERT_EU_REFERENCE_SQL,
    INSERT_PROVISION_SQL,
    SCHEMA_SQL,
)
from law_stack.store import store_from_connection

BUILT_AT = "2026-01-15T10:00:00+00:00"

DSG_TITLE = "Bundesgesetz über den Datenschutz (Datenschutzgesetz, DSG)"

# (id, type, title, title_en, short_name, status, issued_date, in_force_date, url, description)
DOCUMENTS = [
    ("sr-235-1", "statute", DSG_TITLE, "Federal Act on Data Protection", "DSG",
     "in_force", "2020-09-25", "2023-09-01", "https://www.fedlex.admin.ch/eli/cc/2022/491/de", None),
    ("sr-235-11", "ordinance", "Verordnung über den Datenschutz (Datenschutzverordnung, DSV)",
     "Data Protection Ordinance", "DSV", "in_force", "2022-08-31", "2023-09-01", None, None),
    ("sr-311-0", "statute", "Schweizerisches Strafgesetzbuch", "Swiss Criminal Code", "StGB",
     "amended", "1937-12-21", "1942-01-01", None, None),
    ("sr-999-1", "statute", "Bundesgesetz über die Datensammlungen", None, "DSAG",
     "repealed", "1990-06-01", "1991-01-01", None, None),
    ("sr-999-2", "statute", "Bundesgesetz über künstliche Intelligenz", "Federal Act on Artificial Intelligence",
     "KIG", "not_yet_in_force", "2026-03-20", "2027-01-01", None, None),
]

# (document_id, provision_ref, chapter, section, title, content)
PROVISIONS = [
    ("sr-235-1", "art1", "1. Kapitel: Zweck und Geltungsbereich", "1", "Zweck",
     "Dieses Gesetz bezweckt den Schutz der Persönlichkeit und der Grundrechte von "
     "natürlichen Personen, über die Personendaten bearbeitet werden."),
    ("sr-235-1", "art5", "1. Kapitel: Zweck und Geltungsbereich", "5", "Begriffe",
     "In diesem Gesetz bedeuten: a. Personendaten: alle Angaben, die sich auf eine bestimmte "
     "oder bestimmbare natürliche Person beziehen."),
    ("sr-235-1", "art6", "2. Kapitel: Allgemeine Bestimmungen", "6", "Grundsätze",
     "Personendaten müssen rechtmässig bearbeitet werden. Die Bearbeitung muss nach Treu und "
     "Glauben erfolgen und verhältnismässig sein."),
    ("sr-235-1", "art24", "4. Kapitel: Pflichten des Verantwortlichen", "24",
     "Meldung von Verletzungen der Datensicherheit",
     "Der Verantwortliche meldet dem EDÖB so rasch als möglich eine Verletzung der "
     "Datensicherheit, die voraussichtlich zu einem hohen Risiko führt."),
    ("sr-235-11", "art1", None, "1", "Grundsätze der Datensicherheit",
     "Der Verantwortliche gewährleistet eine dem Risiko angemessene Datensicherheit."),
    ("sr-311-0", "art143bis", None, "143bis", "Unbefugtes Eindringen in ein Datenverarbeitungssystem",
     "Wer auf dem Wege von Datenübertragungseinrichtungen unbefugterweise in ein fremdes, "
     "gegen seinen Zugriff besonders gesichertes Datenverarbeitungssystem eindringt, wird bestraft."),
    ("sr-311-0", "art179novies", None, "179novies", "Unbefugtes Beschaffen von Personendaten",
     "Wer unbefugt besonders schützenswerte Personendaten, die nicht frei zugänglich sind, "
     "aus einer Datensammlung beschafft, wird auf Antrag bestraft."),
    ("sr-999-1", "art1", None, "1", "Gegenstand",
     "Dieses Gesetz regelt die Führung von Datensammlungen des Bundes."),
    ("sr-999-2", "art1", None, "1", "Zweck",
     "Dieses Gesetz regelt den Einsatz von Systemen der künstlichen Intelligenz."),
]

# (document_id, term, definition, source_provision)
DEFINITIONS = [
    ("sr-235-1", "Personendaten",
     "alle Angaben, die sich auf eine bestimmte oder bestimmbare natürliche Person beziehen", "art5"),
    ("sr-235-1", "besonders schützenswerte Personendaten",
     "Daten über religiöse, weltanschauliche, politische Ansichten oder Tätigkeiten", "art5"),
    ("sr-235-1", "betroffene Person",
     "natürliche Person, über die Personendaten bearbeitet werden", "art5"),
    ("sr-999-2", "System der künstlichen Intelligenz",
     "maschinengestütztes System, das aus Eingaben Ausgaben ableitet", "art1"),
]

# (id, type, year, number, title, short_name, url, in_force)
EU_DOCUMENTS = [
    ("regulation:2016/679", "regulation", 2016, 679,
     "General Data Protection Regulation", "GDPR", "https://eur-lex.europa.eu/eli/reg/2016/679/oj", 1),
    ("directive:1995/46", "directive", 1995, 46,
     "Data Protection Directive", "DPD", None, 0),
    ("regulation:2014/910", "regulation", 2014, 910,
     "Electronic identification and trust services", "eIDAS", None, 1),
    ("directive:2016/1148", "directive", 2016, 1148,
     "Security of network and information systems", "NIS", None, 1),
]

# (document_id, provision_ref or None, eu_document_id, eu_article, reference_type,
#  is_primary_implementation, implementation_status)
EU_REFERENCES = [
    ("sr-235-1", None, "regulation:2016/679", None, "aligns_with", 1, "complete"),
    ("sr-235-1", "art24", "regulation:2016/679", "33", "aligns_with", 1, "complete"),
    ("sr-235-1", None, "directive:1995/46", None, "references", 0, None),
    ("sr-235-11", None, "regulation:2016/679", "32", "implements", 0, "complete"),
    ("sr-311-0", "art179novies", "regulation:2016/679", "9", "cites_article", 0, "partial"),
    ("sr-999-1", None, "regulation:2016/679", None, "complies_with", 0, "complete"),
]


def populate(conn: sqlite3.Connection, optional: bool = True) -> None:
    conn.executescript(SCHEMA_SQL if optional else CORE_SCHEMA_SQL)
    conn.executemany(INSERT_DOCUMENT_SQL, DOCUMENTS)
    conn.executemany(INSERT_PROVISION_SQL, PROVISIONS)
    if optional:
        conn.executemany(INSERT_DEFINITION_SQL, DEFINITIONS)
        conn.executemany(INSERT_EU_DOCUMENT_SQL, EU_DOCUMENTS)
        for doc_id, provision_ref, *rest in EU_REFERENCES:
            provision_id = None
            if provision_ref:
                provision_id = conn.execute(
                    "SELECT id FROM legal_provisions WHERE document_id = ? AND provision_ref = ?",
                    (doc_id, provision_ref),
                ).fetchone()[0]
            conn.execute(INSERT_EU_REFERENCE_SQL, (doc_id, provision_id, *rest))
        conn.execute("INSERT INTO db_metadata (key, value) VALUES ('built_at', ?)", (BUILT_AT,))
    conn.commit()


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "database.db"
    conn = sqlite3.connect(path)
    populate(conn)
    conn.close()
    return path


@pytest.fixture()
def core_db_path(tmp_path: Path) -> Path:
    path = tmp_path / "core.db"
    conn = sqlite3.connect(path)
    populate(conn, optional=False)
    conn.close()
    return path


@pytest.fixture()
def conn(db_path: Path):
    c = sqlite3.connect(db_path, check_same_thread=False)
    c.row_factory = sqlite3.Row
    yield c
    c.close()


@pytest.fixture()
def store(conn):
    return store_from_connection(conn)


@pytest.fixture()
def core_store(core_db_path: Path):
    c = sqlite3.connect(core_db_path, check_same_thread=False)
    s = store_from_connection(c)
    yield s
    c.close()
