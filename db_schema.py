"""
Canonical SQLite schema for the Swiss federal legislation store.

Shared between build_db.py (ingestion) and law_stack (search/lookup).
Single source of truth: edit here, both consumers pick it up.

The core tables (legal_documents, legal_provisions, provisions_fts) are
always present. Definitions, EU cross-references and build metadata are
optional: older or partial databases may lack them, and the server gates
the corresponding tools on their presence (see law_stack.capabilities).
"""

SCHEMA_VERSION = "2"

CORE_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS legal_documents (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL DEFAULT 'statute',
        title TEXT NOT NULL,
        title_en TEXT,
        short_name TEXT,
        status TEXT NOT NULL DEFAULT 'in_force'
            CHECK (status IN ('in_force', 'amended', 'repealed', 'not_yet_in_force')),
        issued_date TEXT,
        in_force_date TEXT,
        url TEXT,
        description TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_documents_short_name ON legal_documents(short_name);
    CREATE INDEX IF NOT EXISTS idx_documents_status ON legal_documents(status);

    CREATE TABLE IF NOT EXISTS legal_provisions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        document_id TEXT NOT NULL REFERENCES legal_documents(id),
        provision_ref TEXT NOT NULL,
        chapter TEXT,
        section TEXT NOT NULL,
        title TEXT,
        content TEXT NOT NULL,
        UNIQUE (document_id, provision_ref)
    );

    CREATE INDEX IF NOT EXISTS idx_provisions_doc_section
        ON legal_provisions(document_id, section);

    CREATE VIRTUAL TABLE IF NOT EXISTS provisions_fts USING fts5(
        title,
        content,
        content='legal_provisions',
        content_rowid='id',
        tokenize='unicode61 remove_diacritics 2'
    );

    -- Triggers to keep FTS in sync
    CREATE TRIGGER IF NOT EXISTS provisions_ai AFTER INSERT ON legal_provisions BEGIN
        INSERT INTO provisions_fts(rowid, title, content)
        VALUES (new.id, new.title, new.content);
    END;

    CREATE TRIGGER IF NOT EXISTS provisions_ad AFTER DELETE ON legal_provisions BEGIN
        INSERT INTO provisions_fts(provisions_fts, rowid, title, content)
        VALUES ('delete', old.id, old.title, old.content);
    END;

    CREATE TRIGGER IF NOT EXISTS provisions_au AFTER UPDATE ON legal_provisions BEGIN
        INSERT INTO provisions_fts(provisions_fts, rowid, title, content)
        VALUES ('delete', old.id, old.title, old.content);
        INSERT INTO provisions_fts(rowid, title, content)
        VALUES (new.id, new.title, new.content);
    END;
"""

DEFINITIONS_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS definitions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        document_id TEXT NOT NULL REFERENCES legal_documents(id),
        term TEXT NOT NULL,
        definition TEXT NOT NULL,
        source_provision TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_definitions_term ON definitions(term);
"""

EU_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS eu_documents (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL CHECK (type IN ('directive', 'regulation')),
        year INTEGER NOT NULL,
        number INTEGER NOT NULL,
        title TEXT,
        short_name TEXT,
        url TEXT,
        in_force INTEGER NOT NULL DEFAULT 1
    );

    CREATE TABLE IF NOT EXISTS eu_references (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        document_id TEXT NOT NULL REFERENCES legal_documents(id),
        provision_id INTEGER REFERENCES legal_provisions(id),
        eu_document_id TEXT NOT NULL REFERENCES eu_documents(id),
        eu_article TEXT,
        reference_type TEXT,
        is_primary_implementation INTEGER NOT NULL DEFAULT 0,
        implementation_status TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_eu_refs_document ON eu_references(document_id);
    CREATE INDEX IF NOT EXISTS idx_eu_refs_eu_document ON eu_references(eu_document_id);
    CREATE INDEX IF NOT EXISTS idx_eu_refs_provision ON eu_references(provision_id);
"""

METADATA_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS db_metadata (
        key TEXT PRIMARY KEY,
        value TEXT
    );
"""

SCHEMA_SQL = CORE_SCHEMA_SQL + DEFINITIONS_SCHEMA_SQL + EU_SCHEMA_SQL + METADATA_SCHEMA_SQL

# Column order for INSERT statements (must match the table definitions above)
DOCUMENT_COLUMNS = (
    "id", "type", "title", "title_en", "short_name", "status",
    "issued_date", "in_force_date", "url", "description",
)

PROVISION_COLUMNS = (
    "document_id", "provision_ref", "chapter", "section", "title", "content",
)

DEFINITION_COLUMNS = ("document_id", "term", "definition", "source_provision")

EU_DOCUMENT_COLUMNS = (
    "id", "type", "year", "number", "title", "short_name", "url", "in_force",
)

EU_REFERENCE_COLUMNS = (
    "document_id", "provision_id", "eu_document_id", "eu_article",
    "reference_type", "is_primary_implementation", "implementation_status",
)


def _insert_sql(table: str, columns: tuple[str, ...], verb: str = "INSERT") -> str:
    return f"""{verb} INTO {table}
    ({', '.join(columns)})
    VALUES ({', '.join('?' for _ in columns)})"""


INSERT_DOCUMENT_SQL = _insert_sql("legal_documents", DOCUMENT_COLUMNS, "INSERT OR REPLACE")
INSERT_PROVISION_SQL = _insert_sql("legal_provisions", PROVISION_COLUMNS, "INSERT OR IGNORE")
INSERT_DEFINITION_SQL = _insert_sql("definitions", DEFINITION_COLUMNS)
INSERT_EU_DOCUMENT_SQL = _insert_sql("eu_documents", EU_DOCUMENT_COLUMNS, "INSERT OR REPLACE")
INSERT_EU_REFERENCE_SQL = _insert_sql("eu_references", EU_REFERENCE_COLUMNS)
