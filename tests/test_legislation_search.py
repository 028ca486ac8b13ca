import pytest

from db_schema import INSERT_PROVISION_SQL
from law_stack.legislation_search import (
    MAX_LIMIT,
    build_fallback_query,
    build_query_strategies,
    clamp_limit,
    sanitize_fts_query,
    search_legislation,
)
from law_stack.stance import build_legal_stance


# ── Query sanitising ──────────────────────────────────────────

@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Personendaten", "personendaten"),
        ('"Treu und Glauben"', '"treu und glauben"'),
        ("Personendat*", "personendat*"),
        ("Daten AND", "daten"),
        ("OR Daten", "daten"),
        ("Daten AND OR Schutz", "daten AND schutz"),
        ("Daten NOT Archiv", "daten NOT archiv"),
        ("SR 235.1", 'sr "235 1"'),
        ('"unbalanced Daten', "unbalanced daten"),
        ("***", ""),
    ],
)
def test_sanitize_fts_query(raw, expected):
    assert sanitize_fts_query(raw) == expected


def test_fallback_query_is_prefix_or():
    assert build_fallback_query('"Treu und Glauben" AND Daten') == "treu* OR und* OR glauben* OR daten*"


def test_query_strategies_are_distinct():
    assert build_query_strategies("daten*") == ["daten*"]
    assert build_query_strategies("") == []


def test_clamp_limit():
    assert clamp_limit(None, 10, 50) == 10
    assert clamp_limit(500, 10, 50) == 50
    assert clamp_limit(0, 10, 50) == 1
    assert clamp_limit(7.9, 10, 50) == 7
    with pytest.raises(ValueError):
        clamp_limit("ten", 10, 50)
    with pytest.raises(ValueError):
        clamp_limit(True, 10, 50)
    with pytest.raises(ValueError):
        clamp_limit(float("inf"), 10, 50)
    with pytest.raises(ValueError):
        clamp_limit(float("nan"), 10, 50)
    assert clamp_limit(10**400, 10, 50) == 50


# ── Search ────────────────────────────────────────────────────

def test_search_returns_document_context_and_snippet(conn):
    results = search_legislation(conn, "Personendaten")
    assert results
    first = results[0]
    assert set(first) >= {
        "document_id", "document_title", "short_name", "status", "provision_ref",
        "chapter", "section", "title", "snippet", "relevance_score",
    }
    assert any(">>>" in r["snippet"] and "<<<" in r["snippet"] for r in results)


def test_search_boosts_title_matches(conn):
    results = search_legislation(conn, "Personendaten")
    assert results[0]["provision_ref"] == "art179novies"
    scores = [r["relevance_score"] for r in results]
    assert scores == sorted(scores, reverse=True)


def test_search_document_scope(conn):
    results = search_legislation(conn, "Personendaten", document_id="DSG")
    assert results
    assert {r["document_id"] for r in results} == {"sr-235-1"}
    assert search_legislation(conn, "Personendaten", document_id="NoSuchLawXYZ") == []


def test_search_status_filter(conn):
    results = search_legislation(conn, "Personendaten", status="amended")
    assert [r["document_id"] for r in results] == ["sr-311-0"]
    with pytest.raises(ValueError):
        search_legislation(conn, "Personendaten", status="valid")


def test_search_blank_query(conn):
    assert search_legislation(conn, "   ") == []


@pytest.mark.parametrize("query", ["NEAR(", '"unbalanced', "AND", "***", "Daten)", "a:b"])
def test_search_never_raises_on_fts_syntax(conn, query):
    assert isinstance(search_legislation(conn, query), list)


def test_search_falls_back_to_prefix_terms(conn):
    # "daten schutz" as a phrase matches nothing; the prefix fallback does.
    results = search_legislation(conn, "Daten-schutz")
    assert results


def test_search_limit_is_capped(conn):
    rows = [
        ("sr-235-1", f"art{100 + i}", None, str(100 + i), "Auskunftsrecht",
         "Jede Person kann Auskunft über ihre Personendaten verlangen.")
        for i in range(60)
    ]
    conn.executemany(INSERT_PROVISION_SQL, rows)
    conn.commit()

    assert len(search_legislation(conn, "Auskunft", limit=500)) == MAX_LIMIT
    assert len(search_legislation(conn, "Auskunft")) == 10
    assert len(search_legislation(conn, "Auskunft", limit=3)) == 3


def test_search_is_idempotent(conn):
    assert search_legislation(conn, "Datensicherheit") == search_legislation(conn, "Datensicherheit")


# ── Legal stance ──────────────────────────────────────────────

def test_stance_groups_by_statute(conn):
    stance = build_legal_stance(conn, "Personendaten")
    by_doc = {d["document_id"]: d for d in stance["documents"]}
    assert set(by_doc) == {"sr-235-1", "sr-311-0"}
    assert stance["total_citations"] == sum(len(d["provisions"]) for d in stance["documents"])
    citations = [p["citation"] for p in by_doc["sr-311-0"]["provisions"]]
    assert citations == ["Art. 179novies StGB"]


def test_stance_caps_provisions_per_statute(conn):
    stance = build_legal_stance(conn, "Personendaten", limit=2)
    assert all(len(d["provisions"]) <= 2 for d in stance["documents"])


def test_stance_with_definitions(conn):
    stance = build_legal_stance(conn, "Personendaten", include_definitions=True)
    assert stance["definitions"][0]["term"] == "Personendaten"


def test_stance_unknown_scope(conn):
    stance = build_legal_stance(conn, "Personendaten", document_id="NoSuchLawXYZ")
    assert stance["total_citations"] == 0
    assert stance["warnings"] == ['Document not found: "NoSuchLawXYZ"']
