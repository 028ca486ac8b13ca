"""
Full-text search over statute provisions (SQLite FTS5, BM25).

The query is sanitised so stray punctuation cannot break the FTS5 parser,
then executed with two strategies:

    1. primary: the sanitised query as supplied (phrases, AND/OR/NOT, prefix*)
    2. fallback: de-quoted tokens relaxed to prefixes and OR-ed together

The fallback only runs when the primary strategy yields nothing (or is
rejected by FTS5), so a genuine zero-hit query is distinguishable from a
syntax mismatch in the logs.
"""
from __future__ import annotations

import logging
import math
import re
import sqlite3

from models import STATUS_VALUES

from .errors import InvalidArgumentsError
from .statute_id import resolve_document_id

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50
MAX_RERANK_CANDIDATES = 250
SNIPPET_TOKENS = 32
MAX_FALLBACK_TOKENS = 16
RERANK_TERM_LIMIT = 24

FTS_OPERATORS = {"AND", "OR", "NOT"}

# Lightweight multilingual stopword set for reranking.
RANK_STOPWORDS = {
    # German
    "der", "die", "das", "und", "oder", "von", "mit", "für", "den", "dem",
    "des", "ein", "eine", "einer", "im", "am", "zu", "auf", "über", "als", "art",
    # French
    "le", "la", "les", "de", "du", "des", "un", "une", "et", "ou", "dans", "pour",
    # Italian
    "il", "lo", "gli", "una", "del", "della", "di", "con", "per", "nel",
    # English
    "the", "and", "or", "of", "with", "to", "on", "for", "a", "an", "in",
}

_TOKEN_RE = re.compile(r"\w+")
_QUERY_PIECE_RE = re.compile(r'"[^"]*"|\S+')


def sanitize_fts_query(query: str) -> str:
    """Neutralise FTS5 syntax characters, keeping phrases, operators and prefix stars."""
    q = (query or "").strip()
    if q.count('"') % 2:
        q = q.replace('"', " ")

    parts: list[str] = []
    for piece in _QUERY_PIECE_RE.findall(q):
        if piece.startswith('"'):
            inner = " ".join(_TOKEN_RE.findall(piece.lower()))
            if inner:
                parts.append(f'"{inner}"')
            continue
        if piece in FTS_OPERATORS:
            parts.append(piece)
            continue
        tokens = _TOKEN_RE.findall(piece.lower())
        if not tokens:
            continue
        if len(tokens) == 1:
            term = tokens[0] + ("*" if piece.endswith("*") else "")
        else:
            # "235.1" or "Daten-schutz": keep the pieces adjacent
            term = '"' + " ".join(tokens) + '"'
        parts.append(term)

    cleaned: list[str] = []
    for p in parts:
        if p in FTS_OPERATORS and (not cleaned or cleaned[-1] in FTS_OPERATORS):
            continue
        cleaned.append(p)
    while cleaned and cleaned[-1] in FTS_OPERATORS:
        cleaned.pop()
    return " ".join(cleaned)


def build_fallback_query(query: str) -> str:
    """De-quoted, prefix-relaxed OR query."""
    keep: list[str] = []
    seen: set[str] = set()
    for tok in _TOKEN_RE.findall((query or "").lower()):
        if tok.upper() in FTS_OPERATORS or tok in seen:
            continue
        keep.append(f"{tok}*")
        seen.add(tok)
        if len(keep) >= MAX_FALLBACK_TOKENS:
            break
    return " OR ".join(keep)


def build_query_strategies(query: str) -> list[str]:
    strategies: list[str] = []
    for candidate in (sanitize_fts_query(query), build_fallback_query(query)):
        if candidate and candidate not in strategies:
            strategies.append(candidate)
    return strategies


def clamp_limit(limit, default: int, maximum: int) -> int:
    if limit is None:
        return default
    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        raise InvalidArgumentsError(f"limit must be a number, got {limit!r}")
    if isinstance(limit, float) and not math.isfinite(limit):
        raise InvalidArgumentsError(f"limit must be finite, got {limit!r}")
    return max(1, min(int(limit), maximum))


def search_legislation(
    conn: sqlite3.Connection,
    query: str,
    document_id: str | None = None,
    status: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[dict]:
    """
    Search provisions by keyword.

    Results carry parent-document context, a snippet with >>> <<< markers and
    a relevance score (higher is better).
    """
    limit = clamp_limit(limit, DEFAULT_LIMIT, MAX_LIMIT)
    if status is not None and status not in STATUS_VALUES:
        raise InvalidArgumentsError(f"Unknown status {status!r}; expected one of {', '.join(STATUS_VALUES)}")
    if not isinstance(query, str):
        raise InvalidArgumentsError("query must be a string")
    if not query.strip():
        return []

    filters: list[str] = []
    params: list = []
    if document_id:
        resolved = resolve_document_id(conn, document_id)
        if not resolved:
            logger.info("Search scope %r does not resolve to a document", document_id)
            return []
        filters.append("lp.document_id = ?")
        params.append(resolved)
    if status:
        filters.append("ld.status = ?")
        params.append(status)
    where = (" AND " + " AND ".join(filters)) if filters else ""

    sql = f"""
        SELECT
            lp.id AS provision_id,
            lp.document_id,
            ld.title AS document_title,
            ld.short_name,
            ld.status,
            lp.provision_ref,
            lp.chapter,
            lp.section,
            lp.title,
            snippet(provisions_fts, 1, '>>>', '<<<', '...', {SNIPPET_TOKENS}) AS snippet,
            bm25(provisions_fts, 2.0, 1.0) AS bm25_score
        FROM provisions_fts
        JOIN legal_provisions lp ON lp.id = provisions_fts.rowid
        JOIN legal_documents ld ON ld.id = lp.document_id
        WHERE provisions_fts MATCH ?{where}
        ORDER BY bm25_score ASC, lp.id ASC
        LIMIT ?
    """
    candidate_limit = min(max(limit * 5, 50), MAX_RERANK_CANDIDATES)

    for match_query in build_query_strategies(query):
        try:
            rows = conn.execute(sql, [match_query] + params + [candidate_limit]).fetchall()
        except sqlite3.OperationalError as e:
            logger.info("FTS query rejected, trying fallback strategy: %s (%s)", match_query, e)
            continue
        if rows:
            return _rerank_rows(rows, query, limit)
        logger.debug("No rows for FTS query %r", match_query)

    return []


def _rerank_rows(rows: list[sqlite3.Row], raw_query: str, limit: int) -> list[dict]:
    """Boost BM25 candidates whose article or statute title covers the query terms."""
    terms = _extract_rank_terms(raw_query)

    scored: list[tuple[float, float, int, sqlite3.Row]] = []
    for row in rows:
        bm25_score = float(row["bm25_score"])
        title_cov = _term_coverage(terms, (row["title"] or "").lower())
        doc_cov = _term_coverage(
            terms,
            f"{row['document_title'] or ''} {row['short_name'] or ''}".lower(),
        )
        final_score = -bm25_score + 2.0 * title_cov + 1.0 * doc_cov
        scored.append((final_score, bm25_score, row["provision_id"], row))

    scored.sort(key=lambda x: (-x[0], x[1], x[2]))

    results: list[dict] = []
    for final_score, _bm25, _pid, row in scored[:limit]:
        results.append({
            "document_id": row["document_id"],
            "document_title": row["document_title"],
            "short_name": row["short_name"],
            "status": row["status"],
            "provision_ref": row["provision_ref"],
            "chapter": row["chapter"],
            "section": row["section"],
            "title": row["title"],
            "snippet": row["snippet"],
            "relevance_score": round(final_score, 4),
        })
    return results


def _extract_rank_terms(query: str) -> list[str]:
    terms: list[str] = []
    seen: set[str] = set()
    for tok in _TOKEN_RE.findall(query.lower()):
        if tok in RANK_STOPWORDS or tok.upper() in FTS_OPERATORS:
            continue
        if not tok.isdigit() and len(tok) < 3:
            continue
        if tok in seen:
            continue
        terms.append(tok)
        seen.add(tok)
        if len(terms) >= RERANK_TERM_LIMIT:
            break
    return terms


def _term_coverage(terms: list[str], text: str) -> float:
    """Fraction of query terms appearing in text."""
    if not terms:
        return 0.0
    hits = sum(1 for t in terms if t in text)
    return hits / len(terms)
