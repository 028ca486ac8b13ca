"""
Citation parsing for Swiss statute references.

Supported forms, tried in order (first structural match wins):
    Art. 1 DSG / Art. 143bis StGB       -> ARTICLE_FIRST
    DSG Art. 1 / DSG, Art. 1            -> ARTICLE_LAST
    SR 235.1 Art. 1                     -> SR_EXPLICIT
    anything else                       -> BARE_DOCUMENT

ARTICLE_LAST already accepts "SR 235.1 Art. 1" and keeps "SR 235.1" as
written, so SR_EXPLICIT only matters if the rule order changes.

A paragraph qualifier ("Abs. 2", "al. 2", "cpv. 2", "para. 2") directly after
the article number is split off into ``paragraph_ref``.

The grammar is deliberately permissive. Whether the extracted document
reference points at a real statute is decided by the resolver, not here.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class CitationForm(str, Enum):
    ARTICLE_FIRST = "article_first"
    ARTICLE_LAST = "article_last"
    SR_EXPLICIT = "sr_explicit"
    BARE_DOCUMENT = "bare_document"


ORDINAL_SUFFIXES = (
    "bis", "ter", "quater", "quinquies", "sexies",
    "septies", "octies", "novies", "decies",
)

_ARTICLE_MARKER = r"(?:Art(?:ikel|icle)?\.?)"
_ARTICLE_TOKEN = rf"\d+(?:{'|'.join(ORDINAL_SUFFIXES)})?[a-z]*"
_PARAGRAPH_MARKER = r"(?:Abs\.?|Absatz|al\.?|alin(?:ea)?\.?|cpv\.?|para\.?)"
_PARAGRAPH = rf"(?:\s+{_PARAGRAPH_MARKER}\s*(?P<paragraph>{_ARTICLE_TOKEN}))?"


@dataclass(frozen=True)
class ParsedCitation:
    form: CitationForm
    document_ref: str
    article_ref: str | None = None
    paragraph_ref: str | None = None


@dataclass(frozen=True)
class CitationRule:
    """One surface syntax. ``document_template`` is filled from the match groups."""

    form: CitationForm
    pattern: re.Pattern
    document_template: str = "{document}"


CITATION_RULES: tuple[CitationRule, ...] = (
    CitationRule(
        CitationForm.ARTICLE_FIRST,
        re.compile(
            rf"^{_ARTICLE_MARKER}\s*(?P<article>{_ARTICLE_TOKEN}){_PARAGRAPH}\s+(?P<document>.+)$",
            re.IGNORECASE,
        ),
    ),
    CitationRule(
        CitationForm.ARTICLE_LAST,
        re.compile(
            rf"^(?P<document>.+?)[,;]?\s*{_ARTICLE_MARKER}\s*(?P<article>{_ARTICLE_TOKEN}){_PARAGRAPH}$",
            re.IGNORECASE,
        ),
    ),
    CitationRule(
        CitationForm.SR_EXPLICIT,
        re.compile(
            rf"^SR\s*(?P<number>\d+(?:\.\d+)*)\s*[,;]?\s*{_ARTICLE_MARKER}\s*"
            rf"(?P<article>{_ARTICLE_TOKEN}){_PARAGRAPH}$",
            re.IGNORECASE,
        ),
        document_template="SR {number}",
    ),
)


def parse_citation(citation: str) -> ParsedCitation | None:
    """Split a citation into document and article references.

    Returns None only for blank input; any other string at least parses as a
    bare document reference.
    """
    if not isinstance(citation, str):
        raise TypeError(f"citation must be a string, got {type(citation).__name__}")

    trimmed = citation.strip()
    if not trimmed:
        return None

    for rule in CITATION_RULES:
        m = rule.pattern.match(trimmed)
        if not m:
            continue
        groups = {k: v for k, v in m.groupdict().items() if v is not None}
        document_ref = rule.document_template.format(**groups).strip().rstrip(",;").strip()
        if not document_ref:
            continue
        paragraph = m.group("paragraph")
        return ParsedCitation(
            form=rule.form,
            document_ref=document_ref,
            article_ref=m.group("article").lower(),
            paragraph_ref=paragraph.lower() if paragraph else None,
        )

    return ParsedCitation(form=CitationForm.BARE_DOCUMENT, document_ref=trimmed)
