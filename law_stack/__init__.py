"""
Swiss federal legislation lookup and citation tooling.

This package provides:
- Statute identifier resolution (SR numbers, abbreviations, titles)
- Citation parsing, validation and formatting
- Currency (in force / amended / repealed) checks
- FTS5 provision search and legal stance aggregation
- EU cross-references and alignment classification
- The tool registry shared by the MCP and HTTP servers
"""

from .citation_parser import ParsedCitation, parse_citation
from .currency import check_currency
from .errors import ToolError
from .eu_references import ComplianceStatus, classify_compliance, validate_eu_compliance
from .formatting import format_citation
from .legislation_search import search_legislation
from .registry import build_tools, call_tool
from .statute_id import resolve_document_id
from .store import LawStore, open_store, store_from_connection
from .validation import validate_citation

__all__ = [
    "ComplianceStatus",
    "LawStore",
    "ParsedCitation",
    "ToolError",
    "build_tools",
    "call_tool",
    "check_currency",
    "classify_compliance",
    "format_citation",
    "open_store",
    "parse_citation",
    "resolve_document_id",
    "search_legislation",
    "store_from_connection",
    "validate_citation",
    "validate_eu_compliance",
]
