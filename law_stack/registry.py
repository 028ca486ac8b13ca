"""
Tool registry shared by the MCP stdio server and the HTTP API.

Each tool is a JSON-schema description plus a handler taking the open
LawStore and the validated arguments. Tools whose tables are missing from
the store are neither listed nor callable.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel

from models import STATUS_VALUES

from .capabilities import Capability, upgrade_message
from .currency import check_currency
from .definitions import get_definitions
from .errors import InvalidArgumentsError, ToolUnavailableError, UnknownToolError
from .eu_references import (
    get_eu_basis,
    get_provision_eu_basis,
    get_swiss_implementations,
    search_eu_implementations,
    validate_eu_compliance,
)
from .formatting import CITATION_FORMATS, format_citation
from .legislation_search import search_legislation
from .metadata import tool_response
from .provisions import get_provision
from .sources import about, list_sources
from .stance import build_legal_stance
from .store import LawStore
from .validation import validate_citation

logger = logging.getLogger(__name__)


_STATUTE_ID_DESCRIPTION = (
    'Statute identifier: SR number (e.g., "SR 235.1"), abbreviation (e.g., "DSG", "StGB"), '
    'full title (e.g., "Federal Act on Data Protection"), or internal document ID.'
)

TOOLS: list[dict] = [
    {
        "name": "search_legislation",
        "description": (
            "Search Swiss statutes and regulations by keyword using full-text search (FTS5 with BM25 ranking). "
            "Returns matching provisions with document context, snippets with >>> <<< markers around "
            "matched terms, and relevance scores. "
            'Supports FTS5 syntax: quoted phrases ("exact match"), boolean operators (AND, OR, NOT), '
            "and prefix wildcards (term*). "
            "Do NOT use this for retrieving a known provision; use get_provision instead."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "Search query in German, French, Italian, or English. Examples:\n"
                        "- Simple: Datenschutz\n"
                        '- Phrase: "protection des données"\n'
                        "- Boolean: Daten AND Bearbeitung NOT Archiv\n"
                        "- Prefix: Personendat*"
                    ),
                },
                "document_id": {
                    "type": "string",
                    "description": "Optional: restrict results to one statute (any identifier form).",
                },
                "status": {
                    "type": "string",
                    "enum": list(STATUS_VALUES),
                    "description": "Optional: filter by legislative status.",
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum results to return (default 10, max 50).",
                    "default": 10,
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_provision",
        "description": (
            "Retrieve the full text of a specific provision (article) from a Swiss statute. "
            "Omit section/provision_ref to get ALL provisions of the statute (can be large). "
            "Use this when you know WHICH provision you want. For discovery, use search_legislation."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": _STATUTE_ID_DESCRIPTION},
                "section": {
                    "type": "string",
                    "description": 'Article number (e.g., "1", "143bis"). Omit to get all provisions.',
                },
                "provision_ref": {
                    "type": "string",
                    "description": 'Direct provision reference (e.g., "art1"). Alternative to section.',
                },
            },
            "required": ["document_id"],
        },
    },
    {
        "name": "validate_citation",
        "description": (
            "Validate a Swiss legal citation against the database. "
            "Parses the citation, checks that the statute and article exist, and warns about "
            "repealed, amended or not-yet-in-force statutes. Use this to verify any citation BEFORE "
            'including it in a legal analysis. Formats: "Art. 1 DSG", "DSG, Art. 1", "SR 235.1 Art. 1".'
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "citation": {
                    "type": "string",
                    "description": 'Citation string to validate, e.g. "Art. 6 Abs. 2 DSG".',
                },
            },
            "required": ["citation"],
        },
    },
    {
        "name": "build_legal_stance",
        "description": (
            "Build a set of citations for a legal question by searching across all Swiss statutes at once. "
            "Results are grouped per statute. Use this for broad questions such as "
            '"What are the penalties for data breaches in Switzerland?" rather than for a known provision.'
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": 'Legal question or topic (e.g., "Datenschutz", "data protection").',
                },
                "document_id": {
                    "type": "string",
                    "description": "Optional: limit the search to one statute.",
                },
                "limit": {
                    "type": "number",
                    "description": "Max provisions per statute (default 5, max 20).",
                    "default": 5,
                },
                "include_definitions": {
                    "type": "boolean",
                    "description": "Also return matching legal definitions (default false).",
                    "default": False,
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "format_citation",
        "description": (
            "Format a Swiss legal citation. "
            '"full" keeps the complete statute reference, "short" drops the parenthesised '
            'abbreviation, "pinpoint" returns the article reference only.'
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "citation": {"type": "string", "description": "Citation string to format."},
                "format": {
                    "type": "string",
                    "enum": list(CITATION_FORMATS),
                    "description": 'Output format (default "full").',
                    "default": "full",
                },
            },
            "required": ["citation"],
        },
    },
    {
        "name": "check_currency",
        "description": (
            "Check whether a Swiss statute or provision is in force, amended, repealed, or not yet in force. "
            "Returns the status, issued date, in-force date and warnings. Verify currency before citing."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": _STATUTE_ID_DESCRIPTION},
                "provision_ref": {
                    "type": "string",
                    "description": "Optional: provision reference to check a specific article.",
                },
            },
            "required": ["document_id"],
        },
    },
    {
        "name": "get_eu_basis",
        "description": (
            "Get the EU directives and regulations a Swiss statute aligns with or references. "
            "Switzerland is not an EU member but many Swiss laws align with EU law "
            "(e.g., nFADP with GDPR, ZertES with eIDAS)."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": _STATUTE_ID_DESCRIPTION},
                "include_articles": {
                    "type": "boolean",
                    "description": "Include EU article references and pinned Swiss provisions (default false).",
                    "default": False,
                },
            },
            "required": ["document_id"],
        },
    },
    {
        "name": "get_swiss_implementations",
        "description": (
            "Find the Swiss statutes that align with or implement a given EU directive or regulation. "
            "Switzerland adopts EU law through bilateral agreements and autonomous alignment, not transposition."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "eu_document_id": {
                    "type": "string",
                    "description": (
                        'EU document ID ("regulation:2016/679"), short name ("GDPR") '
                        'or number ("2016/679").'
                    ),
                },
                "primary_only": {
                    "type": "boolean",
                    "description": "Return only primary implementing statutes (default false).",
                    "default": False,
                },
                "in_force_only": {
                    "type": "boolean",
                    "description": "Return only statutes currently in force (default false).",
                    "default": False,
                },
            },
            "required": ["eu_document_id"],
        },
    },
    {
        "name": "search_eu_implementations",
        "description": (
            "Search EU directives and regulations by keyword, type or year range, "
            "with the number of aligned Swiss statutes for each."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Keyword matched against EU titles and short names."},
                "type": {"type": "string", "enum": ["directive", "regulation"], "description": "EU act type."},
                "year_from": {"type": "number", "description": "Earliest year."},
                "year_to": {"type": "number", "description": "Latest year."},
                "has_swiss_implementation": {
                    "type": "boolean",
                    "description": "true: only EU acts with Swiss legislation; false: only those without.",
                },
                "limit": {"type": "number", "description": "Max results (default 20, max 100).", "default": 20},
            },
        },
    },
    {
        "name": "get_provision_eu_basis",
        "description": (
            "Get the EU legal basis for ONE provision of a Swiss statute. "
            "More granular than get_eu_basis, which works at statute level."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": _STATUTE_ID_DESCRIPTION},
                "provision_ref": {"type": "string", "description": 'Provision reference (e.g., "art1" or "1").'},
            },
            "required": ["document_id", "provision_ref"],
        },
    },
    {
        "name": "validate_eu_compliance",
        "description": (
            "Classify the EU alignment of a Swiss statute or provision as compliant, partial, unclear "
            "or not_applicable, with warnings for repealed statutes, EU acts no longer in force and "
            "references missing an implementation status."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": _STATUTE_ID_DESCRIPTION},
                "provision_ref": {"type": "string", "description": "Optional: check one provision only."},
                "eu_document_id": {"type": "string", "description": "Optional: check against one EU act only."},
            },
            "required": ["document_id"],
        },
    },
    {
        "name": "get_definitions",
        "description": (
            "Look up legal definitions of a term (e.g., \"Personendaten\") across Swiss statutes, "
            "optionally restricted to one statute."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "term": {"type": "string", "description": "Term or part of a term, case-insensitive."},
                "document_id": {"type": "string", "description": "Optional: restrict to one statute."},
                "limit": {"type": "number", "description": "Max results (default 20, max 100).", "default": 20},
            },
            "required": ["term"],
        },
    },
    {
        "name": "list_sources",
        "description": (
            "Provenance of the data served here (Fedlex, Swiss Federal Chancellery): authority, licence, "
            "coverage, known limitations, dataset counts and build timestamp. "
            "Call this FIRST to understand what Swiss legal data this server covers."
        ),
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "about",
        "description": (
            "Server metadata, dataset statistics, freshness and available tools. "
            "Call this to verify coverage and currency before relying on results."
        ),
        "inputSchema": {"type": "object", "properties": {}},
    },
]

_TOOL_INDEX: dict[str, dict] = {t["name"]: t for t in TOOLS}

_CORE = (Capability.CORE_LEGISLATION,)
_SEARCH = (Capability.CORE_LEGISLATION, Capability.FULL_TEXT_SEARCH)
_EU = (Capability.CORE_LEGISLATION, Capability.EU_REFERENCES)

TOOL_REQUIREMENTS: dict[str, tuple[Capability, ...]] = {
    "search_legislation": _SEARCH,
    "get_provision": _CORE,
    "validate_citation": _CORE,
    "build_legal_stance": _SEARCH,
    "format_citation": (),
    "check_currency": _CORE,
    "get_eu_basis": _EU,
    "get_swiss_implementations": _EU,
    "search_eu_implementations": _EU,
    "get_provision_eu_basis": _EU,
    "validate_eu_compliance": _EU,
    "get_definitions": (Capability.CORE_LEGISLATION, Capability.DEFINITIONS),
    "list_sources": (),
    "about": (),
}


def missing_capability(name: str, capabilities: frozenset[Capability]) -> Capability | None:
    for cap in TOOL_REQUIREMENTS.get(name, ()):
        if cap not in capabilities:
            return cap
    return None


def build_tools(capabilities: frozenset[Capability]) -> list[dict]:
    """Tool descriptions available on a store with the given capabilities."""
    return [t for t in TOOLS if missing_capability(t["name"], capabilities) is None]


def tool_names(capabilities: frozenset[Capability]) -> list[str]:
    return [t["name"] for t in build_tools(capabilities)]


# ── Argument validation ───────────────────────────────────────

def _type_ok(expected: str, value: Any) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected in ("number", "integer"):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return True


def validate_arguments(name: str, arguments: dict | None) -> dict:
    """Check ``arguments`` against the tool's input schema; drop nulls and unknown keys."""
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError(f"Arguments for {name} must be an object")

    schema = _TOOL_INDEX[name]["inputSchema"]
    properties: dict = schema.get("properties", {})
    clean: dict = {}
    for key, value in arguments.items():
        if key not in properties:
            logger.debug("Ignoring unknown argument %r for %s", key, name)
            continue
        if value is None:
            continue
        prop = properties[key]
        if not _type_ok(prop.get("type", ""), value):
            raise InvalidArgumentsError(f"Argument '{key}' must be of type {prop['type']}")
        if "enum" in prop and value not in prop["enum"]:
            raise InvalidArgumentsError(
                f"Argument '{key}' must be one of: {', '.join(map(str, prop['enum']))}"
            )
        clean[key] = value

    for key in schema.get("required", []):
        value = clean.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidArgumentsError(f"Missing required argument '{key}'")
    return clean


# ── Dispatch ──────────────────────────────────────────────────

Handler = Callable[[LawStore, dict], Any]


def _legal_stance(store: LawStore, args: dict) -> dict:
    if args.get("include_definitions") and not store.has(Capability.DEFINITIONS):
        args = {**args, "include_definitions": False}
    return build_legal_stance(store.conn, **args)


_HANDLERS: dict[str, Handler] = {
    "search_legislation": lambda s, a: search_legislation(s.conn, **a),
    "get_provision": lambda s, a: get_provision(s.conn, **a),
    "validate_citation": lambda s, a: validate_citation(s.conn, a["citation"]),
    "build_legal_stance": _legal_stance,
    "format_citation": lambda s, a: format_citation(**a),
    "check_currency": lambda s, a: check_currency(s.conn, a["document_id"], a.get("provision_ref")),
    "get_eu_basis": lambda s, a: get_eu_basis(
        s.conn, a["document_id"], include_articles=a.get("include_articles", False),
    ),
    "get_swiss_implementations": lambda s, a: get_swiss_implementations(s.conn, **a),
    "search_eu_implementations": lambda s, a: search_eu_implementations(s.conn, **a),
    "get_provision_eu_basis": lambda s, a: get_provision_eu_basis(
        s.conn, a["document_id"], a["provision_ref"],
    ),
    "validate_eu_compliance": lambda s, a: validate_eu_compliance(
        s.conn, a["document_id"],
        provision_ref=a.get("provision_ref"),
        eu_document_id=a.get("eu_document_id"),
    ),
    "get_definitions": lambda s, a: get_definitions(s.conn, **a),
    "list_sources": lambda s, a: list_sources(s.conn, s.capabilities, s.freshness),
    "about": lambda s, a: about(s.conn, s.capabilities, tool_names(s.capabilities), s.freshness),
}


def call_tool(store: LawStore, name: str, arguments: dict | None = None) -> dict:
    """
    Run a tool and wrap its result in the ``{results, _metadata}`` envelope.

    Raises a ToolError subclass for caller defects; any other exception is a
    server failure and propagates unchanged.
    """
    if name not in _HANDLERS:
        raise UnknownToolError(f'Unknown tool "{name}".')
    missing = missing_capability(name, store.capabilities)
    if missing is not None:
        raise ToolUnavailableError(upgrade_message(name, missing))

    args = validate_arguments(name, arguments)
    result = _HANDLERS[name](store, args)

    if isinstance(result, BaseModel):
        result = result.model_dump(exclude_none=True)
    return tool_response(result, store.freshness)
