"""
Swiss Law MCP Server
====================

Local MCP server for Swiss federal legislation (Fedlex).
Runs over stdio, reads a local SQLite FTS5 database built by build_db.py.

Architecture:
    data/seed/*.json  (one act per file, plus eu-references.json)
        ↓ python build_db.py
    data/database.db  (SQLite + FTS5, read-only at runtime)
        ↓ search via MCP stdio
    Claude / Cursor / any MCP client

Installation:
    pip install -e .

Usage with Claude Desktop:
    claude mcp add swiss-law -- python3 /path/to/mcp_server.py

    Or in claude_desktop_config.json:
    {
      "mcpServers": {
        "swiss-law": {
          "command": "python3",
          "args": ["/path/to/mcp_server.py"],
          "env": {"SWISS_LAW_DB_PATH": "/path/to/database.db"}
        }
      }
    }

Tools exposed (see law_stack/registry.py for the schemas):
    search_legislation, get_provision, validate_citation, build_legal_stance,
    format_citation, check_currency, get_eu_basis, get_swiss_implementations,
    search_eu_implementations, get_provision_eu_basis, validate_eu_compliance,
    get_definitions, list_sources, about.

EU and definition tools are only listed when the database has their tables.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

# Add repo root to path so law_stack can be imported when run from any directory
sys.path.insert(0, str(Path(__file__).parent))
from law_stack.errors import ToolError
from law_stack.registry import build_tools, call_tool
from law_stack.store import LawStore, open_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
    stream=sys.stderr,  # MCP uses stdout for protocol, logs go to stderr
)
logger = logging.getLogger("swiss-law-mcp")

# ── Configuration ─────────────────────────────────────────────
DATA_DIR = Path(os.environ.get(
    "SWISS_LAW_DIR",
    Path(__file__).parent / "data",
))
DB_PATH = Path(os.environ.get("SWISS_LAW_DB_PATH", DATA_DIR / "database.db"))

# ── Database ──────────────────────────────────────────────────

_store: LawStore | None = None


def get_store() -> LawStore:
    """Open the store on first use and keep it for the process lifetime."""
    global _store
    if _store is None:
        _store = open_store(DB_PATH)
    return _store


# ── MCP Server ────────────────────────────────────────────────

_MISSING_DB_MESSAGE = "Database not found. Build it with 'python build_db.py' or set SWISS_LAW_DB_PATH."

server = Server("swiss-law")


@server.list_tools()
async def handle_list_tools() -> list[Tool]:
    try:
        store = get_store()
    except FileNotFoundError as e:
        raise ToolError(f"{_MISSING_DB_MESSAGE}\n\nError: {e}") from e
    return [
        Tool(
            name=t["name"],
            description=t["description"],
            inputSchema=t["inputSchema"],
        )
        for t in build_tools(store.capabilities)
    ]


@server.call_tool()
async def handle_call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Dispatch a tool call. Errors are raised so the SDK flags the result with isError."""
    try:
        payload = call_tool(get_store(), name, arguments)
    except ToolError:
        raise
    except FileNotFoundError as e:
        raise ToolError(f"{_MISSING_DB_MESSAGE}\n\nError: {e}") from e
    except Exception as e:
        logger.error("Tool error %s: %s", name, e, exc_info=True)
        raise ToolError(f"Internal error while running {name}.") from e

    return [TextContent(type="text", text=json.dumps(payload, indent=2, ensure_ascii=False))]


# ── Main ──────────────────────────────────────────────────────

async def main():
    logger.info("Swiss Law MCP Server starting")
    logger.info(f"Database: {DB_PATH}")

    if DB_PATH.exists():
        store = get_store()
        logger.info(
            "Capabilities: %s",
            ", ".join(sorted(c.value for c in store.capabilities)),
        )
    else:
        logger.info("No database found. Build one with: python build_db.py --output %s", DB_PATH)

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
