"""
Swiss Law HTTP API (FastAPI + SQLite FTS5)
==========================================

Provides:
- REST endpoints for provision search and citation validation
- MCP-compatible tool listing and invocation over HTTP
- The same tool registry and response envelope as the stdio MCP server

Usage:
    uvicorn fts5_server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from law_stack.errors import ToolError, UnknownToolError
from law_stack.registry import build_tools, call_tool
from law_stack.sources import SERVER_VERSION
from law_stack.store import LawStore, open_store
from models import STATUS_VALUES

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("SWISS_LAW_DIR", Path(__file__).parent / "data"))
DB_PATH = Path(os.environ.get("SWISS_LAW_DB_PATH", DATA_DIR / "database.db"))
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get("SWISS_LAW_HTTP_CORS_ORIGINS", "*").split(",")
    if o.strip()
]

app = FastAPI(
    title="Swiss Law Search",
    description="Swiss federal legislation: provision search, citation validation and EU cross-references",
    version=SERVER_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store: LawStore | None = None


def get_store() -> LawStore:
    global _store
    if _store is None:
        if not DB_PATH.exists():
            raise HTTPException(503, "Database not available. Build it with build_db.py first.")
        _store = open_store(DB_PATH)
    return _store


def _invoke(name: str, arguments: dict) -> dict:
    store = get_store()
    try:
        return call_tool(store, name, arguments)
    except UnknownToolError as e:
        raise HTTPException(404, str(e))
    except ToolError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.error("Tool error %s: %s", name, e, exc_info=True)
        raise HTTPException(500, f"Internal error while running {name}.")


# ============================================================
# Request models
# ============================================================


class ValidateRequest(BaseModel):
    citation: str


# ============================================================
# Endpoints
# ============================================================


@app.get("/search")
def search(
    q: str = Query(..., description="Search query (FTS5 syntax)"),
    document_id: Optional[str] = Query(None, description="Restrict to one statute"),
    status: Optional[str] = Query(None, description=f"Filter by status ({', '.join(STATUS_VALUES)})"),
    limit: int = Query(10, description="Max results (capped at 50)"),
):
    """
    Search statute provisions using FTS5 full-text search.

    Supports FTS5 query syntax: AND, OR, NOT, phrases ("..."), prefix*.
    """
    return _invoke(
        "search_legislation",
        {"query": q, "document_id": document_id, "status": status, "limit": limit},
    )


@app.post("/validate")
def validate(req: ValidateRequest):
    """Validate a citation such as "Art. 6 DSG"."""
    return _invoke("validate_citation", {"citation": req.citation})


# ============================================================
# MCP-compatible endpoints
# ============================================================


@app.get("/tools")
def tools():
    """Tool definitions available on the loaded database."""
    return {"tools": build_tools(get_store().capabilities)}


@app.post("/tools/{tool_name}")
def invoke_tool(tool_name: str, body: Optional[dict] = None):
    """Invoke a registry tool with a JSON object of arguments."""
    return _invoke(tool_name, body or {})


@app.get("/health")
def health():
    """Health check."""
    try:
        store = get_store()
        count = store.conn.execute("SELECT COUNT(*) FROM legal_documents").fetchone()[0]
        return {
            "status": "ok",
            "documents": count,
            "capabilities": sorted(c.value for c in store.capabilities),
            "built_at": store.freshness,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
