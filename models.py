"""
Unified schema for Swiss federal legislation records.
Seed files consumed by build_db.py must conform to these models, and the
lookup tools report their results through the result models below.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

MAX_PROVISION_CONTENT = 50_000  # chars per provision


class DocumentStatus(str, Enum):
    """Legislative lifecycle of a document, in lifecycle order."""

    NOT_YET_IN_FORCE = "not_yet_in_force"
    IN_FORCE = "in_force"
    AMENDED = "amended"
    REPEALED = "repealed"

    @property
    def is_current(self) -> bool:
        return self in (DocumentStatus.IN_FORCE, DocumentStatus.AMENDED)


STATUS_VALUES = tuple(s.value for s in DocumentStatus)


class EUDocumentType(str, Enum):
    DIRECTIVE = "directive"
    REGULATION = "regulation"


# ============================================================
# Corpus records
# ============================================================


class LegalProvision(BaseModel):
    """An article within exactly one statute."""

    provision_ref: str = Field(
        ..., description="Normalized token, unique per document (e.g., 'art6', 'art143bis')"
    )
    chapter: Optional[str] = Field(None, description="Enclosing chapter/title heading")
    section: str = Field(..., description="Article label as printed (e.g., '6', '143bis')")
    title: Optional[str] = Field(None, description="Marginal note / Randtitel")
    content: str = Field(..., description="Full article text (plain text)")

    @field_validator("provision_ref", "section")
    @classmethod
    def validate_token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("provision_ref and section must not be empty")
        return v

    @field_validator("content")
    @classmethod
    def cap_content(cls, v: str) -> str:
        return v[:MAX_PROVISION_CONTENT]


class Definition(BaseModel):
    term: str
    definition: str
    source_provision: Optional[str] = Field(
        None, description="provision_ref the definition was extracted from (lookup aid only)"
    )


class LegalDocument(BaseModel):
    """A federal act or ordinance from the Classified Compilation (SR)."""

    id: str = Field(
        ...,
        description="Canonical ID derived from the SR number, e.g. sr-235-1",
    )
    type: str = Field("statute", description="Document type")
    title: str = Field(..., description="Official title (authoritative language)")
    title_en: Optional[str] = Field(None, description="Unofficial English title")
    short_name: Optional[str] = Field(None, description="Abbreviation, e.g. DSG, StGB")
    status: DocumentStatus = DocumentStatus.IN_FORCE
    issued_date: Optional[str] = None
    in_force_date: Optional[str] = None
    url: Optional[str] = Field(None, description="Fedlex URL")
    description: Optional[str] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("document id must not be empty")
        return v


class SeedAct(LegalDocument):
    """One seed file: a document with its provisions and definitions."""

    provisions: list[LegalProvision] = Field(default_factory=list)
    definitions: list[Definition] = Field(default_factory=list)


class EUDocument(BaseModel):
    id: str = Field(..., description="Typed composite ID: '<type>:<year>/<number>'")
    type: EUDocumentType
    year: int
    number: int
    title: Optional[str] = None
    short_name: Optional[str] = Field(None, description="Common name, e.g. GDPR")
    url: Optional[str] = None
    in_force: bool = True

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not EU_DOCUMENT_ID_PATTERN.match(v):
            raise ValueError(f"EU document id must look like 'regulation:2016/679': {v}")
        return v


class EUReference(BaseModel):
    """Edge between a Swiss document (optionally one provision) and an EU act."""

    document_id: str
    provision_ref: Optional[str] = None
    eu_document_id: str
    eu_article: Optional[str] = None
    reference_type: Optional[str] = Field(
        None, description="implements, aligns_with, complies_with, references, ..."
    )
    is_primary_implementation: bool = False
    implementation_status: Optional[str] = None


# ============================================================
# Result objects
# ============================================================


class ResponseMetadata(BaseModel):
    data_source: str
    jurisdiction: str
    disclaimer: str
    freshness: Optional[str] = None


class ValidationResult(BaseModel):
    valid: bool
    citation: str
    normalized: Optional[str] = None
    document_id: Optional[str] = None
    document_title: Optional[str] = None
    provision_ref: Optional[str] = None
    status: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)


class CurrencyResult(BaseModel):
    document_id: str
    found: bool
    document_title: Optional[str] = None
    status: Optional[str] = None
    issued_date: Optional[str] = None
    in_force_date: Optional[str] = None
    is_current: Optional[bool] = None
    provision_ref: Optional[str] = None
    provision_found: Optional[bool] = None
    warnings: list[str] = Field(default_factory=list)


# ============================================================
# Helper functions
# ============================================================

EU_DOCUMENT_ID_PATTERN = re.compile(r"^(directive|regulation):\d{4}/\d+$")


def make_document_id(sr_number: str) -> str:
    """
    Create the canonical document ID from an SR number.

    '235.1'   -> 'sr-235-1'
    'SR 0.101' -> 'sr-0-101'
    """
    number = re.sub(r"^SR\s*", "", sr_number.strip(), flags=re.IGNORECASE)
    return "sr-" + number.replace(".", "-")


def make_provision_ref(section: str) -> str:
    """Normalize an article label into a provision_ref: '143 bis' -> 'art143bis'."""
    return "art" + re.sub(r"\s+", "", section.strip().lower())
