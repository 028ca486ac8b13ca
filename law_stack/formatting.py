"""Citation formatting (full / short / pinpoint)."""
from __future__ import annotations

from .citation_parser import parse_citation
from .errors import InvalidArgumentsError

CITATION_FORMATS = ("full", "short", "pinpoint")


def format_citation(citation: str, format: str = "full") -> dict:
    """
    Format a citation per Swiss conventions.

    full:     Art. 6 Bundesgesetz über den Datenschutz (Datenschutzgesetz, DSG)
    short:    Art. 6 Bundesgesetz über den Datenschutz
    pinpoint: Art. 6
    """
    if format not in CITATION_FORMATS:
        raise InvalidArgumentsError(f"Unknown citation format {format!r}; expected one of {', '.join(CITATION_FORMATS)}")

    parsed = parse_citation(citation)
    if parsed is None:
        return {"original": citation, "formatted": "", "format": format}

    law = parsed.document_ref
    article = parsed.article_ref
    if article and parsed.paragraph_ref:
        article = f"{article} Abs. {parsed.paragraph_ref}"

    if not article:
        formatted = law
    elif format == "pinpoint":
        formatted = f"Art. {article}"
    elif format == "short":
        formatted = f"Art. {article} {law.split('(')[0].strip() or law}"
    else:
        formatted = f"Art. {article} {law}"

    return {"original": citation, "formatted": formatted, "format": format}
