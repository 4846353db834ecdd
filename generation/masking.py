"""
Preview masking.

A preview is produced from masked data and carries a banner at the top of
the body; the full document is produced from the data as given.
"""
import re
from typing import Any, Dict, Iterable, List, Mapping

from markupsafe import escape

from .exceptions import InvalidDocumentStructure
from .package import DOCUMENT_PART, rewrite_parts

MASK = "•••••"

SENSITIVE_VARIABLES = frozenset({
    "Claimant_Name",
    "Reception_Person_Name",
    "Venue_Address",
    "Venue_Name",
    "Venue_Number",
})

PREVIEW_BANNER: List[str] = [
    "Trial Preview – Limited View",
    "Some details are hidden during the free trial.",
    "Download the DOCX to get the complete document.",
]

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
BODY_OPEN_RE = re.compile(r"<w:body(?:\s[^>]*)?>")


def mask_data(data: Mapping[str, Any], sensitive_keys: Iterable[str] = SENSITIVE_VARIABLES) -> Dict[str, Any]:
    """Copy of `data` with every non-empty sensitive value replaced by MASK."""
    sensitive = set(sensitive_keys)
    masked = dict(data)
    for key in sensitive.intersection(masked):
        if masked[key] is not None and masked[key] != "":
            masked[key] = MASK
    return masked


def banner_paragraph(lines: Iterable[str] = PREVIEW_BANNER) -> str:
    texts = ['<w:t xml:space="preserve">%s</w:t>' % escape(line) for line in lines]
    return '<w:p xmlns:w="%s"><w:r>%s</w:r></w:p>' % (W_NS, "<w:br/>".join(texts))


def inject_banner(buffer: bytes, lines: Iterable[str] = PREVIEW_BANNER) -> bytes:
    paragraph = banner_paragraph(lines)
    found = {"document": False}

    def transform(name, xml):
        if name != DOCUMENT_PART:
            return None
        found["document"] = True
        match = BODY_OPEN_RE.search(xml)
        if match is None:
            raise InvalidDocumentStructure("Invalid DOCX structure: <w:body> not found")
        return xml[:match.end()] + paragraph + xml[match.end():]

    result = rewrite_parts(buffer, transform)
    if not found["document"]:
        raise InvalidDocumentStructure("word/document.xml not found in DOCX")
    return result
