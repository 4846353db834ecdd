"""
Low level helpers over the DOCX zip container.

Used by the post-merge passes, which only touch a couple of XML parts and
copy everything else through unchanged.
"""
import html
import re
from io import BytesIO
from typing import Callable, Optional
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile

from .exceptions import InvalidDocumentStructure

DOCUMENT_PART = "word/document.xml"

# returns the new text of the part, or None to copy it unchanged
PartTransform = Callable[[str, str], Optional[str]]


def rewrite_parts(buffer: bytes, transform: PartTransform) -> bytes:
    try:
        zin = ZipFile(BytesIO(buffer))
    except BadZipFile as exc:
        raise InvalidDocumentStructure(f"Not a DOCX package: {exc}") from exc

    out = BytesIO()
    with zin, ZipFile(out, "w", ZIP_DEFLATED) as zout:
        for item in zin.infolist():
            data = zin.read(item.filename)
            if item.filename.endswith(".xml"):
                replaced = transform(item.filename, data.decode("utf-8"))
                if replaced is not None:
                    data = replaced.encode("utf-8")
            zout.writestr(item, data)
    return out.getvalue()


def read_part(buffer: bytes, name: str) -> Optional[str]:
    try:
        with ZipFile(BytesIO(buffer)) as z:
            if name not in z.namelist():
                return None
            return z.read(name).decode("utf-8")
    except BadZipFile as exc:
        raise InvalidDocumentStructure(f"Not a DOCX package: {exc}") from exc


def extract_text(buffer: bytes) -> str:
    """Plain text of the main document body."""
    xml = read_part(buffer, DOCUMENT_PART)
    if xml is None:
        raise InvalidDocumentStructure("word/document.xml not found in DOCX")

    text = re.sub(r"<w:br\b[^>]*/>", "\n", xml)
    text = re.sub(r"</w:p>", "\n", text)
    text = re.sub(r"<[^>]+>", "", text)
    text = html.unescape(text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()
