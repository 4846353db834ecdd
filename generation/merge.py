"""
Template merge engine.

Renders the template with docxtpl through the shared Jinja environment.
Text values are XML-escaped by autoescaping and a tag without a value fails
the merge. Image tags become calls to an image function that embeds the
blob through the part being rendered.
"""
import logging
from io import BytesIO
from typing import Any, Dict, Mapping, Optional, Tuple
from zipfile import BadZipFile

from docx.image.constants import MIME_TYPE
from docx.image.image import Image
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.shape import CT_Inline
from docx.parts.image import ImagePart
from docx.shared import Emu
from docxtpl import DocxTemplate, InlineImage
from jinja2 import StrictUndefined, TemplateError
from jinja2.utils import missing
from lxml import etree
from markupsafe import Markup

from common.jinja_env import build_env

from .exceptions import (
    ImageEmbedError,
    InvalidTemplate,
    TemplateMergeError,
    UnresolvedImagePlaceholder,
    UnresolvedPlaceholder,
)
from .placeholders import IMAGE_FUNCTION, canonicalize_image_key, rewrite_image_tags

logger = logging.getLogger(__name__)

EMU_PER_PIXEL = 9525
FALLBACK_SIZE_PX = (300, 200)
MIN_IMAGE_PX = 1
MAX_IMAGE_PX = 6000

DRAWING = (
    '</w:t></w:r><w:r><w:drawing>%s</w:drawing></w:r><w:r><w:t xml:space="preserve">'
)

# magic bytes of blobs python-docx may fail to read
IMAGE_SIGNATURES = (
    (b"\x89PNG", MIME_TYPE.PNG, "png"),
    (b"GIF8", MIME_TYPE.GIF, "gif"),
    (b"\xff\xd8", MIME_TYPE.JPEG, "jpg"),
    (b"BM", MIME_TYPE.BMP, "bmp"),
    (b"II*\x00", MIME_TYPE.TIFF, "tiff"),
    (b"MM\x00*", MIME_TYPE.TIFF, "tiff"),
)


class PlaceholderUndefined(StrictUndefined):
    """Strict undefined that fails with UnresolvedPlaceholder(name)."""

    __slots__ = ()

    def __init__(self, hint=None, obj=missing, name=None, exc=UnresolvedPlaceholder):
        super().__init__(hint, obj, name, exc)

    @property
    def _undefined_message(self) -> str:
        if self._undefined_name is not None:
            return self._undefined_name
        return self._undefined_hint or ""


_env = build_env(undefined=PlaceholderUndefined)


class TemplateDocument(DocxTemplate):
    """DocxTemplate that also understands ``{{%Name}}`` and ``{%Name}``."""

    def patch_xml(self, src_xml):
        return super().patch_xml(rewrite_image_tags(src_xml))


def build_context(data: Mapping[str, Any]) -> Dict[str, Any]:
    """None values are left out so that their tags stay unresolved."""
    return {key: value for key, value in data.items() if value is not None}


# --- Images -----------------------------------------------------------------

def _clamp(px: int) -> int:
    return max(MIN_IMAGE_PX, min(MAX_IMAGE_PX, px))


def read_image_size(blob: bytes) -> Optional[Tuple[int, int]]:
    """Native pixel size, clamped, or None when python-docx cannot read the blob."""
    try:
        image = Image.from_blob(blob)
        width, height = int(image.px_width), int(image.px_height)
    except Exception:
        # header parsers raise struct.error, EOF and format errors alike
        logger.warning(
            "Image header not readable, embedding at %dx%d px", *FALLBACK_SIZE_PX, exc_info=True
        )
        return None
    if width <= 0 or height <= 0:
        return None
    return _clamp(width), _clamp(height)


def sniff_content_type(blob: bytes) -> Tuple[str, str]:
    for signature, content_type, ext in IMAGE_SIGNATURES:
        if blob.startswith(signature):
            return content_type, ext
    if blob[:4] == b"RIFF" and blob[8:12] == b"WEBP":
        return "image/webp", "webp"
    return "application/octet-stream", "bin"


def _unsized_picture(part, blob: bytes) -> str:
    """Embed `blob` as is, at the fallback size."""
    width, height = FALLBACK_SIZE_PX
    content_type, ext = sniff_content_type(blob)
    partname = part.package.next_partname("/word/media/unsized%d." + ext)
    rid = part.relate_to(ImagePart(partname, content_type, blob), RT.IMAGE)
    inline = CT_Inline.new_pic_inline(
        part.next_id, rid, partname.filename,
        Emu(width * EMU_PER_PIXEL), Emu(height * EMU_PER_PIXEL),
    )
    return DRAWING % inline.xml


def _image_function(tpl: DocxTemplate, images: Mapping[str, bytes]):
    available = sorted(images)

    def render_image(tag):
        key = canonicalize_image_key(tag)
        blob = images.get(key)
        if not isinstance(blob, (bytes, bytearray)) or not blob:
            raise UnresolvedImagePlaceholder(key, available)
        part = tpl.current_rendering_part
        if not hasattr(part, "new_pic_inline"):
            raise TemplateMergeError(
                f"Image placeholder {{%{key}}} is not allowed in {part.partname}"
            )

        blob = bytes(blob)
        size = read_image_size(blob)
        try:
            if size is None:
                return Markup(_unsized_picture(part, blob))
            width, height = size
            picture = InlineImage(
                tpl, BytesIO(blob),
                width=Emu(width * EMU_PER_PIXEL), height=Emu(height * EMU_PER_PIXEL),
            )
            return Markup(str(picture))
        except Exception as exc:
            raise ImageEmbedError(key, f"{type(exc).__name__}: {exc}") from exc

    return render_image


# --- Merge ------------------------------------------------------------------

def _open(template: bytes) -> TemplateDocument:
    document = TemplateDocument(BytesIO(template))
    try:
        document.get_docx()
    except (BadZipFile, PackageNotFoundError, KeyError, ValueError, etree.XMLSyntaxError) as exc:
        raise InvalidTemplate(f"Template is not a valid DOCX package: {exc}") from exc
    return document


def merge_document(
    template: bytes,
    data: Mapping[str, Any],
    images: Optional[Mapping[str, bytes]] = None,
) -> bytes:
    """Merge `data` and `images` into `template` and return the new package.

    Raises UnresolvedPlaceholder for a text tag without a value,
    UnresolvedImagePlaceholder for an image tag without a blob and
    InvalidTemplate when `template` is not a DOCX package.
    """
    if not isinstance(template, (bytes, bytearray)) or not template:
        raise InvalidTemplate("Template must be a non-empty bytes buffer")

    images = {canonicalize_image_key(k): v for k, v in (images or {}).items()}
    document = _open(bytes(template))

    context = build_context(data or {})
    context[IMAGE_FUNCTION] = _image_function(document, images)
    try:
        document.render(context, jinja_env=_env)
    except TemplateError as exc:
        raise TemplateMergeError(f"Could not render template: {exc}") from exc
    except etree.XMLSyntaxError as exc:
        raise TemplateMergeError(f"Merged XML is not well-formed: {exc}") from exc

    out = BytesIO()
    document.save(out)
    return out.getvalue()
