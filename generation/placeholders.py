"""
Image placeholder syntax.

Image slots are written ``{{%Name}}`` or ``{%Name}``. ``{%`` is Jinja's block
opener, so the image tags are rewritten into calls to the image function
before docxtpl cleans the part up for Jinja. Word may split a tag over
several runs; the run boundaries inside an image tag go away with the tag.
"""
import re

IMAGE_FUNCTION = "_docgen_image"

# any tag except a paragraph boundary
_TAG = r"<(?!/?w:p[\s>/])[^>]*>"
_TAGS = rf"(?:{_TAG})*"
_GAP = rf"(?:\s|{_TAG})*"
_NAME = rf"((?:[A-Za-z0-9_]|{_TAG})+?)"

WRAPPED_IMAGE_RE = re.compile(rf"\{{{_TAGS}\{{{_GAP}%{_GAP}{_NAME}{_GAP}\}}{_TAGS}\}}")
STANDALONE_IMAGE_RE = re.compile(rf"(?<!\{{)\{{{_TAGS}%{_GAP}{_NAME}{_GAP}\}}(?!{_TAGS}\}})")

_ANY_TAG_RE = re.compile(r"<[^>]*>")


def canonicalize_image_key(key) -> str:
    """The one spelling of an image key: ``%logo``, `` logo`` and ``logo`` are equal."""
    return str(key).strip().lstrip("%").strip()


def _image_call(match) -> str:
    name = canonicalize_image_key(_ANY_TAG_RE.sub("", match.group(1)))
    if not name:
        return match.group(0)
    return "{{ %s('%s') }}" % (IMAGE_FUNCTION, name)


def rewrite_image_tags(xml: str) -> str:
    xml = WRAPPED_IMAGE_RE.sub(_image_call, xml)
    return STANDALONE_IMAGE_RE.sub(_image_call, xml)
