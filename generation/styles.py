"""
Post-merge stylesheet normalizer.

Generated documents share one default run format no matter which template
they came from: Aptos 13pt, black, English language tags.
"""
import re

from .package import rewrite_parts

NEW_RPR_DEFAULT = (
    "<w:rPrDefault><w:rPr>"
    '<w:rFonts w:ascii="Aptos" w:hAnsi="Aptos" w:cs="Aptos" w:eastAsia="Aptos"/>'
    '<w:sz w:val="26"/>'
    '<w:szCs w:val="26"/>'
    '<w:color w:val="000000"/>'
    '<w:lang w:val="en-US" w:eastAsia="en-US" w:bidi="ar-SA"/>'
    "</w:rPr></w:rPrDefault>"
)

RPR_DEFAULT_RE = re.compile(r"<w:rPrDefault\b[^>]*?(?:/>|>.*?</w:rPrDefault>)", re.DOTALL)
STYLES_PART_RE = re.compile(r"^word/styles[^/]*\.xml$")


def normalize_styles_xml(xml: str) -> str:
    return RPR_DEFAULT_RE.sub(NEW_RPR_DEFAULT, xml)


def normalize_stylesheet(buffer: bytes) -> bytes:
    """Replace the default run properties of every styles part.

    Documents without a `w:rPrDefault` block pass through unchanged.
    """
    def transform(name, xml):
        if not STYLES_PART_RE.match(name) or not RPR_DEFAULT_RE.search(xml):
            return None
        return normalize_styles_xml(xml)

    return rewrite_parts(buffer, transform)
