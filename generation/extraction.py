"""
Template variable extractor.

Scans the XML parts of a DOCX for ``{{Name}}``, ``{{%Name}}`` and ``{%Name}``
and builds the form schema of templates that have no hand-written fields.

Strategy: every part is flattened to plain text (tags removed, one line per
paragraph) so that a placeholder split over several runs reads as one token,
then the regexes run over that text.
"""
import re
from io import BytesIO
from typing import Dict, List, Tuple
from zipfile import BadZipFile, ZipFile

from .exceptions import InvalidTemplate
from .placeholders import canonicalize_image_key
from .schema import FieldSpec

TEXT_PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}%#/\s][^{}]*?)\s*\}\}")
WRAPPED_IMAGE_RE = re.compile(r"\{\{\s*%\s*([A-Za-z0-9_]+)\s*\}\}")
STANDALONE_IMAGE_RE = re.compile(r"(?<!\{)\{%\s*([A-Za-z0-9_]+)\s*\}(?!\})")
VALID_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")

# filled in by the derivation layer, never asked for on the form
COMPUTED_VARIABLES = frozenset({
    "Event_Day",
    "Country_Standard_Time",
    "Country_Code",
    "Country_Standard_Time_Short",
    "COUNTRY_CURRENCY_SHORT_NAME",
    "End_Time_For_Booking_Venue",
    "Start_Time_For_Report_Preparation",
    "End_Time_For_Report_Preparation",
    "Total_Time",
    "Service_Time",
    "Distance_In_Miles",
})

SELECT_OPTIONS_BY_VARIABLE: Dict[str, Tuple[str, ...]] = {
    "Meeting_Type": ("Virtual", "In Person", "None"),
    "Room_Type": ("Single", "Double", "Suite", "Twin", "None"),
    "Notary_Type": ("In Person", "Virtual", "None"),
}
DEFAULT_SELECT_OPTIONS = ("None",)

SECTION_ORDER = (
    "Dates",
    "Claimant Details",
    "Times",
    "Venue Information",
    "Accommodation",
    "Notary",
    "ENT Test",
    "Distance & Options",
    "General",
    "Attachments",
)

_IMAGE_WORDS_RE = re.compile(r"image|photo|picture|logo")


def _xml_to_plain(xml: str) -> str:
    text = xml.replace("</w:p>", "\n")
    return re.sub(r"<[^>]+>", "", text)


def _iter_plain_parts(template: bytes):
    try:
        with ZipFile(BytesIO(template)) as z:
            for name in z.namelist():
                if name.endswith(".xml"):
                    yield _xml_to_plain(z.read(name).decode("utf-8", errors="ignore"))
    except BadZipFile as exc:
        raise InvalidTemplate(f"Template is not a valid DOCX package: {exc}") from exc


def _accept(name: str) -> bool:
    return bool(name) and not name.startswith(("#", "/")) and bool(VALID_NAME_RE.match(name))


def extract_variables(template: bytes) -> List[Tuple[str, bool]]:
    """``(name, is_image)`` for every name used by the template, in order of
    first appearance.

    Image names are returned without their ``%`` marker. A name used by both
    kinds of tag is an image slot.
    """
    found: Dict[str, bool] = {}
    for text in _iter_plain_parts(template):
        for m in TEXT_PLACEHOLDER_RE.finditer(text):
            name = m.group(1).split("|", 1)[0].strip()
            if _accept(name):
                found.setdefault(name, False)
        for regex in (WRAPPED_IMAGE_RE, STANDALONE_IMAGE_RE):
            for m in regex.finditer(text):
                name = canonicalize_image_key(m.group(1))
                if _accept(name):
                    found[name] = True
    return list(found.items())


# --- Inference --------------------------------------------------------------

def format_label(name: str) -> str:
    """Meeting_Type -> "Meeting Type" """
    label = name.lstrip("%").replace("_", " ")
    label = re.sub(r"([A-Z])", r" \1", label)
    return " ".join(label.split())


def infer_field_type(name: str, is_image: bool = False) -> Dict[str, object]:
    lower = name.lower()
    label = format_label(name)
    if is_image or lower == "logo" or _IMAGE_WORDS_RE.search(lower):
        return {"type": "image", "label": label, "full_width": True}
    if "date" in lower:
        return {"type": "date", "label": label}
    if "time" in lower:
        return {"type": "time", "label": label}
    if re.search(r"distance|kilometres|miles|number", lower):
        return {"type": "number", "label": label}
    if ("type" in name or "Type" in name) and name != "Event_Type":
        options = SELECT_OPTIONS_BY_VARIABLE.get(name, DEFAULT_SELECT_OPTIONS)
        return {"type": "select", "label": label, "options": options}
    return {"type": "text", "label": label}


def infer_section(name: str, is_image: bool = False) -> str:
    if is_image:
        return "Attachments"
    n = name.lower()
    tokens = n.split("_")
    if "date" in n or "fr" in tokens:
        return "Dates"
    if "claimant" in n or "event_type" in n:
        return "Claimant Details"
    if "time" in n:
        return "Times"
    if "accommodation" in n or "hotel" in n or ("booking" in n and "room" in n):
        return "Accommodation"
    if "notary" in n:
        return "Notary"
    if "ent" in tokens and ("test" in n or "exam" in n):
        return "ENT Test"
    if "venue" in n or "reception" in n:
        return "Venue Information"
    if "distance" in n or "meeting" in n or "type" in n:
        return "Distance & Options"
    if _IMAGE_WORDS_RE.search(n):
        return "Attachments"
    return "General"


def _sort_key(spec: FieldSpec):
    try:
        section = SECTION_ORDER.index(spec.section)
    except ValueError:
        section = len(SECTION_ORDER)
    return (spec.is_image, section, spec.name)


def infer_field_schema(template: bytes) -> List[FieldSpec]:
    """Schema of a template with no registered fields.

    Computed variables stay in the schema, flagged `computed`, so that the
    validator still requires them while the form leaves them out.
    """
    fields = []
    for name, is_image in extract_variables(template):
        inferred = infer_field_type(name, is_image)
        options = tuple(inferred.get("options", ()))
        fields.append(FieldSpec(
            name=name,
            type=inferred["type"],
            label=inferred["label"],
            section=infer_section(name, is_image),
            options=options,
            blank_allowed=inferred["type"] == "select" and "None" in options,
            computed=name in COMPUTED_VARIABLES,
            full_width=bool(inferred.get("full_width", False)),
        ))
    return sorted(fields, key=_sort_key)
