from io import BytesIO
from zipfile import ZipFile

import pytest

from generation.exceptions import InvalidDocumentStructure
from generation.masking import MASK, PREVIEW_BANNER, inject_banner, mask_data
from generation.package import extract_text, rewrite_parts


def test_masks_only_non_empty_sensitive_values():
    data = {"Claimant_Name": "Jane", "Venue_Name": "", "Venue_Number": None, "Event_Date": "x"}
    masked = mask_data(data)
    assert masked == {"Claimant_Name": MASK, "Venue_Name": "", "Venue_Number": None, "Event_Date": "x"}


def test_mask_does_not_mutate_input():
    data = {"Claimant_Name": "Jane"}
    mask_data(data)
    assert data == {"Claimant_Name": "Jane"}


def test_custom_sensitive_keys():
    assert mask_data({"A": "1", "Claimant_Name": "Jane"}, ["A"]) == {"A": MASK, "Claimant_Name": "Jane"}


def test_banner_is_first_paragraph(make_docx):
    out = inject_banner(make_docx("Body"))
    text = extract_text(out)
    assert text.startswith("\n".join(PREVIEW_BANNER))
    assert text.endswith("Body")


def test_banner_missing_body(make_docx):
    broken = rewrite_parts(
        make_docx("Body"),
        lambda name, xml: "<w:document/>" if name == "word/document.xml" else None,
    )
    with pytest.raises(InvalidDocumentStructure):
        inject_banner(broken)


def test_banner_missing_document_part():
    out = BytesIO()
    with ZipFile(out, "w") as z:
        z.writestr("[Content_Types].xml", "<Types/>")
    with pytest.raises(InvalidDocumentStructure):
        inject_banner(out.getvalue())


def test_not_a_package():
    with pytest.raises(InvalidDocumentStructure):
        inject_banner(b"nope")
