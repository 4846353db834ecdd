import re
import struct
from io import BytesIO
from zipfile import ZipFile

import docx
import pytest

from generation.exceptions import (
    ImageEmbedError,
    InvalidTemplate,
    TemplateMergeError,
    UnresolvedImagePlaceholder,
    UnresolvedPlaceholder,
)
from generation.merge import merge_document, read_image_size, sniff_content_type
from generation.package import extract_text
from generation.placeholders import canonicalize_image_key, rewrite_image_tags


def read(buffer, name):
    with ZipFile(BytesIO(buffer)) as z:
        return z.read(name).decode("utf-8")


def test_text_substitution(make_docx):
    tpl = make_docx("Dear {{Claimant_Name}},", "See you on {{ Event_Date }}.")
    out = merge_document(tpl, {"Claimant_Name": "Jane Doe", "Event_Date": "February 21, 2025"})
    assert extract_text(out) == "Dear Jane Doe,\nSee you on February 21, 2025."


def test_placeholder_split_across_runs(make_docx):
    tpl = make_docx(["Hello {", "{Claim", "ant_Name}", "}!"])
    out = merge_document(tpl, {"Claimant_Name": "Jane"})
    assert extract_text(out) == "Hello Jane!"


def test_values_are_xml_escaped(make_docx):
    tpl = make_docx("{{Venue_Name}}")
    out = merge_document(tpl, {"Venue_Name": "Smith & Sons <Hall>"})
    assert "Smith &amp; Sons &lt;Hall&gt;" in read(out, "word/document.xml")
    assert extract_text(out) == "Smith & Sons <Hall>"


def test_numbers_are_stringified(make_docx):
    tpl = make_docx("{{Venue_Number}} / {{Distance_In_Miles}}")
    out = merge_document(tpl, {"Venue_Number": 12, "Distance_In_Miles": 6.21})
    assert extract_text(out) == "12 / 6.21"


def test_newlines_become_line_breaks(make_docx):
    tpl = make_docx("{{Venue_Address}}")
    out = merge_document(tpl, {"Venue_Address": "1 Main St\nSpringfield"})
    assert "<w:br/>" in read(out, "word/document.xml")
    assert extract_text(out) == "1 Main St\nSpringfield"


def test_missing_value_fails(make_docx):
    tpl = make_docx("{{Claimant_Name}} {{Venue_Name}}")
    with pytest.raises(UnresolvedPlaceholder) as exc:
        merge_document(tpl, {"Claimant_Name": "Jane"})
    assert exc.value.tag == "Venue_Name"


def test_none_value_counts_as_missing(make_docx):
    tpl = make_docx("{{Claimant_Name}}")
    with pytest.raises(UnresolvedPlaceholder):
        merge_document(tpl, {"Claimant_Name": None})


def test_header_is_rendered(make_docx):
    tpl = make_docx("Body", header="Case of {{Claimant_Name}}")
    out = merge_document(tpl, {"Claimant_Name": "Jane"})
    header = docx.Document(BytesIO(out)).sections[0].header
    assert header.paragraphs[0].text == "Case of Jane"


def test_template_without_placeholders_passes_through(make_docx):
    tpl = make_docx("Nothing to fill in.")
    assert extract_text(merge_document(tpl, {})) == "Nothing to fill in."


@pytest.mark.parametrize("tag", ["{{%logo}}", "{%logo}"])
def test_image_is_embedded_at_native_size(make_docx, png_640x480, tag):
    tpl = make_docx(f"Logo: {tag}")
    out = merge_document(tpl, {}, {"logo": png_640x480})

    xml = read(out, "word/document.xml")
    assert "<w:drawing>" in xml
    assert 'cx="6096000" cy="4572000"' in xml
    assert "logo" not in extract_text(out)
    with ZipFile(BytesIO(out)) as z:
        assert any(name.startswith("word/media/") for name in z.namelist())


def test_image_keys_are_canonical(make_docx, png_640x480):
    tpl = make_docx("{{%logo}}")
    out = merge_document(tpl, {}, {"%logo": png_640x480})
    assert "<w:drawing>" in read(out, "word/document.xml")


def test_image_ids_are_unique(make_docx, png_640x480):
    tpl = make_docx("{{%logo}}", "{%photo}")
    out = merge_document(tpl, {}, {"logo": png_640x480, "photo": png_640x480})
    ids = re.findall(r'<wp:docPr id="(\d+)"', read(out, "word/document.xml"))
    assert len(ids) == 2
    assert len(set(ids)) == 2


def test_missing_image_lists_available_keys(make_docx, png_640x480):
    tpl = make_docx("{{%logo}}")
    with pytest.raises(UnresolvedImagePlaceholder) as exc:
        merge_document(tpl, {}, {"photo": png_640x480, "badge": png_640x480})
    assert exc.value.tag == "logo"
    assert exc.value.available == ["badge", "photo"]
    assert "Available image keys: badge, photo" in str(exc.value)


def test_missing_image_without_any_images(make_docx):
    tpl = make_docx("{%logo}")
    with pytest.raises(UnresolvedImagePlaceholder) as exc:
        merge_document(tpl, {})
    assert "(none)" in str(exc.value)


WEBP = b"RIFF" + struct.pack("<I", 26) + b"WEBPVP8 " + b"\x00" * 18


@pytest.mark.parametrize(
    "blob, media",
    [
        (WEBP, "word/media/unsized1.webp"),
        (b"GIF89a", "word/media/unsized1.gif"),
        (b"definitely not an image", "word/media/unsized1.bin"),
    ],
)
def test_unreadable_image_is_embedded_at_fallback_size(make_docx, blob, media):
    tpl = make_docx("{{%logo}}")
    out = merge_document(tpl, {}, {"logo": blob})

    xml = read(out, "word/document.xml")
    assert "<w:drawing>" in xml
    assert 'cx="2857500" cy="1905000"' in xml
    with ZipFile(BytesIO(out)) as z:
        assert z.read(media) == blob


def test_truncated_png_is_embedded_at_fallback_size(make_docx, png_640x480):
    tpl = make_docx("{%logo}")
    out = merge_document(tpl, {}, {"logo": png_640x480[:20]})
    assert 'cx="2857500" cy="1905000"' in read(out, "word/document.xml")
    assert "image/png" in read(out, "[Content_Types].xml")


def test_embed_failure_is_a_merge_error(make_docx, png_640x480, monkeypatch):
    def broken(*args, **kwargs):
        raise struct.error("unpack requires a buffer of 4 bytes")

    monkeypatch.setattr("generation.merge.InlineImage", broken)
    tpl = make_docx("{{%logo}}")
    with pytest.raises(ImageEmbedError) as exc:
        merge_document(tpl, {}, {"logo": png_640x480})
    assert isinstance(exc.value, TemplateMergeError)
    assert exc.value.tag == "logo"


def test_image_size(png_640x480):
    assert read_image_size(png_640x480) == (640, 480)
    assert read_image_size(b"garbage") is None
    assert read_image_size(WEBP) is None


def test_sniff_content_type(png_640x480):
    assert sniff_content_type(png_640x480) == ("image/png", "png")
    assert sniff_content_type(WEBP) == ("image/webp", "webp")
    assert sniff_content_type(b"???") == ("application/octet-stream", "bin")


def test_invalid_package():
    with pytest.raises(InvalidTemplate):
        merge_document(b"not a zip file", {})
    with pytest.raises(InvalidTemplate):
        merge_document(b"", {})


def test_broken_template_syntax(make_docx):
    tpl = make_docx("{% if Claimant_Name %} never closed")
    with pytest.raises(TemplateMergeError):
        merge_document(tpl, {"Claimant_Name": "Jane"})


def test_template_is_not_modified(make_docx):
    tpl = make_docx("{{Claimant_Name}}")
    snapshot = bytes(tpl)
    merge_document(tpl, {"Claimant_Name": "Jane"})
    assert tpl == snapshot


def test_canonicalize_image_key():
    assert canonicalize_image_key("%logo") == canonicalize_image_key("logo") == "logo"
    assert canonicalize_image_key(" %logo ") == "logo"


def test_image_tags_split_over_runs_are_rewritten():
    xml = '<w:p><w:r><w:t>{%lo</w:t></w:r><w:r><w:t>go}</w:t></w:r></w:p>'
    assert rewrite_image_tags(xml) == "<w:p><w:r><w:t>{{ _docgen_image('logo') }}</w:t></w:r></w:p>"

    xml = "<w:p><w:r><w:t>{</w:t></w:r><w:r><w:t>{%photo}}</w:t></w:r></w:p>"
    assert "_docgen_image('photo')" in rewrite_image_tags(xml)


def test_image_rewrite_leaves_jinja_and_paragraphs_alone():
    xml = "<w:p><w:r><w:t>{% if x %}</w:t></w:r></w:p>"
    assert rewrite_image_tags(xml) == xml
    xml = "<w:p><w:r><w:t>{</w:t></w:r></w:p><w:p><w:r><w:t>%logo}</w:t></w:r></w:p>"
    assert rewrite_image_tags(xml) == xml


def test_image_split_over_runs_is_embedded(make_docx, png_640x480):
    tpl = make_docx(["Logo: {", "{%lo", "go}", "}"])
    out = merge_document(tpl, {}, {"logo": png_640x480})
    assert "<w:drawing>" in read(out, "word/document.xml")


def test_domain_filters(make_docx):
    tpl = make_docx("{{ Event_Time | time_hhmm }} / {{ Distance_In_Kilometres | km_to_miles }}")
    out = merge_document(tpl, {"Event_Time": "09:00", "Distance_In_Kilometres": "10"})
    assert extract_text(out) == "0900 / 6.21"
