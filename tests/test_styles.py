from io import BytesIO
from zipfile import ZipFile

from generation.styles import NEW_RPR_DEFAULT, normalize_stylesheet, normalize_styles_xml


def read(buffer, name):
    with ZipFile(BytesIO(buffer)) as z:
        return z.read(name).decode("utf-8")


def test_every_styles_part_gets_the_fixed_defaults(make_docx):
    out = normalize_stylesheet(make_docx("text"))
    for name in ("word/styles.xml", "word/stylesWithEffects.xml"):
        xml = read(out, name)
        assert xml.count("<w:rPrDefault>") == 1
        assert NEW_RPR_DEFAULT in xml
        assert 'w:ascii="Aptos"' in xml
        assert '<w:sz w:val="26"/>' in xml


def test_idempotent(make_docx):
    once = normalize_stylesheet(make_docx("text"))
    twice = normalize_stylesheet(once)
    assert read(once, "word/styles.xml") == read(twice, "word/styles.xml")


def test_other_parts_untouched(make_docx):
    tpl = make_docx("Body text")
    out = normalize_stylesheet(tpl)
    assert read(out, "word/document.xml") == read(tpl, "word/document.xml")


def test_self_closing_block_is_replaced():
    xml = "<w:docDefaults><w:rPrDefault/><w:pPrDefault/></w:docDefaults>"
    assert normalize_styles_xml(xml) == f"<w:docDefaults>{NEW_RPR_DEFAULT}<w:pPrDefault/></w:docDefaults>"


def test_styles_without_block_pass_through():
    xml = "<w:styles><w:style w:styleId='Normal'/></w:styles>"
    assert normalize_styles_xml(xml) == xml
