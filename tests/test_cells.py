import pytest

from kanji_drill.cells import (
    InlineRuby,
    RunsRuby,
    SingleRuby,
    col_letter_to_index,
    decode_cell_ref,
    decode_ruby,
    extract_cell,
    extract_workbook,
    phonetic_of,
    read_first_sheet,
    RawCell,
)
from kanji_drill.errors import WorkbookFormatError
from kanji_drill.models import Cell


def test_decode_ruby_shapes():
    assert decode_ruby(None) is None
    assert decode_ruby(42) is None
    assert decode_ruby("<si/>") == InlineRuby("<si/>")
    assert decode_ruby([{"t": "a"}, {"rPh": {"t": "かん"}}]) == RunsRuby((None, "かん"))
    assert decode_ruby({"rPh": {"t": "じ"}}) == SingleRuby("じ")


def test_inline_reading_collapses_whitespace():
    markup = '<si><t>学校</t><rPh sb="0" eb="2"><t xml:space="preserve"> が っ こう </t></rPh></si>'
    assert phonetic_of(decode_ruby(markup)) == "がっこう"


def test_blank_inline_reading_is_none():
    markup = '<si><t>学</t><rPh sb="0" eb="1"><t xml:space="preserve">   </t></rPh></si>'
    assert phonetic_of(decode_ruby(markup)) is None


def test_inline_reading_with_namespace_prefix():
    markup = '<ns0:si xmlns:ns0="x"><ns0:t>山</ns0:t><ns0:rPh sb="0" eb="1"><ns0:t>やま</ns0:t></ns0:rPh></ns0:si>'
    assert phonetic_of(decode_ruby(markup)) == "やま"


def test_inline_without_ruby_has_no_reading():
    assert phonetic_of(decode_ruby("<si><t>学校</t></si>")) is None


def test_runs_return_first_reading():
    runs = [None, "junk", {"rPh": "not a dict"}, {"rPh": {"t": "いち"}}, {"rPh": {"t": "に"}}]
    assert phonetic_of(decode_ruby(runs)) == "いち"


def test_runs_reading_is_not_collapsed():
    assert phonetic_of(decode_ruby([{"rPh": {"t": "が っこう"}}])) == "が っこう"


@pytest.mark.parametrize("raw", [{"rPh": None}, {"rPh": {"t": ""}}, {}, [], [1, 2, 3], object()])
def test_malformed_metadata_degrades_to_no_reading(raw):
    assert phonetic_of(decode_ruby(raw)) is None


def test_extract_cell():
    assert extract_cell(None) == Cell(text="", phonetic=None)
    assert extract_cell(RawCell(value="  本 ", rich=None)) == Cell(text="  本 ", phonetic=None)
    assert extract_cell(RawCell(value="本", rich={"rPh": {"t": "ほん"}})) == Cell(text="本", phonetic="ほん")


def test_cell_refs():
    assert col_letter_to_index("A") == 0
    assert col_letter_to_index("F") == 5
    assert col_letter_to_index("AA") == 26
    assert decode_cell_ref("B3") == (2, 1)
    assert decode_cell_ref("bogus") is None


def test_read_workbook_with_ruby(make_xlsx):
    data = make_xlsx([
        ["日", "NHẬT", "ひ、か", "ニチ", ("日本", "にほん"), "毎日"],
        [None, None, None, None, ("今日", "きょう"), None],
    ])
    grid = extract_workbook(data)

    assert len(grid) == 2
    assert all(len(row) == 6 for row in grid)
    first, second = grid
    assert first[0] == Cell("日", None)
    assert first[2] == Cell("ひ、か", None)
    assert first[4] == Cell("日本", "にほん")
    assert first[5] == Cell("毎日", None)
    assert second[0] == Cell("", None)
    assert second[4] == Cell("今日", "きょう")


def test_read_first_sheet_range(make_xlsx):
    sheet = read_first_sheet(make_xlsx([["火", "HỎA"]]))
    assert (sheet.first_row, sheet.first_col) == (0, 0)
    assert (sheet.last_row, sheet.last_col) == (1, 5)
    assert sheet.cells[(1, 1)].value == "HỎA"


def test_not_a_workbook():
    with pytest.raises(WorkbookFormatError):
        extract_workbook(b"this is not a zip file")
