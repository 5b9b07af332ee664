import pytest

from kanji_drill.builder import build_drafts, split_readings
from kanji_drill.models import Cell, ExampleEntry


def row(*values):
    cells = []
    for value in values:
        if isinstance(value, tuple):
            cells.append(Cell(*value))
        else:
            cells.append(Cell(value or ""))
    return cells + [Cell("")] * (6 - len(cells))


@pytest.mark.parametrize("text,expected", [
    ("", []),
    (None, []),
    ("   ", []),
    ("あ", ["あ"]),
    (" あ ", ["あ"]),
    ("あ、い", ["あ", "い"]),
    ("あ, い,う", ["あ", "い", "う"]),
    ("あ、、 ,い、", ["あ", "い"]),
    ("た べる、く う", ["た べる", "く う"]),
])
def test_split_readings(text, expected):
    assert split_readings(text) == expected


def test_split_readings_rejoin_matches_cell_text():
    cell_text = "ひ、か、び"
    tokens = split_readings(cell_text)
    assert "、".join(tokens) == cell_text


def test_record_start_row():
    drafts = build_drafts([row(" 日 ", "NHẬT", "ひ、か", "ニチ、ジツ", ("日本", "にほん"), "")])
    assert len(drafts) == 1
    d = drafts[0]
    assert d.kanji == "日"
    assert d.hanviet == ["NHẬT"]
    assert d.kun == ["ひ", "か"]
    assert d.on == ["ニチ", "ジツ"]
    # both example slots kept, even the blank one
    assert d.example == [ExampleEntry("日本", "にほん"), ExampleEntry("", None)]


def test_continuation_rows_append_examples():
    drafts = build_drafts([
        row("月", "NGUYỆT", "つき", "ゲツ"),
        row("", "", "", "", ("月曜日", "げつようび"), ""),
        row("", "", "", "", "", "正月"),
    ])
    assert len(drafts) == 1
    assert drafts[0].example == [
        ExampleEntry("", None),
        ExampleEntry("", None),
        ExampleEntry("月曜日", "げつようび"),
        ExampleEntry("正月", None),
    ]


def test_continuation_row_keeps_column_order():
    drafts = build_drafts([
        row("水", "THỦY", "みず", "スイ", "水曜日", ""),
        row("", "", "", "", "水道", "水泳"),
    ])
    assert [e.text for e in drafts[0].example] == ["水曜日", "", "水道", "水泳"]


def test_blank_rows_are_ignored():
    drafts = build_drafts([
        row("", "", "", "", "", ""),
        row("", "orphan reading", "", "", "", ""),
        row("木", "MỘC", "き", "モク"),
        row(),
        row("金", "KIM", "かね", "キン"),
    ])
    assert [d.kanji for d in drafts] == ["木", "金"]
    assert len(drafts[0].example) == 2


def test_leading_continuation_row_without_record_is_skipped():
    drafts = build_drafts([
        row("", "", "", "", "迷子", ""),
        row("土", "THỔ", "つち", "ド"),
    ])
    assert [d.kanji for d in drafts] == ["土"]
    assert [e.text for e in drafts[0].example] == ["", ""]


def test_short_rows_are_skipped():
    drafts = build_drafts([[Cell("人"), Cell("NHÂN")]])
    assert drafts == []
