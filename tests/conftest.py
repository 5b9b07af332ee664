import io
import zipfile
from typing import Any, Optional, Sequence
from xml.sax.saxutils import escape

import pytest
from sqlalchemy import create_engine

from kanji_drill import db

HEADER = ("Kanji", "Hán Việt", "Kun", "On", "Ví dụ 1", "Ví dụ 2")

_CONTENT_TYPES = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>
<Default Extension="xml" ContentType="application/xml"/>
<Override PartName="/xl/workbook.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet.main+xml"/>
<Override PartName="/xl/worksheets/sheet1.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"/>
<Override PartName="/xl/sharedStrings.xml" ContentType="application/vnd.openxmlformats-officedocument.spreadsheetml.sharedStrings+xml"/>
</Types>"""

_WORKBOOK = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<workbook xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">
<sheets><sheet name="Kanji" sheetId="1" r:id="rId1"/></sheets>
</workbook>"""

_WORKBOOK_RELS = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet" Target="worksheets/sheet1.xml"/>
<Relationship Id="rId2" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/sharedStrings" Target="sharedStrings.xml"/>
</Relationships>"""


def _col_letter(index: int) -> str:
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def build_xlsx(rows: Sequence[Sequence[Any]], header: Optional[Sequence[str]] = HEADER) -> bytes:
    """Build a minimal xlsx workbook.

    A cell value is ``None`` (no cell), a string, or a ``(text, reading)``
    tuple which is stored with a phonetic guide run.
    """
    all_rows = ([list(header)] if header else []) + [list(r) for r in rows]
    shared: list[str] = []
    sheet_rows: list[str] = []
    max_col = 0
    for r, row in enumerate(all_rows):
        cells = []
        for c, value in enumerate(row):
            if value is None:
                continue
            max_col = max(max_col, c)
            ref = f"{_col_letter(c)}{r + 1}"
            if isinstance(value, tuple):
                text, reading = value
                si = (
                    f"<si><t>{escape(text)}</t>"
                    f'<rPh sb="0" eb="{len(text)}"><t>{escape(reading)}</t></rPh>'
                    f'<phoneticPr fontId="1"/></si>'
                )
            else:
                si = f'<si><t xml:space="preserve">{escape(str(value))}</t></si>'
            shared.append(si)
            cells.append(f'<c r="{ref}" t="s"><v>{len(shared) - 1}</v></c>')
        sheet_rows.append(f'<row r="{r + 1}">{"".join(cells)}</row>')

    last = f"{_col_letter(max(max_col, len(header or []) - 1))}{max(len(all_rows), 1)}"
    sheet = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">'
        f'<dimension ref="A1:{last}"/>'
        f'<sheetData>{"".join(sheet_rows)}</sheetData></worksheet>'
    )
    shared_xml = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<sst xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" count="{len(shared)}" uniqueCount="{len(shared)}">'
        f'{"".join(shared)}</sst>'
    )

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", _CONTENT_TYPES)
        zf.writestr("xl/workbook.xml", _WORKBOOK)
        zf.writestr("xl/_rels/workbook.xml.rels", _WORKBOOK_RELS)
        zf.writestr("xl/worksheets/sheet1.xml", sheet)
        zf.writestr("xl/sharedStrings.xml", shared_xml)
    return buffer.getvalue()


@pytest.fixture
def make_xlsx():
    return build_xlsx


@pytest.fixture(autouse=True)
def setup_db(tmp_path, monkeypatch):
    # Temporary SQLite DB
    test_db = str(tmp_path / "test_kanji.db")
    monkeypatch.setenv("KANJI_DRILL_DB", test_db)
    monkeypatch.setattr(db, "engine", create_engine(f"sqlite:///{test_db}"))
    monkeypatch.setattr(db, "SessionLocal", db.sessionmaker(bind=db.engine, expire_on_commit=False))
    db.init_db()
    yield


@pytest.fixture
def store():
    return db.get_store()
