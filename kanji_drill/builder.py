import re
from typing import List, Optional, Sequence

from .db import DEBUG_MODE
from .models import Cell, DraftRecord, ExampleEntry

# Column layout of the kanji sheet (0-based)
COL_KANJI = 0
COL_HANVIET = 1
COL_KUN = 2
COL_ON = 3
COL_EXAMPLE_1 = 4
COL_EXAMPLE_2 = 5
MIN_COLUMNS = 6

_READING_SEPARATORS = re.compile(r"[、,]")


def split_readings(text: Optional[str]) -> List[str]:
    """Split a reading cell on full-width or ASCII commas.

    Tokens are trimmed and empty tokens dropped, so ``"あ、 、い"`` gives
    ``["あ", "い"]`` and a blank cell gives ``[]``.
    """
    if not text:
        return []
    return [token.strip() for token in _READING_SEPARATORS.split(text) if token.strip()]


def _example(cell: Cell) -> ExampleEntry:
    return ExampleEntry(text=cell.text or "", phonetic=cell.phonetic)


def build_drafts(rows: Sequence[Sequence[Cell]]) -> List[DraftRecord]:
    """Group data rows (header already removed) into draft kanji records.

    A row with a kanji opens a new record and always contributes its two
    example slots, even blank ones. A row without a kanji only adds the
    non-blank examples it carries to the record above it.
    """
    drafts: List[DraftRecord] = []
    for row in rows:
        if len(row) < MIN_COLUMNS:
            continue

        kanji = str(row[COL_KANJI].text).strip() if row[COL_KANJI].text else ""
        if kanji:
            drafts.append(
                DraftRecord(
                    kanji=kanji,
                    hanviet=split_readings(row[COL_HANVIET].text),
                    kun=split_readings(row[COL_KUN].text),
                    on=split_readings(row[COL_ON].text),
                    example=[_example(row[COL_EXAMPLE_1]), _example(row[COL_EXAMPLE_2])],
                )
            )
            continue

        first, second = row[COL_EXAMPLE_1], row[COL_EXAMPLE_2]
        if not drafts or not (first.text or second.text):
            continue
        current = drafts[-1]
        for cell in (first, second):
            if cell.text:
                current.example.append(_example(cell))

    if DEBUG_MODE:
        print(f"🧱 Built {len(drafts)} draft records from {len(rows)} rows")
    return drafts
