"""Read the first worksheet of an xlsx workbook into a grid of text/phonetic cells.

Workbooks are opened as zip archives and parsed with ElementTree so that the
phonetic guide runs (``<rPh>``) attached to shared strings survive; higher
level spreadsheet readers discard them.
"""

from __future__ import annotations

import io
import posixpath
import re
import zipfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import WorkbookFormatError
from .models import Cell

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"

# Tags may carry a namespace prefix once the element has been re-serialized.
_RPH_PATTERN = re.compile(r"<(?:\w+:)?rPh[^>]*><(?:\w+:)?t[^>]*>([^<]+)</(?:\w+:)?t></(?:\w+:)?rPh>")
_WHITESPACE = re.compile(r"\s+")
_CELL_REF = re.compile(r"^([A-Za-z]+)(\d+)$")


@dataclass(frozen=True)
class InlineRuby:
    """Rich text kept as its raw markup string."""
    markup: str


@dataclass(frozen=True)
class RunsRuby:
    """Rich text split into runs; each entry is the run's reading, if any."""
    readings: Tuple[Optional[str], ...]


@dataclass(frozen=True)
class SingleRuby:
    """A single rich-text object carrying at most one reading."""
    reading: Optional[str]


RubyAnnotation = Union[InlineRuby, RunsRuby, SingleRuby, None]


@dataclass
class RawCell:
    value: str
    rich: Any = None


@dataclass
class RawSheet:
    cells: Dict[Tuple[int, int], RawCell] = field(default_factory=dict)
    first_row: int = 0
    first_col: int = 0
    last_row: int = -1
    last_col: int = -1


def _reading_field(node: Any) -> Optional[str]:
    if not isinstance(node, dict):
        return None
    rph = node.get("rPh")
    if isinstance(rph, dict) and rph.get("t"):
        return str(rph["t"])
    return None


def decode_ruby(raw: Any) -> RubyAnnotation:
    """Decode rich-text metadata of unknown shape into a ruby annotation."""
    if raw is None:
        return None
    if isinstance(raw, str):
        return InlineRuby(raw)
    if isinstance(raw, (list, tuple)):
        return RunsRuby(tuple(_reading_field(run) for run in raw))
    if isinstance(raw, dict):
        return SingleRuby(_reading_field(raw))
    return None


def phonetic_of(annotation: RubyAnnotation) -> Optional[str]:
    """Return the first reading carried by an annotation, or None."""
    if isinstance(annotation, InlineRuby):
        match = _RPH_PATTERN.search(annotation.markup)
        if match:
            # Ruby markup may contain layout spacing between kana
            return _WHITESPACE.sub("", match.group(1).strip()) or None
        return None
    if isinstance(annotation, RunsRuby):
        for reading in annotation.readings:
            if reading:
                return reading
        return None
    if isinstance(annotation, SingleRuby):
        return annotation.reading or None
    return None


def extract_cell(raw: Optional[RawCell]) -> Cell:
    if raw is None:
        return Cell(text="", phonetic=None)
    return Cell(text=raw.value or "", phonetic=phonetic_of(decode_ruby(raw.rich)))


def col_letter_to_index(col: str) -> int:
    """Convert column letter (A, B, ..., Z, AA, AB, ...) to 0-based index."""
    result = 0
    for char in col.upper():
        result = result * 26 + (ord(char) - ord('A') + 1)
    return result - 1


def decode_cell_ref(ref: str) -> Optional[Tuple[int, int]]:
    """Turn ``"B3"`` into ``(2, 1)`` (row, column), both 0-based."""
    match = _CELL_REF.match(ref.strip())
    if not match:
        return None
    return int(match.group(2)) - 1, col_letter_to_index(match.group(1))


def _tag(name: str) -> str:
    return f"{{{MAIN_NS}}}{name}"


def _rich_text(node: ET.Element) -> Tuple[str, Optional[str]]:
    """Text of an ``<si>``/``<is>`` element plus its markup when it carries ruby."""
    parts = []
    for child in node:
        if child.tag == _tag("t"):
            parts.append(child.text or "")
        elif child.tag == _tag("r"):
            t = child.find(_tag("t"))
            if t is not None:
                parts.append(t.text or "")
    markup = None
    if node.find(_tag("rPh")) is not None:
        markup = ET.tostring(node, encoding="unicode")
    return "".join(parts), markup


def _first_sheet_path(zf: zipfile.ZipFile) -> str:
    try:
        workbook = ET.fromstring(zf.read("xl/workbook.xml"))
        rels = ET.fromstring(zf.read("xl/_rels/workbook.xml.rels"))
    except (KeyError, ET.ParseError):
        return "xl/worksheets/sheet1.xml"
    sheet = workbook.find(f"{_tag('sheets')}/{_tag('sheet')}")
    if sheet is None:
        return "xl/worksheets/sheet1.xml"
    rel_id = sheet.get(f"{{{REL_NS}}}id")
    for rel in rels.iter(f"{{{PKG_REL_NS}}}Relationship"):
        if rel.get("Id") == rel_id:
            target = rel.get("Target", "")
            if target.startswith("/"):
                return target.lstrip("/")
            return posixpath.normpath(posixpath.join("xl", target))
    return "xl/worksheets/sheet1.xml"


def read_first_sheet(data: bytes) -> RawSheet:
    """Parse the first worksheet of an xlsx payload."""
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise WorkbookFormatError(f"Not an xlsx workbook: {e}") from e

    with zf:
        shared: List[Tuple[str, Optional[str]]] = []
        try:
            root = ET.fromstring(zf.read("xl/sharedStrings.xml"))
            shared = [_rich_text(si) for si in root.iter(_tag("si"))]
        except KeyError:
            shared = []
        except ET.ParseError as e:
            raise WorkbookFormatError(f"Shared strings are not valid XML: {e}") from e

        sheet_path = _first_sheet_path(zf)
        try:
            root = ET.fromstring(zf.read(sheet_path))
        except KeyError as e:
            raise WorkbookFormatError(f"Worksheet '{sheet_path}' is missing from the workbook") from e
        except ET.ParseError as e:
            raise WorkbookFormatError(f"Worksheet '{sheet_path}' is not valid XML: {e}") from e

    sheet = RawSheet()
    for cell in root.iter(_tag("c")):
        position = decode_cell_ref(cell.get("r", ""))
        if position is None:
            continue
        kind = cell.get("t")
        rich: Optional[str] = None
        if kind == "inlineStr":
            inline = cell.find(_tag("is"))
            value, rich = _rich_text(inline) if inline is not None else ("", None)
        else:
            v = cell.find(_tag("v"))
            value = (v.text or "") if v is not None else ""
            if kind == "s" and value.isdigit():
                idx = int(value)
                value, rich = shared[idx] if idx < len(shared) else ("", None)
            elif kind == "b":
                value = "TRUE" if value == "1" else "FALSE"
        sheet.cells[position] = RawCell(value=value, rich=rich)
        sheet.last_row = max(sheet.last_row, position[0])
        sheet.last_col = max(sheet.last_col, position[1])

    dimension = root.find(_tag("dimension"))
    if dimension is not None and ":" in dimension.get("ref", ""):
        start, end = dimension.get("ref", "").split(":", 1)
        start_pos, end_pos = decode_cell_ref(start), decode_cell_ref(end)
        if start_pos and end_pos:
            sheet.first_row, sheet.first_col = start_pos
            sheet.last_row = max(sheet.last_row, end_pos[0])
            sheet.last_col = max(sheet.last_col, end_pos[1])
    return sheet


def extract_grid(sheet: RawSheet, skip_header: bool = True) -> List[List[Cell]]:
    """Turn a raw sheet into rows of cells; missing cells become empty ones."""
    start = sheet.first_row + 1 if skip_header else sheet.first_row
    rows: List[List[Cell]] = []
    for r in range(start, sheet.last_row + 1):
        rows.append([extract_cell(sheet.cells.get((r, c))) for c in range(sheet.last_col + 1)])
    return rows


def extract_workbook(data: bytes) -> List[List[Cell]]:
    return extract_grid(read_first_sheet(data))
