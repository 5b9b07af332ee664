"""Spreadsheet ingestion: workbook bytes in, classified corpus stored."""

import os
from pathlib import Path
from typing import Optional

import requests

from .builder import build_drafts
from .cells import extract_workbook
from .classifier import finalize, index_by_kanji
from .corpus import load_corpus, save_corpus
from .db import BlobStore, DEBUG_MODE
from .errors import ResourceFetchError
from .models import ImportResult, ImportStats, STATUS_EXISTING, STATUS_NEW, STATUS_UPDATED

DEFAULT_FILE: str = os.environ.get("KANJI_DRILL_DEFAULT_FILE", "KANJI_N3.xlsx")
FETCH_TIMEOUT = 30


def import_workbook(data: bytes, store: BlobStore, source: str = "Excel file") -> ImportResult:
    """Read a workbook, classify every kanji against the stored corpus and store the result.

    Nothing is written unless the whole workbook was read; the stored corpus
    is then replaced, never merged.
    """
    grid = extract_workbook(data)
    drafts = build_drafts(grid)
    previous = index_by_kanji(load_corpus(store))
    records = finalize(drafts, previous)

    stats = ImportStats(
        total=len(records),
        new=sum(1 for r in records if r.status == STATUS_NEW),
        updated=sum(1 for r in records if r.status == STATUS_UPDATED),
        existing=sum(1 for r in records if r.status == STATUS_EXISTING),
    )
    save_corpus(store, records)
    if DEBUG_MODE:
        print(f"📥 Imported {stats.total} kanji from {source} (previous corpus: {len(previous)})")
    return ImportResult(source=source, records=records, stats=stats)


def import_file(path: str, store: BlobStore) -> ImportResult:
    with open(path, "rb") as f:
        data = f.read()
    return import_workbook(data, store, source=Path(path).name)


def fetch_default_file(location: Optional[str] = None) -> bytes:
    """Fetch the default workbook from a URL or a local path."""
    location = location or DEFAULT_FILE
    if location.startswith(("http://", "https://")):
        try:
            response = requests.get(location, timeout=FETCH_TIMEOUT)
        except requests.RequestException as e:
            raise ResourceFetchError(f"Could not load the default file: {e}") from e
        if not response.ok:
            raise ResourceFetchError(
                f"Could not load the default file: {location} returned HTTP {response.status_code}"
            )
        return response.content

    try:
        with open(location, "rb") as f:
            return f.read()
    except OSError as e:
        raise ResourceFetchError(f"Could not load the default file: {e}") from e


def load_default_workbook(store: BlobStore, location: Optional[str] = None) -> ImportResult:
    data = fetch_default_file(location)
    name = (location or DEFAULT_FILE).rstrip("/").rsplit("/", 1)[-1]
    return import_workbook(data, store, source=name)
