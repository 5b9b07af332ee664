from typing import Any, Dict, List, Optional

from . import db
from .builder import split_readings
from .db import BlobStore, DEBUG_MODE
from .models import ExampleEntry, KanjiRecord, READING_FIELDS, STATUSES, STATUS_EXISTING

DEFAULT_SKIP_FIELDS: Dict[str, bool] = {"hanviet": False, "kun": False, "on": False}
DEFAULT_ROMAJI_MODE: Dict[str, bool] = {"kun": False, "on": False}


def _normalize_readings(value: Any) -> List[str]:
    # Older exports stored a single reading as a bare string
    if isinstance(value, str):
        return split_readings(value)
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return []


def _normalize_examples(value: Any) -> List[ExampleEntry]:
    if not isinstance(value, (list, tuple)):
        return []
    examples: List[ExampleEntry] = []
    for item in value:
        if isinstance(item, dict):
            phonetic = item.get("phonetic")
            examples.append(ExampleEntry(text=str(item.get("text") or ""), phonetic=phonetic if phonetic else None))
        elif isinstance(item, str):
            examples.append(ExampleEntry(text=item))
    return examples


def normalize_record(raw: Any) -> Optional[KanjiRecord]:
    """Convert one stored record into a KanjiRecord, or None if it has no kanji."""
    if not isinstance(raw, dict):
        return None
    kanji = str(raw.get("kanji") or "").strip()
    if not kanji:
        return None
    status = raw.get("status")
    return KanjiRecord(
        kanji=kanji,
        hanviet=_normalize_readings(raw.get("hanviet")),
        kun=_normalize_readings(raw.get("kun")),
        on=_normalize_readings(raw.get("on")),
        example=_normalize_examples(raw.get("example")),
        status=status if status in STATUSES else STATUS_EXISTING,
    )


def load_corpus(store: BlobStore) -> List[KanjiRecord]:
    raw = store.get(db.CORPUS_KEY, [])
    if not isinstance(raw, list):
        if DEBUG_MODE:
            print(f"⚠️ Stored corpus is {type(raw).__name__}, expected a list; treating as empty")
        return []
    records = [normalize_record(item) for item in raw]
    return [record for record in records if record is not None]


def save_corpus(store: BlobStore, records: List[KanjiRecord]) -> None:
    """Replace the stored corpus with ``records``."""
    store.set(db.CORPUS_KEY, [record.to_dict() for record in records])


def _load_flags(store: BlobStore, key: str, defaults: Dict[str, bool]) -> Dict[str, bool]:
    saved = store.get(key)
    flags = dict(defaults)
    if isinstance(saved, dict):
        for name in defaults:
            if name in saved:
                flags[name] = bool(saved[name])
    return flags


def load_skip_fields(store: BlobStore) -> Dict[str, bool]:
    return _load_flags(store, db.SKIP_FIELDS_KEY, DEFAULT_SKIP_FIELDS)


def save_skip_fields(store: BlobStore, flags: Dict[str, bool]) -> None:
    store.set(db.SKIP_FIELDS_KEY, flags)


def load_romaji_mode(store: BlobStore) -> Dict[str, bool]:
    return _load_flags(store, db.ROMAJI_MODE_KEY, DEFAULT_ROMAJI_MODE)


def save_romaji_mode(store: BlobStore, flags: Dict[str, bool]) -> None:
    store.set(db.ROMAJI_MODE_KEY, flags)


def load_marked(store: BlobStore) -> List[str]:
    saved = store.get(db.MARKED_KEY, [])
    if not isinstance(saved, list):
        return []
    return [str(item) for item in saved]


def save_marked(store: BlobStore, marked: List[str]) -> None:
    store.set(db.MARKED_KEY, marked)


def toggle_marked(store: BlobStore, kanji: str) -> bool:
    """Flip the marked state of ``kanji``. Returns True if it is now marked."""
    marked = load_marked(store)
    if kanji in marked:
        save_marked(store, [word for word in marked if word != kanji])
        return False
    marked.append(kanji)
    save_marked(store, marked)
    return True


def learned_kanji(daily_progress: Any, daily_plan: Any) -> List[str]:
    """Kanji from every study day whose items were all completed.

    ``daily_progress`` maps ``"dayN"`` to the list of completed item indices
    and ``daily_plan[N - 1]["kanji"]`` lists that day's planned records.
    """
    learned: List[str] = []
    if not isinstance(daily_progress, dict) or not isinstance(daily_plan, list):
        return learned
    for day_key, completed in daily_progress.items():
        try:
            day_number = int(str(day_key).replace("day", ""))
        except ValueError:
            continue
        if day_number < 1 or day_number > len(daily_plan):
            continue
        day_plan = daily_plan[day_number - 1]
        if not isinstance(day_plan, dict) or not isinstance(day_plan.get("kanji"), list):
            continue
        if not isinstance(completed, (list, tuple)):
            continue
        planned = day_plan["kanji"]
        if len(completed) != len(planned):
            continue
        for item in planned:
            kanji = item.get("kanji") if isinstance(item, dict) else item
            if kanji and kanji not in learned:
                learned.append(kanji)
    return learned


def load_learned(store: BlobStore) -> List[str]:
    return learned_kanji(store.get(db.DAILY_PROGRESS_KEY, {}), store.get(db.DAILY_PLAN_KEY, []))
