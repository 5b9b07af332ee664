"""Compare freshly read records with the stored corpus.

Both comparisons ignore blank entries so that empty cells in the sheet do not
turn an unchanged kanji into an updated one.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import (
    DraftRecord,
    ExampleEntry,
    KanjiRecord,
    STATUS_EXISTING,
    STATUS_NEW,
    STATUS_UPDATED,
)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def readings_equal(a: Any, b: Any) -> bool:
    """Position-wise equality of the non-blank readings of two sequences.

    If either side is not a sequence the values are compared directly, so a
    sequence never equals a bare string and two bare strings are compared
    without trimming.
    """
    if not _is_sequence(a) or not _is_sequence(b):
        return a == b

    valid_a = [item for item in a if isinstance(item, str) and item.strip()]
    valid_b = [item for item in b if isinstance(item, str) and item.strip()]
    if len(valid_a) != len(valid_b):
        return False
    return all(x == y for x, y in zip(valid_a, valid_b))


def _example_fields(example: Any) -> Optional[tuple]:
    if isinstance(example, ExampleEntry):
        return example.text, example.phonetic
    if isinstance(example, dict):
        return example.get("text"), example.get("phonetic")
    return None


def examples_equal(a: Any, b: Any) -> bool:
    """Position-wise equality of the examples that have non-blank text."""
    if not _is_sequence(a) or not _is_sequence(b):
        return False

    def valid(examples: Iterable[Any]) -> List[tuple]:
        fields = [_example_fields(example) for example in examples]
        return [f for f in fields if f is not None and isinstance(f[0], str) and f[0].strip()]

    valid_a = valid(a)
    valid_b = valid(b)
    if len(valid_a) != len(valid_b):
        return False
    return all(x == y for x, y in zip(valid_a, valid_b))


def classify(old: Optional[KanjiRecord], new: DraftRecord) -> str:
    if old is None:
        return STATUS_NEW

    hanviet_changed = not readings_equal(old.hanviet, new.hanviet)
    kun_changed = not readings_equal(old.kun, new.kun)
    on_changed = not readings_equal(old.on, new.on)
    example_changed = not examples_equal(old.example, new.example)

    if hanviet_changed or kun_changed or on_changed or example_changed:
        return STATUS_UPDATED
    return STATUS_EXISTING


def index_by_kanji(records: Iterable[KanjiRecord]) -> Dict[str, KanjiRecord]:
    """Map kanji to record; the last record seen for a kanji wins."""
    index: Dict[str, KanjiRecord] = {}
    for record in records:
        index[record.kanji] = record
    return index


def finalize(drafts: Iterable[DraftRecord], previous: Mapping[str, KanjiRecord]) -> List[KanjiRecord]:
    """Assign a status to every completed draft and return the new corpus."""
    records: List[KanjiRecord] = []
    for draft in drafts:
        records.append(
            KanjiRecord(
                kanji=draft.kanji,
                hanviet=list(draft.hanviet),
                kun=list(draft.kun),
                on=list(draft.on),
                example=list(draft.example),
                status=classify(previous.get(draft.kanji), draft),
            )
        )
    return records
