"""Quiz filtering and the interactive quiz session.

A session starts out configuring: the learner picks which kinds of kanji to
include and how to walk through them. ``start()`` moves it to the active
state, where answers are entered, checked, and navigated; ``configure()``
goes back without touching the persisted preferences or marks.
"""

import random
from typing import Any, Callable, Collection, Dict, List, Mapping, Optional, Sequence

from .corpus import (
    load_corpus,
    load_learned,
    load_marked,
    load_romaji_mode,
    load_skip_fields,
    save_marked,
    save_romaji_mode,
    save_skip_fields,
)
from .db import BlobStore, DEBUG_MODE
from .errors import EmptySelectionError, SessionStateError
from .models import (
    AnswerBuffer,
    KanjiRecord,
    QuizSessionState,
    QuizTypeFilter,
    READING_FIELDS,
    STATUS_EXISTING,
    STATUS_NEW,
    STATUS_UPDATED,
)

MODE_RANDOM = "random"
MODE_ORDER = "order"
MODES = (MODE_RANDOM, MODE_ORDER)


def filter_corpus(
    corpus: Sequence[KanjiRecord],
    types: QuizTypeFilter,
    learned: Collection[str],
    marked: Collection[str],
) -> List[KanjiRecord]:
    """Select the kanji a quiz will draw from.

    Marked and learned kanji are included whenever their toggle is on,
    whatever their status. The status toggles only cover kanji that are
    neither learned nor marked.
    """
    learned_set = set(learned)
    marked_set = set(marked)
    selected: List[KanjiRecord] = []
    for record in corpus:
        is_learned = record.kanji in learned_set
        is_marked = record.kanji in marked_set
        if types.marked and is_marked:
            selected.append(record)
        elif types.learned and is_learned:
            selected.append(record)
        elif types.allows_status(record.status or STATUS_EXISTING) and not is_learned and not is_marked:
            selected.append(record)
    return selected


def type_counts(corpus: Sequence[KanjiRecord], learned: Collection[str], marked: Collection[str]) -> Dict[str, int]:
    """Counts shown next to each toggle on the configuration screen."""
    return {
        "existing": sum(1 for r in corpus if not r.status or r.status == STATUS_EXISTING),
        "updated": sum(1 for r in corpus if r.status == STATUS_UPDATED),
        "new": sum(1 for r in corpus if r.status == STATUS_NEW),
        "learned": len(learned),
        "marked": len(marked),
    }


def reading_count(readings: Any) -> int:
    if isinstance(readings, (list, tuple)):
        return sum(1 for r in readings if isinstance(r, str) and r.strip())
    return 0


def blank_answers(record: KanjiRecord) -> AnswerBuffer:
    """One empty slot per non-blank kun/on reading of ``record``."""
    return AnswerBuffer(
        hanviet="",
        kun=[""] * reading_count(record.kun),
        on=[""] * reading_count(record.on),
    )


def has_reading(readings: Any) -> bool:
    return reading_count(readings) > 0


class QuizSession:
    def __init__(
        self,
        store: BlobStore,
        corpus: Optional[Sequence[KanjiRecord]] = None,
        learned: Optional[Collection[str]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.corpus: List[KanjiRecord] = list(corpus) if corpus is not None else load_corpus(store)
        self._learned = list(learned) if learned is not None else None
        self.rng = rng or random.Random()

        self.display_mode = MODE_RANDOM
        self.types = QuizTypeFilter()
        self.configuring = True

        self.state = QuizSessionState()
        self.current: Optional[KanjiRecord] = None
        self.show_result = False

        self.skip_fields = load_skip_fields(store)
        self.romaji_mode = load_romaji_mode(store)
        self.marked = load_marked(store)

    # -- configuration -----------------------------------------------------

    @property
    def learned(self) -> List[str]:
        if self._learned is not None:
            return self._learned
        return load_learned(self.store)

    def set_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown display mode: {mode}")
        self.display_mode = mode

    def set_type(self, name: str, enabled: bool) -> None:
        if not hasattr(self.types, name):
            raise ValueError(f"Unknown kanji type: {name}")
        setattr(self.types, name, enabled)

    def toggle_type(self, name: str) -> bool:
        self.set_type(name, not getattr(self.types, name, False))
        return getattr(self.types, name)

    def filtered(self) -> List[KanjiRecord]:
        return filter_corpus(self.corpus, self.types, self.learned, self.marked)

    def stats(self) -> Dict[str, int]:
        return type_counts(self.corpus, self.learned, self.marked)

    def preview(self) -> tuple[int, int]:
        """(kanji the quiz would cover, kanji in the corpus)."""
        return len(self.filtered()), len(self.corpus)

    def start(self) -> KanjiRecord:
        filtered = self.filtered()
        if not filtered:
            raise EmptySelectionError("No kanji match the selected types. Choose at least one kind of kanji to test.")

        self.state = QuizSessionState(filtered_corpus=filtered, current_index=0, history=[])
        self.configuring = False
        if DEBUG_MODE:
            print(f"🚀 Quiz started: {len(filtered)}/{len(self.corpus)} kanji, mode={self.display_mode}")
        return self._select(0)

    def configure(self) -> None:
        """Return to the configuration step, dropping the answers in progress."""
        self.configuring = True
        self.current = None
        self.show_result = False
        self.state = QuizSessionState()

    # -- active session ----------------------------------------------------

    def _require_active(self) -> None:
        if self.configuring:
            raise SessionStateError("The quiz has not been started.")

    def _reset_for(self, record: KanjiRecord) -> None:
        self.current = record
        self.show_result = False
        self.state.current_answers = blank_answers(record)
        self.state.correctness = {name: False for name in READING_FIELDS}

    def _select(self, index: int) -> KanjiRecord:
        pool = self.state.filtered_corpus
        if self.display_mode == MODE_RANDOM:
            record = pool[self.rng.randrange(len(pool))]
        else:
            record = pool[index % len(pool)]

        history = self.state.history
        if not history or history[-1].kanji != record.kanji:
            history.append(record)
        self._reset_for(record)
        return record

    def next(self) -> KanjiRecord:
        self._require_active()
        if self.display_mode == MODE_ORDER:
            self.state.current_index += 1
        return self._select(self.state.current_index)

    @property
    def can_go_previous(self) -> bool:
        return not self.configuring and len(self.state.history) > 1

    def previous(self) -> Optional[KanjiRecord]:
        """Go back one record; answers for it start out blank again."""
        self._require_active()
        if not self.can_go_previous:
            return None
        self.state.history.pop()
        record = self.state.history[-1]
        self._reset_for(record)
        return record

    @property
    def on_previous(self) -> Optional[Callable[[], Optional[KanjiRecord]]]:
        return self.previous if self.can_go_previous else None

    @property
    def is_marked(self) -> bool:
        return self.current is not None and self.current.kanji in self.marked

    def toggle_mark(self) -> bool:
        """Mark or unmark the current kanji. Returns True if it is now marked."""
        self._require_active()
        if self.current is None:
            return False
        kanji = self.current.kanji
        if kanji in self.marked:
            self.marked = [word for word in self.marked if word != kanji]
        else:
            self.marked = self.marked + [kanji]
        save_marked(self.store, self.marked)
        return kanji in self.marked

    @property
    def answers(self) -> AnswerBuffer:
        return self.state.current_answers

    @property
    def correctness(self) -> Dict[str, bool]:
        return self.state.correctness

    def set_answer(self, field: str, value: str, index: Optional[int] = None) -> None:
        self._require_active()
        if field == "hanviet":
            self.state.current_answers.hanviet = value
            return
        if field not in ("kun", "on"):
            raise ValueError(f"Unknown answer field: {field}")
        slots = getattr(self.state.current_answers, field)
        if index is None or not 0 <= index < len(slots):
            raise IndexError(f"No {field} answer slot {index}")
        slots[index] = value

    def set_skip_field(self, field: str, skipped: bool) -> None:
        if field not in self.skip_fields:
            raise ValueError(f"Unknown field: {field}")
        self.skip_fields[field] = skipped
        save_skip_fields(self.store, self.skip_fields)

    def set_romaji_mode(self, field: str, enabled: bool) -> None:
        if field not in self.romaji_mode:
            raise ValueError(f"Romaji mode is not available for: {field}")
        self.romaji_mode[field] = enabled
        save_romaji_mode(self.store, self.romaji_mode)

    def record_result(self, results: Mapping[str, bool]) -> None:
        """Store the per-field verdict reported by the answer checker."""
        self._require_active()
        self.state.correctness = {name: bool(results.get(name, False)) for name in READING_FIELDS}
        self.show_result = True
