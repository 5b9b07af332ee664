from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

STATUS_NEW = "new"
STATUS_UPDATED = "updated"
STATUS_EXISTING = "existing"
STATUSES = (STATUS_EXISTING, STATUS_UPDATED, STATUS_NEW)

READING_FIELDS = ("hanviet", "kun", "on")


@dataclass
class Cell:
    text: str
    phonetic: Optional[str] = None


@dataclass
class ExampleEntry:
    text: str
    phonetic: Optional[str] = None


@dataclass
class DraftRecord:
    """A record as read from the sheet, before it is compared with the stored corpus."""
    kanji: str
    hanviet: List[str]
    kun: List[str]
    on: List[str]
    example: List[ExampleEntry]


@dataclass
class KanjiRecord:
    kanji: str
    hanviet: List[str]
    kun: List[str]
    on: List[str]
    example: List[ExampleEntry]
    status: str = STATUS_EXISTING

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class QuizTypeFilter:
    existing: bool = True
    updated: bool = True
    new: bool = True
    learned: bool = True
    marked: bool = True

    def any_enabled(self) -> bool:
        return self.existing or self.updated or self.new or self.learned or self.marked

    def allows_status(self, status: str) -> bool:
        return bool(getattr(self, status, False)) if status in STATUSES else False


@dataclass
class ImportStats:
    total: int = 0
    new: int = 0
    updated: int = 0
    existing: int = 0


@dataclass
class ImportResult:
    source: str
    records: List[KanjiRecord] = field(default_factory=list)
    stats: ImportStats = field(default_factory=ImportStats)

    def summary(self) -> str:
        return (
            f"Read {self.stats.total} kanji from {self.source}: "
            f"{self.stats.new} new, {self.stats.updated} updated, {self.stats.existing} unchanged"
        )


@dataclass
class AnswerBuffer:
    hanviet: str = ""
    kun: List[str] = field(default_factory=list)
    on: List[str] = field(default_factory=list)


def _no_marks() -> Dict[str, bool]:
    return {name: False for name in READING_FIELDS}


@dataclass
class QuizSessionState:
    filtered_corpus: List[KanjiRecord] = field(default_factory=list)
    current_index: int = 0
    history: List[KanjiRecord] = field(default_factory=list)
    current_answers: AnswerBuffer = field(default_factory=AnswerBuffer)
    correctness: Dict[str, bool] = field(default_factory=_no_marks)
