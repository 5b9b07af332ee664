from __future__ import annotations
from sqlalchemy import create_engine, String, DateTime, Text
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session, Mapped, mapped_column
import datetime
import json
import os
from typing import Any

DEBUG_MODE = os.getenv("DEBUG", "0") == "1"


class Base(DeclarativeBase):
    pass
DB_PATH: str = os.environ.get("KANJI_DRILL_DB", "kanji_drill.db")

engine = create_engine(f"sqlite:///{DB_PATH}")
# Prevent attribute expiration on commit so returned objects remain accessible
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)

# Storage keys shared with the browser version of the app
CORPUS_KEY = "kanjiData"
SKIP_FIELDS_KEY = "kanjiQuiz_skipFields"
ROMAJI_MODE_KEY = "kanjiQuiz_romajiMode"
MARKED_KEY = "markedWords"
DAILY_PROGRESS_KEY = "dailyProgress"
DAILY_PLAN_KEY = "dailyLearningPlan"


class BlobEntry(Base):
    __tablename__ = "blob_store"
    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)  # JSON document
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=lambda: datetime.datetime.now(datetime.UTC))


def is_db_initialized() -> bool:
    """Check if the database is already initialized by checking if tables exist."""
    from sqlalchemy import inspect
    inspector = inspect(engine)
    return "blob_store" in set(inspector.get_table_names())


def init_db() -> None:
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=engine)


def get_session() -> Session:
    return SessionLocal()


class BlobStore:
    """Key-value store of JSON documents, one row per key.

    Every write replaces the whole document stored under a key, so the last
    writer wins. Components receive a store instance instead of opening
    sessions themselves.
    """

    def get(self, key: str, default: Any = None) -> Any:
        session: Session = get_session()
        entry = session.get(BlobEntry, key)
        session.close()
        if entry is None:
            return default
        try:
            return json.loads(entry.value)
        except ValueError:
            if DEBUG_MODE:
                print(f"⚠️ Stored value for '{key}' is not valid JSON, using default")
            return default

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        session: Session = get_session()
        entry = session.get(BlobEntry, key)
        if entry is None:
            session.add(BlobEntry(key=key, value=payload))
        else:
            entry.value = payload
            entry.updated_at = datetime.datetime.now(datetime.UTC)
        session.commit()
        session.close()
        if DEBUG_MODE:
            print(f"💾 Stored '{key}' ({len(payload)} bytes)")

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if something was deleted."""
        session: Session = get_session()
        entry = session.get(BlobEntry, key)
        if entry is None:
            session.close()
            return False
        session.delete(entry)
        session.commit()
        session.close()
        return True

    def keys(self) -> list[str]:
        session: Session = get_session()
        names = [row.key for row in session.query(BlobEntry).order_by(BlobEntry.key).all()]
        session.close()
        return names


def get_store() -> BlobStore:
    """Return a store bound to the module-level engine, creating tables on first use."""
    if not is_db_initialized():
        init_db()
    return BlobStore()
