"""Embedded SQLite store.

The whole database lives in an in-memory SQLite connection loaded from a
single file on disk. Writes are persisted by serialising the entire database
back to that file, so every write call site states how durable it needs to be:
``Durability.LAZY`` saves are debounced, ``Durability.DURABLE`` saves always
hit the disk before returning.
"""

import enum
import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class StoreError(Exception):
    """Base class for store failures."""


class StoreCorruptError(StoreError):
    """The database file exists but cannot be loaded."""


class SchemaMismatchError(StoreError):
    """A result set does not have the columns a mapper expects."""


class Durability(enum.Enum):
    LAZY = "lazy"
    DURABLE = "durable"


@dataclass(frozen=True)
class QueryResult:
    columns: list[str]
    rows: list[tuple]

    def scalar(self) -> Any:
        """First column of the first row, or None for an empty result."""
        if not self.rows:
            return None
        return self.rows[0][0]


@dataclass(frozen=True)
class RunResult:
    rowcount: int
    lastrowid: int | None


def format_timestamp(value: datetime) -> str:
    """Render a datetime the way SQLite's datetime('now') does (UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def now_timestamp() -> str:
    return format_timestamp(datetime.now(timezone.utc))


class Store:
    """Process-wide handle to the job board database.

    All public methods take the same re-entrant lock, so the handle can be
    shared by FastAPI's threadpool workers.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        flush_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.path = Path(path)
        self.flush_interval = flush_interval
        self._clock = clock
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None
        self._last_flush: float | None = None
        self._dirty = False

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def dirty(self) -> bool:
        """True when the in-memory database has writes not yet on disk."""
        return self._dirty

    @property
    def engine(self) -> Engine:
        return self._ensure_open()

    def open(self) -> None:
        """Load the database file into memory and bring its schema up to date.

        A missing file is not an error: the store starts empty and the file is
        created by the first flush. A file that SQLite cannot read raises
        StoreCorruptError instead of silently starting over.
        """
        from fdeworld.migrations import migrate

        with self._lock:
            if self._conn is not None:
                return

            conn = self._load()
            engine = create_engine(
                "sqlite://",
                creator=lambda: conn,
                poolclass=StaticPool,
            )
            try:
                migrate(engine)
            except Exception:
                engine.dispose()
                conn.close()
                raise

            self._conn = conn
            self._engine = engine
            self._sessionmaker = sessionmaker(
                bind=engine, autoflush=False, expire_on_commit=False
            )
            self._dirty = True
            self.save(Durability.LAZY)

    def _load(self) -> sqlite3.Connection:
        conn = sqlite3.connect(":memory:", check_same_thread=False)
        if not self.path.exists():
            logger.info("Database file %s not found, starting with an empty store", self.path)
        else:
            try:
                source = sqlite3.connect(str(self.path))
                try:
                    source.backup(conn)
                finally:
                    source.close()
                status = conn.execute("PRAGMA quick_check").fetchone()[0]
            except sqlite3.DatabaseError as exc:
                conn.close()
                raise StoreCorruptError(f"Cannot load database file {self.path}: {exc}") from exc
            if status != "ok":
                conn.close()
                raise StoreCorruptError(
                    f"Database file {self.path} failed integrity check: {status}"
                )
            logger.info("Loaded database %s (%d bytes)", self.path, self.path.stat().st_size)
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _ensure_open(self) -> Engine:
        if self._conn is None:
            self.open()
        return self._engine

    def execute(self, statement: Any, params: dict | None = None) -> QueryResult:
        """Run a query and return its column names and row tuples."""
        if isinstance(statement, str):
            statement = text(statement)
        with self._lock:
            engine = self._ensure_open()
            with engine.connect() as conn:
                result = conn.execute(statement, params or {})
                return QueryResult(
                    columns=list(result.keys()),
                    rows=[tuple(row) for row in result],
                )

    def run(
        self,
        statement: Any,
        params: dict | None = None,
        durability: Durability = Durability.LAZY,
    ) -> RunResult:
        """Execute a statement for its side effects, then save."""
        if isinstance(statement, str):
            statement = text(statement)
        with self._lock:
            engine = self._ensure_open()
            with engine.begin() as conn:
                result = conn.execute(statement, params or {})
                outcome = RunResult(rowcount=result.rowcount, lastrowid=result.lastrowid)
            self._dirty = True
            self.save(durability)
            return outcome

    @contextmanager
    def read(self) -> Iterator[Session]:
        """ORM session for reads; nothing is committed or saved."""
        with self._lock:
            self._ensure_open()
            session = self._sessionmaker()
            try:
                yield session
            finally:
                session.close()

    @contextmanager
    def write(self, durability: Durability) -> Iterator[Session]:
        """ORM session that commits on success and then saves."""
        with self._lock:
            self._ensure_open()
            session = self._sessionmaker()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
            self._dirty = True
            self.save(durability)

    @contextmanager
    def locked(self) -> Iterator["Store"]:
        """Hold the store lock across several operations (file hand-off)."""
        with self._lock:
            yield self

    def save(self, durability: Durability = Durability.LAZY) -> bool:
        """Persist pending writes. Returns True if the file was rewritten.

        Lazy saves are skipped when the previous flush happened less than
        flush_interval seconds ago; the store stays dirty until a later save
        or close().
        """
        with self._lock:
            if self._conn is None:
                return False
            if durability is Durability.LAZY and self._last_flush is not None:
                if self._clock() - self._last_flush < self.flush_interval:
                    self._dirty = True
                    return False
            self.flush()
            return True

    def flush(self) -> None:
        """Serialise the whole database to disk, replacing the file atomically."""
        with self._lock:
            if self._conn is None:
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.unlink(missing_ok=True)
            target = sqlite3.connect(str(tmp_path))
            try:
                self._conn.backup(target)
            finally:
                target.close()
            os.replace(tmp_path, self.path)
            self._last_flush = self._clock()
            self._dirty = False
            logger.debug("Flushed database to %s", self.path)

    def reset(self) -> None:
        """Drop the in-memory database without saving it.

        Used after the file has been replaced out of band; the next access
        reloads from disk.
        """
        with self._lock:
            self._discard()
            logger.info("Store reset, next access reloads %s", self.path)

    def close(self) -> None:
        """Flush pending lazy writes and release the in-memory database."""
        with self._lock:
            if self._conn is None:
                return
            if self._dirty:
                self.flush()
            self._discard()

    def _discard(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        if self._conn is not None:
            self._conn.close()
        self._conn = None
        self._engine = None
        self._sessionmaker = None
        self._last_flush = None
        self._dirty = False


def get_store(request: Request) -> Store:
    """FastAPI dependency returning the store owned by the application."""
    return request.app.state.store
