"""Replace the scraper-owned tables from an uploaded database file.

The scraper builds its database elsewhere and pushes the whole file. Its
tables replace ours wholesale. Candidate, employer and hiring signal tables in
the canonical file are kept. The store is then reset so the next request
reloads from disk.
"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import create_engine, exc
from sqlalchemy.engine import Connection

from fdeworld.database import Store

logger = logging.getLogger(__name__)

SQLITE_HEADER = b"SQLite format 3\x00"

# Tables written by the scraper; everything else belongs to the web app.
SCRAPER_TABLES = (
    "jobs",
    "company_enrichment",
    "discovered_companies",
    "keywords",
    "ats_platforms",
)


class SyncRejectedError(ValueError):
    """The uploaded payload is not an acceptable database file."""


@dataclass
class SyncResult:
    bytes: int
    path: str
    tables: dict[str, int] = field(default_factory=dict)


def validate_payload(payload: bytes, min_bytes: int) -> None:
    if len(payload) < min_bytes:
        raise SyncRejectedError(
            f"Database payload too small ({len(payload)} bytes, minimum {min_bytes})"
        )
    if not payload.startswith(SQLITE_HEADER):
        raise SyncRejectedError("Payload is not a SQLite database")


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _schema_sql(conn: Connection, kind: str, table: str) -> list[str]:
    rows = conn.exec_driver_sql(
        "SELECT sql FROM sqlite_master WHERE type = ? AND tbl_name = ? AND sql IS NOT NULL",
        (kind, table),
    ).fetchall()
    return [row[0] for row in rows]


def copy_table(source: Connection, target: Connection, table: str) -> int | None:
    """Replace ``table`` in target with the source's definition and rows.

    Returns the number of rows copied, or None if the source has no such
    table (the target's copy is then left alone).
    """
    create_sql = _schema_sql(source, "table", table)
    if not create_sql:
        return None

    target.exec_driver_sql(f"DROP TABLE IF EXISTS {_quote(table)}")
    target.exec_driver_sql(create_sql[0])

    result = source.exec_driver_sql(f"SELECT * FROM {_quote(table)}")
    columns = list(result.keys())
    rows = [tuple(row) for row in result]
    if rows:
        column_list = ", ".join(_quote(column) for column in columns)
        placeholders = ", ".join("?" for _ in columns)
        target.exec_driver_sql(
            f"INSERT INTO {_quote(table)} ({column_list}) VALUES ({placeholders})",
            rows,
        )

    for index_sql in _schema_sql(source, "index", table):
        target.exec_driver_sql(index_sql)
    return len(rows)


def _check_integrity(path: Path) -> None:
    engine = create_engine(f"sqlite:///{path}")
    try:
        with engine.connect() as conn:
            status = conn.exec_driver_sql("PRAGMA quick_check").scalar()
    except exc.DatabaseError as e:
        raise SyncRejectedError(f"Payload is not a readable SQLite database: {e}") from e
    finally:
        engine.dispose()
    if status != "ok":
        raise SyncRejectedError(f"Payload failed integrity check: {status}")


def replace_database(store: Store, payload: bytes, min_bytes: int = 4096) -> SyncResult:
    """Merge an uploaded scraper database into the store's file.

    Holds the store lock for the whole hand-off: pending writes are flushed
    first, the merged file is swapped in atomically, and the in-memory copy is
    discarded so it cannot overwrite the new file.
    """
    validate_payload(payload, min_bytes)

    with store.locked():
        store.flush()
        store.path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=store.path.parent) as tmp_dir:
            incoming_path = Path(tmp_dir) / "incoming.db"
            incoming_path.write_bytes(payload)
            _check_integrity(incoming_path)

            merged_path = Path(tmp_dir) / "merged.db"
            if store.path.exists():
                shutil.copyfile(store.path, merged_path)

            copied = {}
            incoming = create_engine(f"sqlite:///{incoming_path}")
            merged = create_engine(f"sqlite:///{merged_path}")
            try:
                with incoming.connect() as source, merged.begin() as target:
                    for table in SCRAPER_TABLES:
                        count = copy_table(source, target, table)
                        if count is not None:
                            copied[table] = count
            finally:
                incoming.dispose()
                merged.dispose()

            os.replace(merged_path, store.path)

        store.reset()

    logger.info(
        "Synced database from %d byte upload: %s",
        len(payload),
        ", ".join(f"{table}={count}" for table, count in copied.items()) or "no tables",
    )
    return SyncResult(bytes=len(payload), path=str(store.path), tables=copied)
