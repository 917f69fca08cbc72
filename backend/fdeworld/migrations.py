"""Schema migrator run on every store open.

Tables are created if missing; columns introduced after a table first shipped
are listed in ADDITIVE_COLUMNS and added only when the schema catalogue says
they are absent. Only additive changes are supported: renames, drops and type
changes need a rebuilt database file.
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine

from fdeworld.database import Base
import fdeworld.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)

# (table, column, column DDL), in the order the columns were introduced.
# Defaults must be constants: SQLite rejects ADD COLUMN with expressions.
ADDITIVE_COLUMNS: list[tuple[str, str, str]] = [
    ("jobs", "country", "TEXT"),
    ("jobs", "company_url", "TEXT"),
    ("jobs", "featured", "INTEGER DEFAULT 0"),
    ("jobs", "verified", "INTEGER DEFAULT 0"),
    ("candidates", "linkedin_url", "TEXT"),
    ("candidates", "cv_filename", "TEXT"),
    ("candidates", "cv_path", "TEXT"),
    ("candidates", "surname", "TEXT"),
    ("candidates", "current_role", "TEXT"),
    ("candidates", "current_company", "TEXT"),
    ("candidates", "years_experience", "INTEGER"),
    ("candidates", "skills", "TEXT"),
    ("candidates", "open_to_work", "INTEGER DEFAULT 0"),
    ("candidates", "work_auth", "TEXT"),
    ("candidates", "notice_period", "TEXT"),
    ("candidates", "salary_min", "INTEGER"),
    ("candidates", "salary_currency", "TEXT"),
    ("employer_submissions", "rejection_reason", "TEXT"),
    ("employer_submissions", "reviewed_at", "TEXT"),
    ("employer_submissions", "created_job", "INTEGER DEFAULT 0"),
]


def existing_columns(bind: Engine | Connection, table: str) -> set[str]:
    return {column["name"] for column in inspect(bind).get_columns(table)}


def migrate(engine: Engine) -> list[str]:
    """Bring the database up to the current schema.

    Returns the ``table.column`` names that were added, which is empty when
    the schema was already current.
    """
    Base.metadata.create_all(bind=engine)

    added = []
    with engine.begin() as conn:
        for table, column, ddl in ADDITIVE_COLUMNS:
            if column in existing_columns(conn, table):
                continue
            conn.execute(text(f'ALTER TABLE "{table}" ADD COLUMN "{column}" {ddl}'))
            added.append(f"{table}.{column}")

    if added:
        logger.info("Added columns: %s", ", ".join(added))
    return added
