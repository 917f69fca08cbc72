"""Paginated job search and row materialization."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from fdeworld.database import QueryResult, SchemaMismatchError, Store
from fdeworld.schemas.job import JobRecord
from fdeworld.services.job_query import JobFilters, build_job_query

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 50
# Keeps (page - 1) * limit well inside SQLite's 64-bit INTEGER for any limit we allow.
MAX_PAGE = 10_000_000

JOB_RECORD_FIELDS = tuple(JobRecord.model_fields)


@dataclass(frozen=True)
class JobPage:
    jobs: list[JobRecord]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total > 0 else 0


def clamp_page(page: int | None) -> int:
    if not page or page < 1:
        return 1
    return min(page, MAX_PAGE)


def clamp_limit(limit: int | None, maximum: int = MAX_LIMIT) -> int:
    if limit is None:
        return min(DEFAULT_LIMIT, maximum)
    return max(1, min(limit, maximum))


def materialize_job(columns: Sequence[str], row: Sequence) -> JobRecord:
    """Map one result row onto a JobRecord by column name.

    Raises SchemaMismatchError when the row does not carry every field of the
    job shape, rather than guessing by position.
    """
    if len(columns) != len(row):
        raise SchemaMismatchError(
            f"Row has {len(row)} values for {len(columns)} columns"
        )
    values = dict(zip(columns, row))
    missing = [name for name in JOB_RECORD_FIELDS if name not in values]
    if missing:
        raise SchemaMismatchError(f"Job row is missing columns: {', '.join(missing)}")
    return JobRecord(**{name: values[name] for name in JOB_RECORD_FIELDS})


def materialize_jobs(result: QueryResult) -> list[JobRecord]:
    return [materialize_job(result.columns, row) for row in result.rows]


def search_jobs(
    store: Store,
    filters: JobFilters,
    page: int | None = 1,
    limit: int | None = DEFAULT_LIMIT,
    now: datetime | None = None,
) -> JobPage:
    """Run the count and the paged data query for one filter request.

    The two statements run separately against the same predicate; they are not
    wrapped in a transaction.
    """
    page = clamp_page(page)
    limit = clamp_limit(limit)
    query = build_job_query(filters, now=now)

    total = store.execute(query.count).scalar() or 0
    offset = (page - 1) * limit
    result = store.execute(query.data.limit(limit).offset(offset))
    jobs = materialize_jobs(result)

    logger.debug("Job search matched %d jobs (page %d, limit %d)", total, page, limit)
    return JobPage(jobs=jobs, total=total, page=page, limit=limit)
