"""Job catalogue queries and admin maintenance outside the main filter search."""

import logging

from sqlalchemy import distinct, func, or_, select

from fdeworld.database import Durability, Store
from fdeworld.models import Job
from fdeworld.schemas.job import JobRecord
from fdeworld.services.job_query import (
    ROLE_KEYWORDS,
    ROLE_LABELS,
    enriched_columns,
    enriched_jobs,
    order_by,
    text_contains,
)
from fdeworld.services.job_search import clamp_limit, clamp_page, materialize_jobs

logger = logging.getLogger(__name__)

ADMIN_MAX_LIMIT = 100


class DuplicateJobUrlError(ValueError):
    """Another job already has the URL an edit asks for."""


# Fields an admin may change on a job row.
EDITABLE_FIELDS = (
    "title",
    "company",
    "location",
    "country",
    "url",
    "status",
    "posted_date",
    "salary_range",
    "is_remote",
    "featured",
    "verified",
)


def _enriched_select():
    ce, joined = enriched_jobs()
    return select(*enriched_columns(ce)).select_from(joined)


def get_job_by_url(store: Store, url: str) -> JobRecord | None:
    """Look up one job (open or closed) with its enrichment."""
    result = store.execute(_enriched_select().where(Job.url == url).limit(1))
    jobs = materialize_jobs(result)
    return jobs[0] if jobs else None


def job_stats(store: Store) -> dict:
    open_jobs = Job.status == "open"
    jobs_count = store.execute(select(func.count(Job.id)).where(open_jobs)).scalar()
    companies_count = store.execute(
        select(func.count(distinct(Job.company))).where(open_jobs)
    ).scalar()
    sources_count = store.execute(
        select(func.count(distinct(Job.source))).where(open_jobs)
    ).scalar()
    return {
        "open_jobs": jobs_count or 0,
        "companies": companies_count or 0,
        "sources": sources_count or 0,
    }


def job_counts_by_role(store: Store) -> dict[str, int]:
    """Open jobs per role type, using the same title keywords as the filter."""
    counts = {}
    for role, keywords in ROLE_KEYWORDS.items():
        statement = select(func.count(Job.id)).where(
            Job.status == "open",
            or_(*(text_contains(Job.title, keyword) for keyword in keywords)),
        )
        counts[role] = store.execute(statement).scalar() or 0
    return counts


def role_summary(store: Store) -> list[dict]:
    """Role types with display labels and open job counts, in filter order."""
    counts = job_counts_by_role(store)
    return [
        {"key": role, "label": ROLE_LABELS[role], "count": counts[role]}
        for role in ROLE_KEYWORDS
    ]


def companies(store: Store) -> list[dict]:
    """Companies with open jobs, busiest first."""
    job_count = func.count(Job.id).label("count")
    result = store.execute(
        select(Job.company, job_count)
        .where(Job.status == "open")
        .group_by(Job.company)
        .order_by(job_count.desc(), Job.company)
    )
    return [{"company": company, "count": count} for company, count in result.rows]


def recent_jobs(store: Store, limit: int = 6) -> list[JobRecord]:
    statement = (
        _enriched_select()
        .where(Job.status == "open")
        .order_by(*order_by("posted"))
        .limit(limit)
    )
    return materialize_jobs(store.execute(statement))


def featured_jobs(store: Store, limit: int = 4) -> list[JobRecord]:
    statement = (
        _enriched_select()
        .where(Job.status == "open", Job.featured == 1)
        .order_by(*order_by("posted"))
        .limit(limit)
    )
    return materialize_jobs(store.execute(statement))


def admin_search_jobs(
    store: Store,
    search: str | None = None,
    status: str | None = None,
    source: str | None = None,
    page: int | None = 1,
    limit: int | None = 50,
) -> tuple[list[JobRecord], int]:
    """Search all jobs regardless of status, newest first."""
    page = clamp_page(page)
    limit = clamp_limit(limit, maximum=ADMIN_MAX_LIMIT)

    conditions = []
    if search:
        conditions.append(
            or_(
                text_contains(Job.title, search),
                text_contains(Job.company, search),
                text_contains(Job.url, search),
            )
        )
    if status:
        conditions.append(Job.status == status)
    if source:
        conditions.append(Job.source == source)

    total = store.execute(select(func.count(Job.id)).where(*conditions)).scalar() or 0
    statement = (
        _enriched_select()
        .where(*conditions)
        .order_by(Job.first_seen_at.desc(), Job.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return materialize_jobs(store.execute(statement)), total


def update_job(store: Store, job_id: int, fields: dict) -> bool:
    """Apply admin edits to a job. Returns False if the job does not exist.

    Keys outside EDITABLE_FIELDS are ignored.
    Raises DuplicateJobUrlError when ``url`` would clash with another job.
    """
    changes = {key: value for key, value in fields.items() if key in EDITABLE_FIELDS}
    for flag in ("is_remote", "featured", "verified"):
        if flag in changes and changes[flag] is not None:
            changes[flag] = int(bool(changes[flag]))

    with store.write(Durability.LAZY) as db:
        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            return False
        new_url = changes.get("url")
        if new_url and new_url != job.url:
            clash = db.query(Job.id).filter(Job.url == new_url, Job.id != job_id).first()
            if clash:
                raise DuplicateJobUrlError(new_url)
        for key, value in changes.items():
            setattr(job, key, value)

    if changes:
        logger.info("Updated job %d: %s", job_id, ", ".join(sorted(changes)))
    return True


def delete_job(store: Store, job_id: int, hard: bool = False) -> bool:
    """Close a job, or purge its row when ``hard`` is set.

    Saved-job rows reference jobs by URL and are left in place either way.
    """
    with store.write(Durability.DURABLE) as db:
        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            return False
        if hard:
            db.delete(job)
        else:
            job.status = "closed"

    logger.info("%s job %d", "Purged" if hard else "Closed", job_id)
    return True

