"""Candidate profiles, magic-link tokens and saved jobs."""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, or_, select

from fdeworld.database import Durability, Store, format_timestamp, now_timestamp
from fdeworld.models import Candidate, Job, SavedJob
from fdeworld.models.candidate import encode_json_list
from fdeworld.schemas.job import JobRecord
from fdeworld.services.job_query import enriched_columns, enrichment_subquery, text_contains
from fdeworld.services.job_search import clamp_limit, clamp_page, materialize_jobs

logger = logging.getLogger(__name__)

ADMIN_MAX_LIMIT = 100

PROFILE_FIELDS = (
    "name",
    "surname",
    "role_types",
    "remote_pref",
    "alert_freq",
    "current_role",
    "current_company",
    "years_experience",
    "skills",
    "open_to_work",
    "location",
    "work_auth",
    "notice_period",
    "salary_min",
    "salary_currency",
    "linkedin_url",
)
JSON_LIST_FIELDS = ("role_types", "skills", "work_auth")


class JobNotFoundError(LookupError):
    """The job URL to save does not match an open job."""


def get_candidate_by_email(store: Store, email: str) -> Candidate | None:
    with store.read() as db:
        return db.query(Candidate).filter(Candidate.email == email).first()


def get_candidate_by_id(store: Store, candidate_id: int) -> Candidate | None:
    with store.read() as db:
        return db.query(Candidate).filter(Candidate.id == candidate_id).first()


def upsert_candidate(
    store: Store,
    email: str,
    name: str,
    role_types: list[str] | None = None,
    linkedin_url: str | None = None,
    cv_filename: str | None = None,
    cv_path: str | None = None,
    location: str | None = None,
    surname: str | None = None,
) -> Candidate:
    """Create the candidate for ``email`` or refresh the existing one.

    Signing up again with the same address never creates a second row:
    name and role types are replaced, while optional fields only overwrite
    stored values when a new value is given.
    """
    email = email.strip().lower()
    with store.write(Durability.DURABLE) as db:
        candidate = db.query(Candidate).filter(Candidate.email == email).first()
        if candidate is None:
            candidate = Candidate(email=email)
            db.add(candidate)
            logger.info("Created candidate %s", email)
        else:
            candidate.last_active_at = now_timestamp()

        candidate.name = name
        candidate.role_types = encode_json_list(role_types or [])
        if surname is not None:
            candidate.surname = surname
        for column, value in (
            ("linkedin_url", linkedin_url),
            ("cv_filename", cv_filename),
            ("cv_path", cv_path),
            ("location", location),
        ):
            if value:
                setattr(candidate, column, value)
        db.flush()
        db.refresh(candidate)
    return candidate


def set_verification_token(
    store: Store, candidate_id: int, token: str, expires_at: datetime
) -> None:
    with store.write(Durability.DURABLE) as db:
        candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
        if candidate is None:
            raise LookupError(f"Candidate {candidate_id} not found")
        candidate.verification_token = token
        candidate.token_expires_at = format_timestamp(expires_at)


def verify_candidate(
    store: Store, token: str, now: datetime | None = None
) -> Candidate | None:
    """Consume a sign-in token. Returns the candidate, or None if the token is
    unknown or expired. A token can only be used once."""
    now = now or datetime.now(timezone.utc)
    with store.write(Durability.DURABLE) as db:
        candidate = (
            db.query(Candidate)
            .filter(
                Candidate.verification_token == token,
                Candidate.token_expires_at > format_timestamp(now),
            )
            .first()
        )
        if candidate is None:
            return None
        candidate.verified = 1
        candidate.verification_token = None
        candidate.token_expires_at = None
        candidate.last_active_at = format_timestamp(now)
    return candidate


def update_candidate(store: Store, candidate_id: int, fields: dict) -> bool:
    """Apply a partial profile update. Returns False for an unknown candidate."""
    changes = {key: value for key, value in fields.items() if key in PROFILE_FIELDS}
    for key in JSON_LIST_FIELDS:
        if key in changes:
            changes[key] = encode_json_list(changes[key])
    if "open_to_work" in changes and changes["open_to_work"] is not None:
        changes["open_to_work"] = int(bool(changes["open_to_work"]))

    with store.write(Durability.LAZY) as db:
        candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
        if candidate is None:
            return False
        for key, value in changes.items():
            setattr(candidate, key, value)
    return True


def delete_candidate(store: Store, candidate_id: int) -> bool:
    """Delete a candidate together with their saved-job rows."""
    with store.write(Durability.DURABLE) as db:
        candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
        if candidate is None:
            return False
        db.query(SavedJob).filter(SavedJob.candidate_id == candidate_id).delete(
            synchronize_session=False
        )
        db.delete(candidate)
    logger.info("Deleted candidate %d", candidate_id)
    return True


def get_saved_job_urls(store: Store, candidate_id: int) -> list[str]:
    result = store.execute(
        select(SavedJob.job_url)
        .where(SavedJob.candidate_id == candidate_id)
        .order_by(SavedJob.saved_at.desc(), SavedJob.id.desc())
    )
    return [url for (url,) in result.rows]


def saved_job_count(store: Store, candidate_id: int) -> int:
    result = store.execute(
        select(func.count(SavedJob.id)).where(SavedJob.candidate_id == candidate_id)
    )
    return result.scalar() or 0


def save_job(store: Store, candidate_id: int, job_url: str) -> bool:
    """Bookmark an open job. Returns False if it was already saved."""
    with store.write(Durability.LAZY) as db:
        job = db.query(Job).filter(Job.url == job_url, Job.status == "open").first()
        if job is None:
            raise JobNotFoundError(job_url)
        existing = (
            db.query(SavedJob)
            .filter(SavedJob.candidate_id == candidate_id, SavedJob.job_url == job_url)
            .first()
        )
        if existing:
            return False
        db.add(SavedJob(candidate_id=candidate_id, job_url=job_url))
    return True


def unsave_job(store: Store, candidate_id: int, job_url: str) -> bool:
    """Remove a bookmark. Returns False if it did not exist."""
    with store.write(Durability.LAZY) as db:
        removed = (
            db.query(SavedJob)
            .filter(SavedJob.candidate_id == candidate_id, SavedJob.job_url == job_url)
            .delete(synchronize_session=False)
        )
    return bool(removed)


def get_saved_jobs(store: Store, candidate_id: int) -> list[JobRecord]:
    """Saved jobs that still exist, most recently saved first."""
    ce = enrichment_subquery()
    joined = (
        SavedJob.__table__.join(Job.__table__, Job.url == SavedJob.job_url)
        .outerjoin(ce, func.lower(Job.company) == func.lower(ce.c.company_name))
    )
    statement = (
        select(*enriched_columns(ce))
        .select_from(joined)
        .where(SavedJob.candidate_id == candidate_id)
        .order_by(SavedJob.saved_at.desc(), SavedJob.id.desc())
    )
    return materialize_jobs(store.execute(statement))


def admin_search_candidates(
    store: Store,
    search: str | None = None,
    has_cv: bool = False,
    has_linkedin: bool = False,
    open_to_work: bool = False,
    page: int | None = 1,
    limit: int | None = 50,
) -> tuple[list[Candidate], int]:
    page = clamp_page(page)
    limit = clamp_limit(limit, maximum=ADMIN_MAX_LIMIT)

    with store.read() as db:
        query = db.query(Candidate)
        if search:
            query = query.filter(
                or_(
                    text_contains(Candidate.email, search),
                    text_contains(Candidate.name, search),
                    text_contains(Candidate.surname, search),
                    text_contains(Candidate.current_company, search),
                )
            )
        if has_cv:
            query = query.filter(Candidate.cv_path.isnot(None), Candidate.cv_path != "")
        if has_linkedin:
            query = query.filter(
                Candidate.linkedin_url.isnot(None), Candidate.linkedin_url != ""
            )
        if open_to_work:
            query = query.filter(Candidate.open_to_work == 1)

        total = query.count()
        candidates = (
            query.order_by(Candidate.created_at.desc(), Candidate.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    return candidates, total
