"""Employer accounts, job URL submissions and their moderation."""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

from sqlalchemy.orm import Session

from fdeworld.database import Durability, Store, now_timestamp
from fdeworld.models import Employer, EmployerSubmission, Job

logger = logging.getLogger(__name__)

EMPLOYER_SOURCE = "employer"


@dataclass(frozen=True)
class SubmissionResult:
    submission_id: int
    job_id: int
    was_duplicate: bool


def company_from_url(url: str) -> str:
    """Best-effort company name for a job URL with no scraped company."""
    host = urlparse(url).hostname or url
    if host.startswith("www."):
        host = host[4:]
    return host


def get_employer_by_id(store: Store, employer_id: int) -> Employer | None:
    with store.read() as db:
        return db.query(Employer).filter(Employer.id == employer_id).first()


def _get_or_create_job(
    db: Session,
    url: str,
    title: str | None = None,
    company: str | None = None,
    location: str | None = None,
    description: str | None = None,
) -> tuple[Job, bool]:
    job = db.query(Job).filter(Job.url == url).first()
    if job is not None:
        return job, False

    job = Job(
        url=url,
        title=title or url,
        company=company or company_from_url(url),
        location=location,
        description_snippet=description,
        source=EMPLOYER_SOURCE,
        status="open",
        verified=0,
        scraped_at=now_timestamp(),
    )
    db.add(job)
    db.flush()
    return job, True

def submit_job_url(
    store: Store,
    employer_id: int,
    url: str,
    title: str | None = None,
    company: str | None = None,
    location: str | None = None,
    description: str | None = None,
) -> SubmissionResult:
    """Record an employer's job URL and link it to a (possibly new) job row.

    A URL that is already listed reuses the existing job; the submission is
    recorded either way.
    """
    with store.write(Durability.DURABLE) as db:
        job, created = _get_or_create_job(db, url, title, company, location, description)
        submission = EmployerSubmission(
            employer_id=employer_id,
            job_url=url,
            scraped_title=title,
            scraped_company=company,
            scraped_location=location,
            scraped_description=description,
            job_id=job.id,
            created_job=int(created),
            status="pending",
        )
        db.add(submission)
        db.flush()
        result = SubmissionResult(
            submission_id=submission.id, job_id=job.id, was_duplicate=not created
        )

    logger.info(
        "Employer %d submitted %s (submission %d, duplicate=%s)",
        employer_id,
        url,
        result.submission_id,
        result.was_duplicate,
    )
    return result


def get_employer_submissions(store: Store, employer_id: int) -> list[EmployerSubmission]:
    with store.read() as db:
        return (
            db.query(EmployerSubmission)
            .filter(EmployerSubmission.employer_id == employer_id)
            .order_by(EmployerSubmission.created_at.desc(), EmployerSubmission.id.desc())
            .all()
        )


def get_submissions(store: Store, status: str | None = "pending") -> list[EmployerSubmission]:
    """Submissions for moderation, oldest first. ``status=None`` lists all."""
    with store.read() as db:
        query = db.query(EmployerSubmission)
        if status:
            query = query.filter(EmployerSubmission.status == status)
        return query.order_by(
            EmployerSubmission.created_at, EmployerSubmission.id
        ).all()


def get_submission(store: Store, submission_id: int) -> EmployerSubmission | None:
    with store.read() as db:
        return (
            db.query(EmployerSubmission)
            .filter(EmployerSubmission.id == submission_id)
            .first()
        )


def approve_submission(store: Store, submission_id: int) -> EmployerSubmission | None:
    """Approve a submission and mark its job as verified and open."""
    with store.write(Durability.DURABLE) as db:
        submission = (
            db.query(EmployerSubmission)
            .filter(EmployerSubmission.id == submission_id)
            .first()
        )
        if submission is None:
            return None

        job = None
        if submission.job_id:
            job = db.query(Job).filter(Job.id == submission.job_id).first()
        if job is None:
            # The linked row may have been purged since the submission was made.
            job, created = _get_or_create_job(
                db,
                submission.job_url,
                submission.scraped_title,
                submission.scraped_company,
                submission.scraped_location,
                submission.scraped_description,
            )
            submission.job_id = job.id
            submission.created_job = int(created)

        job.verified = 1
        job.status = "open"
        submission.status = "approved"
        submission.rejection_reason = None
        submission.reviewed_at = now_timestamp()

    logger.info("Approved submission %d (job %d)", submission_id, submission.job_id)
    return submission


def reject_submission(
    store: Store, submission_id: int, reason: str | None = None
) -> EmployerSubmission | None:
    """Reject a submission. A job row the submission created is closed."""
    with store.write(Durability.DURABLE) as db:
        submission = (
            db.query(EmployerSubmission)
            .filter(EmployerSubmission.id == submission_id)
            .first()
        )
        if submission is None:
            return None

        if submission.created_job and submission.job_id:
            job = db.query(Job).filter(Job.id == submission.job_id).first()
            if job is not None:
                job.status = "closed"

        submission.status = "rejected"
        submission.rejection_reason = reason
        submission.reviewed_at = now_timestamp()

    logger.info("Rejected submission %d", submission_id)
    return submission
