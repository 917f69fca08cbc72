from fastapi import APIRouter, Depends, HTTPException, status

from fdeworld.database import Store, get_store
from fdeworld.dependencies import get_current_employer_id
from fdeworld.schemas import JobUrlSubmission, SubmissionCreated, SubmissionResponse
from fdeworld.services import employers as employer_service

router = APIRouter()


@router.post("/jobs", response_model=SubmissionCreated)
def submit_job(
    submission: JobUrlSubmission,
    employer_id: int = Depends(get_current_employer_id),
    store: Store = Depends(get_store),
):
    """
    Submit a job posting URL for review.

    A URL that is already listed is linked to the existing job and reported
    as a duplicate; the submission is still recorded for moderation.
    """
    if not employer_service.get_employer_by_id(store, employer_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Employer not found",
        )

    result = employer_service.submit_job_url(
        store,
        employer_id,
        submission.url,
        title=submission.title,
        company=submission.company,
        location=submission.location,
        description=submission.description,
    )
    return SubmissionCreated(
        submission_id=result.submission_id,
        job_id=result.job_id,
        was_duplicate=result.was_duplicate,
        scraped_title=submission.title,
    )


@router.get("/jobs")
def list_submissions(
    employer_id: int = Depends(get_current_employer_id),
    store: Store = Depends(get_store),
):
    """The employer's own submissions, newest first."""
    submissions = employer_service.get_employer_submissions(store, employer_id)
    return {
        "submissions": [
            SubmissionResponse.model_validate(s).model_dump() for s in submissions
        ]
    }
