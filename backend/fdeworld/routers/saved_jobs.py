from fastapi import APIRouter, Depends, HTTPException, status

from fdeworld.database import Store, get_store
from fdeworld.dependencies import get_current_candidate_id
from fdeworld.schemas import JobRecord, SavedJobRequest
from fdeworld.services import candidates as candidate_service
from fdeworld.services.candidates import JobNotFoundError

router = APIRouter()


@router.get("")
def list_saved_urls(
    candidate_id: int = Depends(get_current_candidate_id),
    store: Store = Depends(get_store),
):
    """URLs of the candidate's saved jobs, most recent first."""
    return {"saved_urls": candidate_service.get_saved_job_urls(store, candidate_id)}


@router.get("/jobs")
def list_saved_jobs(
    candidate_id: int = Depends(get_current_candidate_id),
    store: Store = Depends(get_store),
):
    """Saved jobs with their details; bookmarks of purged jobs are skipped."""
    jobs: list[JobRecord] = candidate_service.get_saved_jobs(store, candidate_id)
    return {"jobs": [job.model_dump() for job in jobs]}


@router.post("")
def save_job(
    data: SavedJobRequest,
    candidate_id: int = Depends(get_current_candidate_id),
    store: Store = Depends(get_store),
):
    """Save a job for the current candidate (idempotent)."""
    try:
        created = candidate_service.save_job(store, candidate_id, data.job_url)
    except JobNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )

    if not created:
        return {"message": "Job already saved", "job_url": data.job_url}
    return {"message": "Job saved", "job_url": data.job_url}


@router.delete("")
def unsave_job(
    data: SavedJobRequest,
    candidate_id: int = Depends(get_current_candidate_id),
    store: Store = Depends(get_store),
):
    """Remove a saved job for the current candidate."""
    if not candidate_service.unsave_job(store, candidate_id, data.job_url):
        return {"message": "Job was not saved", "job_url": data.job_url}
    return {"message": "Job unsaved", "job_url": data.job_url}
