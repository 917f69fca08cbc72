from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from fdeworld.database import Store, get_store
from fdeworld.dependencies import require_admin_token
from fdeworld.schemas import (
    AdminJobListResponse,
    CandidateListResponse,
    CandidateResponse,
    JobUpdate,
    RejectRequest,
    SubmissionResponse,
)
from fdeworld.services import candidates as candidate_service
from fdeworld.services import employers as employer_service
from fdeworld.services import jobs as job_service
from fdeworld.services.job_search import clamp_limit, clamp_page

router = APIRouter(dependencies=[Depends(require_admin_token)])


@router.get("/jobs", response_model=AdminJobListResponse)
def list_jobs(
    search: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    source: str | None = Query(None),
    page: int = Query(1),
    limit: int = Query(50),
    store: Store = Depends(get_store),
):
    """All jobs, open or closed, for maintenance."""
    jobs, total = job_service.admin_search_jobs(
        store, search=search, status=status_filter, source=source, page=page, limit=limit
    )
    page = clamp_page(page)
    limit = clamp_limit(limit, maximum=job_service.ADMIN_MAX_LIMIT)
    return AdminJobListResponse(jobs=jobs, total=total, page=page, limit=limit)


@router.patch("/jobs/{job_id}")
def update_job(job_id: int, data: JobUpdate, store: Store = Depends(get_store)):
    """Edit job fields. Closing a job is done with ``status``."""
    try:
        updated = job_service.update_job(store, job_id, data.model_dump(exclude_unset=True))
    except job_service.DuplicateJobUrlError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A job with that URL already exists",
        )
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return {"ok": True}


@router.delete("/jobs/{job_id}")
def delete_job(
    job_id: int,
    hard: bool = Query(False, description="Purge the row instead of closing it"),
    store: Store = Depends(get_store),
):
    if not job_service.delete_job(store, job_id, hard=hard):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return {"ok": True}


@router.get("/candidates", response_model=CandidateListResponse)
def list_candidates(
    search: str | None = Query(None),
    has_cv: bool = Query(False),
    has_linkedin: bool = Query(False),
    open_to_work: bool = Query(False),
    page: int = Query(1),
    limit: int = Query(50),
    store: Store = Depends(get_store),
):
    candidates, total = candidate_service.admin_search_candidates(
        store,
        search=search,
        has_cv=has_cv,
        has_linkedin=has_linkedin,
        open_to_work=open_to_work,
        page=page,
        limit=limit,
    )
    return CandidateListResponse(
        candidates=[CandidateResponse.model_validate(c) for c in candidates],
        total=total,
        page=clamp_page(page),
        limit=clamp_limit(limit, maximum=candidate_service.ADMIN_MAX_LIMIT),
    )


@router.get("/submissions")
def list_submissions(
    status_filter: str | None = Query("pending", alias="status"),
    store: Store = Depends(get_store),
):
    """Employer submissions awaiting review (``status=all`` lists every one)."""
    wanted = None if status_filter == "all" else status_filter
    submissions = employer_service.get_submissions(store, status=wanted)
    return {
        "submissions": [
            SubmissionResponse.model_validate(s).model_dump() for s in submissions
        ]
    }


@router.post("/submissions/{submission_id}/approve")
def approve_submission(submission_id: int, store: Store = Depends(get_store)):
    submission = employer_service.approve_submission(store, submission_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    return {"ok": True, "job_id": submission.job_id}


@router.post("/submissions/{submission_id}/reject")
def reject_submission(
    submission_id: int,
    data: RejectRequest | None = Body(None),
    store: Store = Depends(get_store),
):
    reason = data.reason if data else None
    if not employer_service.reject_submission(store, submission_id, reason):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    return {"ok": True}

