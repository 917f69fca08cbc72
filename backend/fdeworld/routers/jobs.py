from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from fdeworld.database import Store, get_store
from fdeworld.schemas import (
    CompanyCount,
    JobListResponse,
    JobRecord,
    JobSearchParams,
    JobStatsResponse,
    RoleSummary,
)
from fdeworld.services import jobs as job_service
from fdeworld.services.job_search import search_jobs

router = APIRouter()


def _int_or_none(value: str | None) -> int | None:
    try:
        return int(value) if value not in (None, "") else None
    except ValueError:
        return None


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(error["msg"].removeprefix("Value error, ") for error in exc.errors())


@router.get("", response_model=JobListResponse)
def list_jobs(
    role_types: str | None = Query(None, alias="roleTypes", description="Comma-separated role keys"),
    location: str | None = Query(None, description="Substring of the job location"),
    country: str | None = Query(None, description="Exact country"),
    remote: str | None = Query(None, description="Remote jobs only (1 or true)"),
    stage: str | None = Query(None, description="Comma-separated funding stages"),
    salary_only: str | None = Query(None, alias="salaryOnly", description="Jobs with salary info only"),
    search: str | None = Query(None, description="Search title, company and description"),
    exclude_companies: str | None = Query(
        None, alias="excludeCompanies", description="Company filter list (__none__/__include__ sentinels)"
    ),
    freshness: str | None = Query(None, description="Comma-separated: hot, new, discovered"),
    sort: str | None = Query(None, description="posted or discovered"),
    page: str | None = Query(None, description="Page number"),
    limit: str | None = Query(None, description="Items per page (max 50)"),
    store: Store = Depends(get_store),
):
    """Filter, sort and paginate open jobs."""
    try:
        params = JobSearchParams(
            role_types=role_types,
            location=location,
            country=country,
            remote=_flag(remote),
            stage=stage,
            salary_only=_flag(salary_only),
            search=search,
            exclude_companies=exclude_companies,
            freshness=freshness,
            sort=sort,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_validation_message(e),
        )

    result = search_jobs(
        store,
        params.to_filters(),
        page=_int_or_none(page),
        limit=_int_or_none(limit),
    )
    return JobListResponse(
        jobs=result.jobs,
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/lookup", response_model=JobRecord)
def lookup_job(url: str = Query(..., min_length=1), store: Store = Depends(get_store)):
    """Get a single job by its URL. Closed jobs are returned too."""
    job = job_service.get_job_by_url(store, url)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )
    return job


@router.get("/stats", response_model=JobStatsResponse)
def get_stats(store: Store = Depends(get_store)):
    """Homepage statistics: open jobs, hiring companies, sources."""
    return job_service.job_stats(store)


@router.get("/counts")
def get_counts(store: Store = Depends(get_store)):
    """Open job counts per role type."""
    return job_service.job_counts_by_role(store)


@router.get("/roles", response_model=list[RoleSummary])
def get_roles(store: Store = Depends(get_store)):
    """Role filter options with labels and open job counts."""
    return job_service.role_summary(store)


@router.get("/companies", response_model=list[CompanyCount])
def get_companies(store: Store = Depends(get_store)):
    return job_service.companies(store)


@router.get("/recent", response_model=list[JobRecord])
def get_recent(limit: int = Query(6, ge=1, le=50), store: Store = Depends(get_store)):
    return job_service.recent_jobs(store, limit=limit)


@router.get("/featured", response_model=list[JobRecord])
def get_featured(store: Store = Depends(get_store)):
    return job_service.featured_jobs(store)
