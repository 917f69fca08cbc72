from pydantic import BaseModel, field_validator

from fdeworld.services.job_query import (
    FRESHNESS_BUCKETS,
    ROLE_KEYWORDS,
    JobFilters,
    SORT_KEYS,
    parse_company_filter,
)


class JobRecord(BaseModel):
    """An open or closed job plus its (possibly missing) company enrichment."""

    id: int
    title: str
    company: str
    location: str | None = None
    url: str
    source: str | None = None
    posted_date: str | None = None
    scraped_at: str | None = None
    description_snippet: str | None = None
    is_remote: bool = False
    salary_range: str | None = None
    status: str = "open"
    first_seen_at: str | None = None
    last_seen_at: str | None = None
    country: str | None = None
    company_url: str | None = None
    featured: bool = False
    verified: bool = False

    # Enrichment (LEFT JOIN, all nullable)
    funding_stage: str | None = None
    total_raised: str | None = None
    last_funded_date: str | None = None
    employee_count: str | None = None
    industries: str | None = None
    description: str | None = None
    domain: str | None = None

    @field_validator("is_remote", "featured", "verified", mode="before")
    @classmethod
    def null_flag_is_false(cls, v):
        return bool(v) if v is not None else False

    @field_validator(
        "title", "company", "location", "url", "source", "posted_date",
        "scraped_at", "description_snippet", "salary_range", "status",
        "first_seen_at", "last_seen_at", "country", "company_url",
        "funding_stage", "total_raised", "last_funded_date", "employee_count",
        "industries", "description", "domain",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v):
        # SQLite columns are loosely typed: scraped rows may hold numbers or blobs.
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bytes):
            return v.decode("utf-8", errors="replace")
        return str(v)


class JobListResponse(BaseModel):
    jobs: list[JobRecord]
    total: int
    page: int
    limit: int
    total_pages: int


class JobSearchParams(BaseModel):
    """Filter request as it arrives on the query string (comma-separated lists)."""

    role_types: list[str] = []
    location: str | None = None
    country: str | None = None
    remote: bool = False
    stage: list[str] = []
    salary_only: bool = False
    search: str | None = None
    exclude_companies: list[str] = []
    freshness: list[str] = []
    sort: str = "posted"

    @field_validator("role_types", "stage", "exclude_companies", "freshness", mode="before")
    @classmethod
    def split_csv(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("location", "country", "search", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("role_types")
    @classmethod
    def validate_role_types(cls, v: list[str]) -> list[str]:
        unknown = [role for role in v if role not in ROLE_KEYWORDS]
        if unknown:
            raise ValueError(f"Unknown role type: {', '.join(unknown)}")
        return v

    @field_validator("freshness")
    @classmethod
    def validate_freshness(cls, v: list[str]) -> list[str]:
        unknown = [bucket for bucket in v if bucket not in FRESHNESS_BUCKETS]
        if unknown:
            raise ValueError(f"Unknown freshness bucket: {', '.join(unknown)}")
        return v

    @field_validator("sort", mode="before")
    @classmethod
    def validate_sort(cls, v):
        if v is None or v == "":
            return "posted"
        if v not in SORT_KEYS:
            raise ValueError(f"Sort must be one of: {', '.join(SORT_KEYS)}")
        return v

    def to_filters(self) -> JobFilters:
        return JobFilters(
            role_types=tuple(self.role_types),
            location=self.location,
            country=self.country,
            remote=self.remote,
            stages=tuple(self.stage),
            salary_only=self.salary_only,
            search=self.search,
            companies=parse_company_filter(self.exclude_companies),
            freshness=tuple(self.freshness),
            sort=self.sort,
        )


class JobStatsResponse(BaseModel):
    open_jobs: int
    companies: int
    sources: int


class CompanyCount(BaseModel):
    company: str
    count: int


class RoleSummary(BaseModel):
    key: str
    label: str
    count: int


class JobUpdate(BaseModel):
    """Admin edit of a job row; only fields present in the body are changed."""

    title: str | None = None
    company: str | None = None
    location: str | None = None
    country: str | None = None
    url: str | None = None
    status: str | None = None
    posted_date: str | None = None
    salary_range: str | None = None
    is_remote: bool | None = None
    featured: bool | None = None
    verified: bool | None = None

    @field_validator("title", "company", "url", "status")
    @classmethod
    def required_when_given(cls, v):
        # Only runs for fields present in the body; these columns are NOT NULL.
        if v is None or not v.strip():
            raise ValueError("Must not be empty")
        return v.strip()

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in ("open", "closed"):
            raise ValueError("status must be open or closed")
        return v


class AdminJobListResponse(BaseModel):
    jobs: list[JobRecord]
    total: int
    page: int
    limit: int
