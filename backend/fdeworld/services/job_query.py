"""Translate a job filter request into SQL.

The builder produces one WHERE predicate and uses it for both the count and
the data statement, so a page of results and its total always describe the
same set of jobs. Only open jobs are ever matched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, distinct, false, func, or_, select
from sqlalchemy.sql.expression import ColumnElement, Select
from sqlalchemy.sql.selectable import Join, Subquery

from fdeworld.database import format_timestamp
from fdeworld.models import CompanyEnrichment, Job

ROLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "se": ("solutions engineer", "solutions consultant"),
    "fde": ("forward deployed engineer", "fde"),
    "presales": ("pre-sales", "presales", "sales engineer"),
    "tam": (
        "technical account manager",
        "customer success engineer",
        "customer engineer",
    ),
    "impl": (
        "implementation engineer",
        "deployment engineer",
        "integration engineer",
    ),
}

ROLE_LABELS: dict[str, str] = {
    "se": "Solutions Engineer",
    "fde": "Forward Deployed Engineer",
    "presales": "Pre-Sales / Sales Engineer",
    "tam": "Technical Account Manager",
    "impl": "Implementation Engineer",
}

# Buckets are independent predicates OR-ed together, not a hierarchy.
FRESHNESS_WINDOWS: dict[str, timedelta] = {
    "hot": timedelta(days=2),
    "new": timedelta(days=7),
}
FRESHNESS_BUCKETS = ("hot", "new", "discovered")

SORT_KEYS = ("posted", "discovered")

# Wire encoding of the company filter (a single list of names).
NONE_SENTINEL = "__none__"
INCLUDE_SENTINEL = "__include__"

ENRICHMENT_FIELDS = (
    "funding_stage",
    "total_raised",
    "last_funded_date",
    "employee_count",
    "industries",
    "description",
    "domain",
)

JOB_COLUMNS = (
    Job.id,
    Job.title,
    Job.company,
    Job.location,
    Job.url,
    Job.source,
    Job.posted_date,
    Job.scraped_at,
    Job.description_snippet,
    Job.is_remote,
    Job.salary_range,
    Job.status,
    Job.first_seen_at,
    Job.last_seen_at,
    Job.country,
    Job.company_url,
    Job.featured,
    Job.verified,
)


@dataclass(frozen=True)
class AllCompanies:
    """No company constraint."""


@dataclass(frozen=True)
class NoCompanies:
    """Match nothing ("remove all companies")."""


@dataclass(frozen=True)
class IncludeCompanies:
    names: tuple[str, ...]


@dataclass(frozen=True)
class ExcludeCompanies:
    names: tuple[str, ...]


CompanyFilter = AllCompanies | NoCompanies | IncludeCompanies | ExcludeCompanies


def parse_company_filter(values: list[str] | tuple[str, ...] | None) -> CompanyFilter:
    """Decode the sentinel-encoded company list sent by the job feed.

    ``__none__`` anywhere means show nothing, ``__include__`` turns the other
    entries into an allow-list, and a plain list is a block-list.
    """
    names = [value.strip() for value in values or () if value and value.strip()]
    if NONE_SENTINEL in names:
        return NoCompanies()
    if INCLUDE_SENTINEL in names:
        return IncludeCompanies(tuple(name for name in names if name != INCLUDE_SENTINEL))
    if names:
        return ExcludeCompanies(tuple(names))
    return AllCompanies()


@dataclass(frozen=True)
class JobFilters:
    role_types: tuple[str, ...] = ()
    location: str | None = None
    country: str | None = None
    remote: bool = False
    stages: tuple[str, ...] = ()
    salary_only: bool = False
    search: str | None = None
    companies: CompanyFilter = field(default_factory=AllCompanies)
    freshness: tuple[str, ...] = ()
    sort: str = "posted"

    def __post_init__(self):
        unknown_roles = [role for role in self.role_types if role not in ROLE_KEYWORDS]
        if unknown_roles:
            raise ValueError(f"Unknown role type: {', '.join(unknown_roles)}")
        unknown_buckets = [b for b in self.freshness if b not in FRESHNESS_BUCKETS]
        if unknown_buckets:
            raise ValueError(f"Unknown freshness bucket: {', '.join(unknown_buckets)}")
        if self.sort not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {self.sort}")


@dataclass(frozen=True)
class JobQuery:
    where: ColumnElement
    count: Select
    data: Select


def enrichment_subquery() -> Subquery:
    """One enrichment row per lower-cased company name (lowest id wins).

    Names are matched case-insensitively, so differently-cased duplicates
    would otherwise fan a job out into several result rows.
    """
    first_per_name = select(func.min(CompanyEnrichment.id)).group_by(
        func.lower(CompanyEnrichment.company_name)
    )
    return (
        select(CompanyEnrichment)
        .where(CompanyEnrichment.id.in_(first_per_name))
        .subquery("ce")
    )


def enriched_jobs() -> tuple[Subquery, Join]:
    """Jobs LEFT JOIN enrichment; returns the enrichment alias and the join."""
    ce = enrichment_subquery()
    joined = Job.__table__.outerjoin(
        ce, func.lower(Job.company) == func.lower(ce.c.company_name)
    )
    return ce, joined


def enriched_columns(ce: Subquery) -> list:
    return [*JOB_COLUMNS, *(ce.c[name] for name in ENRICHMENT_FIELDS)]


def text_contains(column, term: str) -> ColumnElement:
    """Case-insensitive substring match with LIKE wildcards in ``term`` escaped."""
    escaped = term.lower().replace("/", "//").replace("%", "/%").replace("_", "/_")
    return func.lower(column).like(f"%{escaped}%", escape="/")


def posted_or_seen():
    """Posting date, falling back to discovery time when it is unknown."""
    return func.coalesce(func.nullif(Job.posted_date, ""), Job.first_seen_at)


def company_predicate(companies: CompanyFilter) -> ColumnElement | None:
    if isinstance(companies, NoCompanies):
        return false()
    if isinstance(companies, IncludeCompanies):
        return Job.company.in_(companies.names)
    if isinstance(companies, ExcludeCompanies):
        return Job.company.not_in(companies.names)
    return None


def freshness_predicate(buckets: tuple[str, ...], now: datetime) -> ColumnElement:
    clauses = []
    for bucket in dict.fromkeys(buckets):
        if bucket == "discovered":
            clauses.append(or_(Job.posted_date.is_(None), Job.posted_date == ""))
        else:
            cutoff = format_timestamp(now - FRESHNESS_WINDOWS[bucket])
            clauses.append(func.datetime(Job.posted_date) >= cutoff)
    return or_(*clauses)


def build_where(filters: JobFilters, ce: Subquery, now: datetime) -> ColumnElement:
    conditions = [Job.status == "open"]

    if filters.role_types:
        role_clauses = [
            or_(*(text_contains(Job.title, keyword) for keyword in ROLE_KEYWORDS[role]))
            for role in dict.fromkeys(filters.role_types)
        ]
        conditions.append(or_(*role_clauses))

    if filters.location:
        conditions.append(text_contains(Job.location, filters.location))

    if filters.country:
        conditions.append(Job.country == filters.country)

    # Ingestion sets is_remote inconsistently, so "remote" in the location counts too.
    if filters.remote:
        conditions.append(or_(Job.is_remote == 1, text_contains(Job.location, "remote")))

    if filters.stages:
        conditions.append(
            or_(*(text_contains(ce.c.funding_stage, stage) for stage in filters.stages))
        )

    if filters.salary_only:
        conditions.append(and_(Job.salary_range.isnot(None), Job.salary_range != ""))

    search = (filters.search or "").strip()
    if search:
        conditions.append(
            or_(
                text_contains(Job.title, search),
                text_contains(Job.company, search),
                text_contains(Job.description_snippet, search),
            )
        )

    company_clause = company_predicate(filters.companies)
    if company_clause is not None:
        conditions.append(company_clause)

    if filters.freshness:
        conditions.append(freshness_predicate(filters.freshness, now))

    return and_(*conditions)


def order_by(sort: str) -> tuple:
    if sort == "discovered":
        return (Job.first_seen_at.desc(), Job.id.desc())
    return (posted_or_seen().desc(), Job.id.desc())


def build_job_query(filters: JobFilters, now: datetime | None = None) -> JobQuery:
    """Build the count statement and the (unpaged) data statement for a filter."""
    now = now or datetime.now(timezone.utc)
    ce, joined = enriched_jobs()
    where = build_where(filters, ce, now)

    count = select(func.count(distinct(Job.id))).select_from(joined).where(where)
    data = (
        select(*enriched_columns(ce))
        .select_from(joined)
        .where(where)
        .order_by(*order_by(filters.sort))
    )
    return JobQuery(where=where, count=count, data=data)
