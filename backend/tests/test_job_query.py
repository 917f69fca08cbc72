"""Tests for the job filter query builder and paginated search."""

import pytest
from sqlalchemy import select

from conftest import NOW, days_ago
from fdeworld.database import SchemaMismatchError
from fdeworld.models import Job
from fdeworld.services.job_query import (
    AllCompanies,
    ExcludeCompanies,
    IncludeCompanies,
    JobFilters,
    NoCompanies,
    build_job_query,
    parse_company_filter,
)
from fdeworld.services.job_search import (
    clamp_limit,
    MAX_PAGE,
    clamp_page,
    materialize_job,
    search_jobs,
)


def search(store, **filters):
    page = filters.pop("page", 1)
    limit = filters.pop("limit", 50)
    return search_jobs(store, JobFilters(**filters), page=page, limit=limit, now=NOW)


def titles(result):
    return [job.title for job in result.jobs]


def unpaged_count(store, filters: JobFilters) -> int:
    query = build_job_query(filters, now=NOW)
    return len(store.execute(query.data).rows)


@pytest.fixture
def catalogue(make_job, make_enrichment):
    """A small mixed catalogue touching every filter."""
    make_enrichment("Acme", funding_stage="Series B", employee_count="200")
    make_enrichment("Globex", funding_stage="Seed")
    return [
        make_job(title="Forward Deployed Engineer", company="Acme", is_remote=1,
                 posted_date=days_ago(1), salary_range="$150k"),
        make_job(title="Senior FDE", company="Globex", location="Remote - US",
                 posted_date=days_ago(5)),
        make_job(title="Solutions Engineer", company="Initech", location="Berlin",
                 country="Germany", posted_date=days_ago(20)),
        make_job(title="Technical Account Manager", company="Acme", posted_date=None),
        make_job(title="Account Manager, Technical", company="Hooli", posted_date=""),
        make_job(title="Sales Engineer", company="Globex", status="closed",
                 posted_date=days_ago(1)),
    ]


class TestParseCompanyFilter:
    """Tests for decoding the sentinel-encoded company list."""

    def test_empty_list_means_all(self):
        assert parse_company_filter([]) == AllCompanies()
        assert parse_company_filter(None) == AllCompanies()

    def test_plain_list_excludes(self):
        assert parse_company_filter(["Acme", "Globex"]) == ExcludeCompanies(("Acme", "Globex"))

    def test_include_sentinel_switches_to_allow_list(self):
        assert parse_company_filter(["__include__", "Acme"]) == IncludeCompanies(("Acme",))

    def test_none_sentinel_wins(self):
        assert parse_company_filter(["__include__", "Acme", "__none__"]) == NoCompanies()

    def test_blank_entries_are_ignored(self):
        assert parse_company_filter(["", "  "]) == AllCompanies()


class TestJobFilters:
    """Tests for filter validation."""

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            JobFilters(role_types=("ceo",))

    def test_unknown_freshness_rejected(self):
        with pytest.raises(ValueError):
            JobFilters(freshness=("ancient",))

    def test_unknown_sort_rejected(self):
        with pytest.raises(ValueError):
            JobFilters(sort="salary")


class TestSearchFilters:
    """Tests for each filter against the catalogue."""

    def test_no_filters_returns_open_jobs_only(self, store, catalogue):
        result = search(store)
        assert result.total == 5
        assert "Sales Engineer" not in titles(result)

    def test_role_matches_keyword_substring(self, store, catalogue):
        """'Senior FDE' matches the fde role through the 'fde' keyword."""
        result = search(store, role_types=("fde",))
        assert set(titles(result)) == {"Forward Deployed Engineer", "Senior FDE"}

    def test_role_keywords_are_matched_verbatim(self, store, catalogue):
        """A reordered title does not contain 'technical account manager'."""
        result = search(store, role_types=("tam",))
        assert titles(result) == ["Technical Account Manager"]

    def test_roles_are_or_ed(self, store, catalogue):
        result = search(store, role_types=("se", "tam"))
        assert set(titles(result)) == {"Solutions Engineer", "Technical Account Manager"}

    def test_remote_uses_flag_or_location(self, store, catalogue):
        result = search(store, remote=True)
        assert set(titles(result)) == {"Forward Deployed Engineer", "Senior FDE"}

    def test_location_substring_is_case_insensitive(self, store, catalogue):
        result = search(store, location="berlin")
        assert titles(result) == ["Solutions Engineer"]

    def test_country_is_exact(self, store, catalogue):
        result = search(store, country="Germany")
        assert titles(result) == ["Solutions Engineer"]

    def test_stage_matches_enrichment(self, store, catalogue):
        result = search(store, stages=("series b",))
        assert set(titles(result)) == {"Forward Deployed Engineer", "Technical Account Manager"}

    def test_salary_only(self, store, catalogue):
        result = search(store, salary_only=True)
        assert titles(result) == ["Forward Deployed Engineer"]

    def test_search_title_and_company(self, store, catalogue):
        assert set(titles(search(store, search="initech"))) == {"Solutions Engineer"}
        assert set(titles(search(store, search="deployed"))) == {"Forward Deployed Engineer"}

    def test_search_treats_wildcards_literally(self, store, make_job):
        make_job(title="100% Remote FDE")
        make_job(title="FDE")
        result = search(store, search="100%")
        assert titles(result) == ["100% Remote FDE"]


class TestFreshness:
    """Tests for the freshness buckets."""

    def test_hot_is_last_two_days(self, store, catalogue):
        result = search(store, freshness=("hot",))
        assert titles(result) == ["Forward Deployed Engineer"]

    def test_new_is_last_seven_days(self, store, catalogue):
        result = search(store, freshness=("new",))
        assert set(titles(result)) == {"Forward Deployed Engineer", "Senior FDE"}

    def test_discovered_is_unknown_posting_date(self, store, catalogue):
        result = search(store, freshness=("discovered",))
        assert set(titles(result)) == {"Technical Account Manager", "Account Manager, Technical"}

    def test_buckets_are_or_ed(self, store, catalogue):
        result = search(store, freshness=("hot", "discovered"))
        assert set(titles(result)) == {
            "Forward Deployed Engineer",
            "Technical Account Manager",
            "Account Manager, Technical",
        }


class TestCompanyFilter:
    """Tests for the company inclusion/exclusion modes."""

    def test_none_returns_nothing(self, store, catalogue):
        result = search(store, companies=NoCompanies())
        assert result.jobs == []
        assert result.total == 0

    def test_none_wins_over_other_filters(self, store, catalogue):
        result = search(store, companies=NoCompanies(), role_types=("fde",), remote=True)
        assert result.total == 0
        assert result.jobs == []

    def test_include_lists_only_named_companies(self, store, catalogue):
        result = search(store, companies=IncludeCompanies(("Acme",)), role_types=("fde", "tam"))
        assert {job.company for job in result.jobs} == {"Acme"}
        assert "Senior FDE" not in titles(result)

    def test_exclude_drops_named_companies(self, store, catalogue):
        result = search(store, companies=ExcludeCompanies(("Acme", "Globex")))
        assert set(titles(result)) == {"Solutions Engineer", "Account Manager, Technical"}


class TestCountMatchesRows:
    """The count statement and the data statement share one predicate."""

    @pytest.mark.parametrize(
        "filters",
        [
            JobFilters(),
            JobFilters(role_types=("fde", "tam")),
            JobFilters(remote=True, freshness=("new",)),
            JobFilters(stages=("seed", "series")),
            JobFilters(companies=IncludeCompanies(("Acme", "Hooli"))),
            JobFilters(companies=ExcludeCompanies(("Acme",)), salary_only=True),
            JobFilters(companies=NoCompanies()),
            JobFilters(search="engineer", sort="discovered"),
        ],
    )
    def test_count_equals_unpaged_rows(self, store, catalogue, filters):
        result = search_jobs(store, filters, page=1, limit=2, now=NOW)
        assert result.total == unpaged_count(store, filters)

    def test_duplicate_enrichment_does_not_duplicate_jobs(self, store, make_job, make_enrichment):
        """Enrichment rows differing only by case enrich once (lowest id wins)."""
        make_enrichment("Acme", funding_stage="Series A")
        make_enrichment("ACME", funding_stage="Series C")
        make_job(company="acme")

        result = search(store)
        assert result.total == 1
        assert len(result.jobs) == 1
        assert result.jobs[0].funding_stage == "Series A"


class TestSorting:
    """Tests for result ordering."""

    def test_posted_sort_falls_back_to_first_seen(self, store, make_job):
        make_job(title="posted 3 days ago", posted_date=days_ago(3), first_seen_at=days_ago(10))
        make_job(title="unknown, seen 1 day ago", posted_date=None, first_seen_at=days_ago(1))
        make_job(title="posted 2 days ago", posted_date=days_ago(2), first_seen_at=days_ago(2))
        make_job(title="blank, seen 5 days ago", posted_date="", first_seen_at=days_ago(5))

        result = search(store)
        assert titles(result) == [
            "unknown, seen 1 day ago",
            "posted 2 days ago",
            "posted 3 days ago",
            "blank, seen 5 days ago",
        ]

    def test_discovered_sort_uses_first_seen(self, store, make_job):
        make_job(title="old", posted_date=days_ago(0), first_seen_at=days_ago(9))
        make_job(title="new", posted_date=days_ago(30), first_seen_at=days_ago(1))
        result = search(store, sort="discovered")
        assert titles(result) == ["new", "old"]

    def test_ties_break_on_id_descending(self, store, make_job):
        first = make_job(title="first", first_seen_at=days_ago(1))
        second = make_job(title="second", first_seen_at=days_ago(1))
        result = search(store, sort="discovered")
        assert [job.id for job in result.jobs] == [second.id, first.id]


class TestPagination:
    """Tests for paging and clamping."""

    def test_pages_do_not_overlap(self, store, make_job):
        for _ in range(5):
            make_job()
        first = search(store, page=1, limit=2)
        second = search(store, page=2, limit=2)
        third = search(store, page=3, limit=2)

        assert first.total == 5
        assert first.total_pages == 3
        ids = [job.id for page in (first, second, third) for job in page.jobs]
        assert len(ids) == len(set(ids)) == 5

    def test_page_past_end_is_empty(self, store, make_job):
        make_job()
        result = search(store, page=4, limit=20)
        assert result.jobs == []
        assert result.total == 1

    def test_clamping(self):
        assert clamp_page(0) == 1
        assert clamp_page(-3) == 1
        assert clamp_page(None) == 1
        assert clamp_limit(None) == 20
        assert clamp_limit(500) == 50
        assert clamp_limit(0) == 1

    def test_huge_page_is_capped(self):
        assert clamp_page(10**20) == MAX_PAGE
        assert (MAX_PAGE - 1) * 100 < 2**63

    def test_limit_is_capped(self, store, make_job):
        for _ in range(3):
            make_job()
        result = search_jobs(store, JobFilters(), page=1, limit=1000, now=NOW)
        assert result.limit == 50


class TestExampleScenarios:
    """End-to-end scenarios over the search service."""

    def test_hot_remote_fde(self, store, make_job):
        make_job(title="Forward Deployed Engineer", is_remote=1, posted_date=days_ago(1))
        result = search(store, role_types=("fde",), remote=True, freshness=("hot",))
        assert titles(result) == ["Forward Deployed Engineer"]
        assert result.total == 1

    def test_none_sentinel_against_non_empty_store(self, store, catalogue):
        filters = JobFilters(companies=parse_company_filter(["__none__"]))
        result = search_jobs(store, filters, now=NOW)
        assert result.jobs == []
        assert result.total == 0


class TestMaterializer:
    """Tests for mapping rows onto job records."""

    def test_enrichment_fields_are_nullable(self, store, make_job):
        make_job(company="Unknown Co")
        job = search(store).jobs[0]
        assert job.funding_stage is None
        assert job.domain is None

    def test_flags_become_booleans(self, store, make_job):
        make_job(is_remote=1)
        job = search(store).jobs[0]
        assert job.is_remote is True
        assert job.featured is False

    def test_missing_columns_raise(self, store, make_job):
        make_job()
        result = store.execute(select(Job.id, Job.title))
        with pytest.raises(SchemaMismatchError):
            materialize_job(result.columns, result.rows[0])
