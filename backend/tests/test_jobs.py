"""Tests for the public job endpoints."""

from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError

from fdeworld.database import format_timestamp
from fdeworld.services.job_search import MAX_PAGE


def hours_ago(hours: float) -> str:
    return format_timestamp(datetime.now(timezone.utc) - timedelta(hours=hours))


class TestListJobs:
    """Tests for GET /api/jobs."""

    def test_empty_store(self, client):
        response = client.get("/api/jobs")
        assert response.status_code == 200
        data = response.json()
        assert data["jobs"] == []
        assert data["total"] == 0
        assert data["total_pages"] == 0
        assert data["page"] == 1
        assert data["limit"] == 20

    def test_lists_open_jobs_only(self, client, make_job):
        make_job(title="Forward Deployed Engineer")
        make_job(title="Closed FDE", status="closed")

        data = client.get("/api/jobs").json()
        assert data["total"] == 1
        assert [job["title"] for job in data["jobs"]] == ["Forward Deployed Engineer"]

    def test_job_shape_includes_enrichment(self, client, make_job, make_enrichment):
        make_enrichment("Acme", funding_stage="Series B", domain="acme.example.com")
        make_job(company="Acme", is_remote=1)

        job = client.get("/api/jobs").json()["jobs"][0]
        assert job["company"] == "Acme"
        assert job["is_remote"] is True
        assert job["funding_stage"] == "Series B"
        assert job["domain"] == "acme.example.com"

    def test_camel_case_filters(self, client, make_job):
        make_job(title="Forward Deployed Engineer", salary_range="$180k")
        make_job(title="Forward Deployed Engineer II")
        make_job(title="Solutions Engineer", salary_range="$120k")

        response = client.get("/api/jobs", params={"roleTypes": "fde", "salaryOnly": "1"})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["jobs"][0]["salary_range"] == "$180k"

    def test_remote_and_hot(self, client, make_job):
        make_job(title="Forward Deployed Engineer", is_remote=1, posted_date=hours_ago(12))
        make_job(title="Forward Deployed Engineer (old)", is_remote=1, posted_date=hours_ago(24 * 10))
        make_job(title="Forward Deployed Engineer (onsite)", posted_date=hours_ago(12))

        data = client.get(
            "/api/jobs", params={"roleTypes": "fde", "remote": "true", "freshness": "hot"}
        ).json()
        assert [job["title"] for job in data["jobs"]] == ["Forward Deployed Engineer"]

    def test_exclude_companies_none_sentinel(self, client, make_job):
        make_job(company="Acme")
        make_job(company="Globex")

        data = client.get("/api/jobs", params={"excludeCompanies": "__none__"}).json()
        assert data["jobs"] == []
        assert data["total"] == 0

    def test_exclude_companies_include_mode(self, client, make_job):
        make_job(company="Acme")
        make_job(company="Globex")
        make_job(company="Initech")

        data = client.get(
            "/api/jobs", params={"excludeCompanies": "__include__,Globex,Initech"}
        ).json()
        assert {job["company"] for job in data["jobs"]} == {"Globex", "Initech"}

    def test_exclude_companies_block_list(self, client, make_job):
        make_job(company="Acme")
        make_job(company="Globex")

        data = client.get("/api/jobs", params={"excludeCompanies": "Acme"}).json()
        assert [job["company"] for job in data["jobs"]] == ["Globex"]

    def test_unknown_role_is_rejected(self, client):
        response = client.get("/api/jobs", params={"roleTypes": "fde,ceo"})
        assert response.status_code == 400
        assert "ceo" in response.json()["detail"]

    def test_unknown_freshness_is_rejected(self, client):
        response = client.get("/api/jobs", params={"freshness": "stale"})
        assert response.status_code == 400

    def test_unknown_sort_is_rejected(self, client):
        response = client.get("/api/jobs", params={"sort": "salary"})
        assert response.status_code == 400


class TestPagination:
    """Tests for paging through /api/jobs."""

    def test_pages(self, client, make_job):
        for _ in range(5):
            make_job()

        first = client.get("/api/jobs", params={"page": 1, "limit": 2}).json()
        last = client.get("/api/jobs", params={"page": 3, "limit": 2}).json()

        assert first["total"] == 5
        assert first["total_pages"] == 3
        assert len(first["jobs"]) == 2
        assert len(last["jobs"]) == 1

    def test_limit_is_capped_at_fifty(self, client, make_job):
        make_job()
        data = client.get("/api/jobs", params={"limit": 500}).json()
        assert data["limit"] == 50

    def test_bad_page_values_fall_back(self, client, make_job):
        make_job()
        data = client.get("/api/jobs", params={"page": "-2", "limit": "abc"}).json()
        assert data["page"] == 1
        assert data["limit"] == 20
        assert data["total"] == 1

    def test_huge_page_returns_empty_page(self, client, make_job):
        make_job()
        response = client.get("/api/jobs", params={"page": "99999999999999999999"})
        assert response.status_code == 200
        data = response.json()
        assert data["jobs"] == []
        assert data["total"] == 1
        assert data["page"] == MAX_PAGE


class TestLookup:
    """Tests for GET /api/jobs/lookup."""

    def test_lookup_by_url(self, client, make_job):
        job = make_job(title="Forward Deployed Engineer")
        response = client.get("/api/jobs/lookup", params={"url": job.url})
        assert response.status_code == 200
        assert response.json()["id"] == job.id

    def test_lookup_returns_closed_jobs(self, client, make_job):
        job = make_job(status="closed")
        response = client.get("/api/jobs/lookup", params={"url": job.url})
        assert response.status_code == 200
        assert response.json()["status"] == "closed"

    def test_lookup_unknown_url(self, client):
        response = client.get("/api/jobs/lookup", params={"url": "https://nowhere.example.com"})
        assert response.status_code == 404


class TestCatalogueEndpoints:
    """Tests for stats, counts, companies, recent and featured."""

    def test_stats(self, client, make_job):
        make_job(company="Acme", source="greenhouse")
        make_job(company="Acme", source="lever")
        make_job(company="Globex", source="lever")
        make_job(company="Initech", source="ashby", status="closed")

        data = client.get("/api/jobs/stats").json()
        assert data == {"open_jobs": 3, "companies": 2, "sources": 2}

    def test_counts_by_role(self, client, make_job):
        make_job(title="Forward Deployed Engineer")
        make_job(title="Senior FDE")
        make_job(title="Solutions Engineer")
        make_job(title="Solutions Consultant", status="closed")

        data = client.get("/api/jobs/counts").json()
        assert data["fde"] == 2
        assert data["se"] == 1
        assert data["tam"] == 0
        assert set(data) == {"se", "fde", "presales", "tam", "impl"}

    def test_roles_have_labels_and_counts(self, client, make_job):
        make_job(title="Forward Deployed Engineer")
        make_job(title="Solutions Engineer")
        make_job(title="Solutions Consultant")

        data = client.get("/api/jobs/roles").json()
        assert [role["key"] for role in data] == ["se", "fde", "presales", "tam", "impl"]
        assert data[0] == {"key": "se", "label": "Solutions Engineer", "count": 2}
        assert data[1]["label"] == "Forward Deployed Engineer"
        assert data[1]["count"] == 1

    def test_companies_busiest_first(self, client, make_job):
        make_job(company="Globex")
        make_job(company="Acme")
        make_job(company="Acme")

        data = client.get("/api/jobs/companies").json()
        assert data == [{"company": "Acme", "count": 2}, {"company": "Globex", "count": 1}]

    def test_recent_respects_limit(self, client, make_job):
        for _ in range(4):
            make_job()
        data = client.get("/api/jobs/recent", params={"limit": 2}).json()
        assert len(data) == 2

    def test_featured(self, client, make_job):
        make_job(title="Featured FDE", featured=1)
        make_job(title="Plain FDE")
        make_job(title="Closed featured", featured=1, status="closed")

        data = client.get("/api/jobs/featured").json()
        assert [job["title"] for job in data] == ["Featured FDE"]
        assert data[0]["featured"] is True


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"] == "healthy"

    def test_database_error_is_degraded(self, client, store, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

        monkeypatch.setattr(store, "execute", broken)
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["database"].startswith("unhealthy")
