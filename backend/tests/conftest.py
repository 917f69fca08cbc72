"""Pytest configuration and fixtures for FDE World Jobs tests."""

import itertools
import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DB_SYNC_TOKEN"] = "test-sync-token"

from fdeworld.database import Durability, Store, format_timestamp
from fdeworld.dependencies import COOKIE_NAME, EMPLOYER_COOKIE_NAME
from fdeworld.main import app
from fdeworld.models import Candidate, CompanyEnrichment, Employer, Job
from fdeworld.services.auth import create_employer_token, create_session_token

ADMIN_HEADERS = {"x-admin-token": "test-sync-token"}

# Fixed reference time for freshness and ordering tests
NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def days_ago(days: float, now: datetime = NOW) -> str:
    return format_timestamp(now - timedelta(days=days))


class FakeClock:
    """Monotonic clock the tests can move forward by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "jobs.db"


@pytest.fixture
def store(db_path, clock):
    """Open a fresh store backed by a file in the test's tmp directory."""
    store = Store(db_path, flush_interval=1.0, clock=clock)
    store.open()
    yield store
    store.close()


@pytest.fixture
def add(store):
    """Insert ORM objects through the store and return them refreshed."""
    def _add(*objects):
        with store.write(Durability.LAZY) as session:
            session.add_all(objects)
            session.flush()
            for obj in objects:
                session.refresh(obj)
        return objects[0] if len(objects) == 1 else list(objects)

    return _add


@pytest.fixture
def make_job(add):
    """Factory for open jobs with unique URLs; keyword arguments override defaults."""
    counter = itertools.count(1)

    def _make(**fields):
        n = next(counter)
        values = {
            "title": f"Solutions Engineer {n}",
            "company": "Acme",
            "url": f"https://jobs.example.com/{n}",
            "location": "London, UK",
            "source": "greenhouse",
            "status": "open",
            "first_seen_at": days_ago(n / 100),
        }
        values.update(fields)
        return add(Job(**values))

    return _make


@pytest.fixture
def make_enrichment(add):
    def _make(company_name: str, **fields):
        return add(CompanyEnrichment(company_name=company_name, **fields))

    return _make


@pytest.fixture
def client(store):
    """Create a test client serving the per-test store."""
    app.state.store = store
    with TestClient(app) as test_client:
        yield test_client
    app.state.store = None


@pytest.fixture
def candidate(add):
    """A verified candidate."""
    return add(
        Candidate(
            email="ada@example.com",
            name="Ada",
            role_types='["fde"]',
            verified=1,
        )
    )


@pytest.fixture
def second_candidate(add):
    """A second verified candidate for isolation testing."""
    return add(Candidate(email="grace@example.com", name="Grace", verified=1))


@pytest.fixture
def auth_client(client, candidate):
    """Test client signed in as ``candidate``."""
    client.cookies.set(COOKIE_NAME, create_session_token(candidate.id))
    return client


@pytest.fixture
def employer(add):
    return add(Employer(name="Erin", email="erin@hiring.example.com", company_name="Hiring Co"))


@pytest.fixture
def employer_client(client, employer):
    """Test client signed in as ``employer``."""
    client.cookies.set(EMPLOYER_COOKIE_NAME, create_employer_token(employer.id))
    return client
