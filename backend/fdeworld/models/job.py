from sqlalchemy import Column, Integer, String, Text, Index
from sqlalchemy.sql import func

from fdeworld.database import Base


class Job(Base):
    """A job listing. Rows are written by the scraper sync; ``url`` is the natural key."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    company = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    url = Column(Text, unique=True, nullable=False)
    source = Column(Text, nullable=True)
    posted_date = Column(Text, nullable=True)
    scraped_at = Column(Text, nullable=True)
    description_snippet = Column(Text, nullable=True)
    is_remote = Column(Integer, default=0, server_default="0")
    salary_range = Column(Text, nullable=True)
    status = Column(String(20), default="open", server_default="open")
    first_seen_at = Column(Text, server_default=func.now())
    last_seen_at = Column(Text, server_default=func.now())
    country = Column(Text, nullable=True)
    company_url = Column(Text, nullable=True)
    featured = Column(Integer, default=0, server_default="0")
    verified = Column(Integer, default=0, server_default="0")

    __table_args__ = (
        Index("ix_jobs_status", "status"),
        Index("ix_jobs_company", "company"),
    )


class CompanyEnrichment(Base):
    """Company metadata keyed by name; joined to jobs case-insensitively."""

    __tablename__ = "company_enrichment"

    id = Column(Integer, primary_key=True)
    company_name = Column(Text, nullable=False)
    funding_stage = Column(Text, nullable=True)
    total_raised = Column(Text, nullable=True)
    last_funded_date = Column(Text, nullable=True)
    employee_count = Column(Text, nullable=True)
    industries = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    domain = Column(Text, nullable=True)
