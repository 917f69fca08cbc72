import re

from pydantic import BaseModel, field_validator


class JobUrlSubmission(BaseModel):
    """Schema for an employer submitting a job posting URL."""
    url: str
    title: str | None = None
    company: str | None = None
    location: str | None = None
    description: str | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        # Basic URL validation - must start with http:// or https://
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        # Block common injection patterns
        dangerous_patterns = [
            r"<script",  # XSS
            r"javascript:",  # JS injection
            r"\s",  # No whitespace in URLs
        ]
        for pattern in dangerous_patterns:
            if re.search(pattern, v, re.IGNORECASE):
                raise ValueError("URL contains invalid characters")
        if len(v) > 1000:
            raise ValueError("URL must be less than 1000 characters")
        return v

    @field_validator("title", "company", "location", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if len(v) > 500:
            raise ValueError("Must be less than 500 characters")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def trim_description(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v[:1000] or None


class SubmissionCreated(BaseModel):
    ok: bool = True
    submission_id: int
    job_id: int
    was_duplicate: bool
    scraped_title: str | None = None


class SubmissionResponse(BaseModel):
    id: int
    employer_id: int
    job_url: str
    scraped_title: str | None = None
    scraped_company: str | None = None
    scraped_location: str | None = None
    scraped_description: str | None = None
    job_id: int | None = None
    status: str
    rejection_reason: str | None = None
    created_at: str | None = None
    reviewed_at: str | None = None

    class Config:
        from_attributes = True


class RejectRequest(BaseModel):
    reason: str | None = None

    @field_validator("reason", mode="before")
    @classmethod
    def validate_reason(cls, v):
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if len(v) > 2000:
            raise ValueError("Reason must be less than 2000 characters")
        return v
