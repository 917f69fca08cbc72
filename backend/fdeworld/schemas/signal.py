from pydantic import BaseModel, field_validator


class SignalIn(BaseModel):
    """One hiring signal as posted by the signal scraper."""

    tweet_id: str
    author_username: str
    author_name: str | None = None
    author_followers: int = 0
    text: str
    created_at: str | None = None
    url: str
    score: int = 0
    company_name: str | None = None
    role_extracted: str | None = None
    is_target_stage: bool = False

    @field_validator("tweet_id", mode="before")
    @classmethod
    def id_as_text(cls, v):
        # Post ids exceed JavaScript's safe integers, so scrapers may send either form.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("tweet_id", "author_username", "text")
    @classmethod
    def required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator("author_name", "company_name", "role_extracted", "created_at", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("author_followers", "score", mode="before")
    @classmethod
    def null_is_zero(cls, v):
        return 0 if v is None else v


class SignalRecord(BaseModel):
    id: int
    tweet_id: str
    author_username: str
    author_name: str | None = None
    author_followers: int = 0
    text: str
    created_at: str | None = None
    url: str
    score: int = 0
    company_name: str | None = None
    role_extracted: str | None = None
    is_target_stage: int = 0
    discovered_at: str | None = None

    class Config:
        from_attributes = True

    @field_validator("author_followers", "score", "is_target_stage", mode="before")
    @classmethod
    def null_is_zero(cls, v):
        return 0 if v is None else v


class IngestResult(BaseModel):
    ok: bool = True
    inserted: int
    updated: int
