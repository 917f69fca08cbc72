from pydantic import BaseModel, EmailStr, field_validator

from fdeworld.models.candidate import decode_json_list
from fdeworld.services.job_query import ROLE_KEYWORDS


def _strip_url(v):
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if not v.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return v


def _known_roles(v):
    if v is None:
        return None
    unknown = [role for role in v if role not in ROLE_KEYWORDS]
    if unknown:
        raise ValueError(f"Unknown role type: {', '.join(unknown)}")
    return v


class SignupRequest(BaseModel):
    email: EmailStr
    name: str
    surname: str = ""
    role_types: list[str] = []
    linkedin_url: str | None = None
    location: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        if len(v) > 255:
            raise ValueError("Name must be less than 255 characters")
        return v

    @field_validator("surname", mode="before")
    @classmethod
    def strip_surname(cls, v):
        return (v or "").strip()

    @field_validator("role_types")
    @classmethod
    def validate_role_types(cls, v: list[str]) -> list[str]:
        return _known_roles(v)

    @field_validator("linkedin_url", mode="before")
    @classmethod
    def validate_linkedin_url(cls, v):
        return _strip_url(v)


class SigninRequest(BaseModel):
    email: EmailStr


class ProfileUpdate(BaseModel):
    """Partial profile update; only fields present in the request are applied."""

    name: str | None = None
    surname: str | None = None
    role_types: list[str] | None = None
    remote_pref: str | None = None
    alert_freq: str | None = None
    current_role: str | None = None
    current_company: str | None = None
    years_experience: int | None = None
    skills: list[str] | None = None
    open_to_work: bool | None = None
    location: str | None = None
    work_auth: list[str] | None = None
    notice_period: str | None = None
    salary_min: int | None = None
    salary_currency: str | None = None
    linkedin_url: str | None = None

    @field_validator("role_types")
    @classmethod
    def validate_role_types(cls, v):
        return _known_roles(v)

    @field_validator("alert_freq")
    @classmethod
    def validate_alert_freq(cls, v):
        if v is not None and v not in ("daily", "weekly", "never"):
            raise ValueError("alert_freq must be daily, weekly or never")
        return v

    @field_validator("years_experience", "salary_min")
    @classmethod
    def non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("Must not be negative")
        return v

    @field_validator("linkedin_url", mode="before")
    @classmethod
    def validate_linkedin_url(cls, v):
        return _strip_url(v)


class CandidateResponse(BaseModel):
    id: int
    email: str
    name: str | None = None
    surname: str | None = None
    role_types: list[str] = []
    location: str | None = None
    remote_pref: str | None = None
    status: str | None = None
    alert_freq: str | None = None
    verified: bool = False
    created_at: str | None = None
    last_active_at: str | None = None
    linkedin_url: str | None = None
    cv_filename: str | None = None
    cv_path: str | None = None
    current_role: str | None = None
    current_company: str | None = None
    years_experience: int | None = None
    skills: list[str] = []
    open_to_work: bool = False
    work_auth: list[str] = []
    notice_period: str | None = None
    salary_min: int | None = None
    salary_currency: str | None = None

    class Config:
        from_attributes = True

    @field_validator("role_types", "skills", "work_auth", mode="before")
    @classmethod
    def decode_list(cls, v):
        if isinstance(v, list):
            return v
        return decode_json_list(v)

    @field_validator("verified", "open_to_work", mode="before")
    @classmethod
    def null_flag_is_false(cls, v):
        return bool(v) if v is not None else False


class AccountResponse(CandidateResponse):
    saved_count: int = 0


class CandidateListResponse(BaseModel):
    candidates: list[CandidateResponse]
    total: int
    page: int
    limit: int


class SavedJobRequest(BaseModel):
    job_url: str

    @field_validator("job_url")
    @classmethod
    def validate_job_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("job_url is required")
        return v
