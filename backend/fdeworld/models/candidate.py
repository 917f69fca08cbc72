import json

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fdeworld.database import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(Text, nullable=True)
    surname = Column(Text, nullable=True)
    role_types = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    remote_pref = Column(Text, nullable=True)
    status = Column(String(20), default="open", server_default="open")
    alert_freq = Column(String(20), default="weekly", server_default="weekly")
    verified = Column(Integer, default=0, server_default="0")
    verification_token = Column(Text, nullable=True)
    token_expires_at = Column(Text, nullable=True)
    created_at = Column(Text, server_default=func.now())
    last_active_at = Column(Text, nullable=True)
    linkedin_url = Column(Text, nullable=True)
    cv_filename = Column(Text, nullable=True)
    cv_path = Column(Text, nullable=True)
    current_role = Column(Text, nullable=True)
    current_company = Column(Text, nullable=True)
    years_experience = Column(Integer, nullable=True)
    skills = Column(Text, nullable=True)
    open_to_work = Column(Integer, default=0, server_default="0")
    work_auth = Column(Text, nullable=True)
    notice_period = Column(Text, nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_currency = Column(String(10), nullable=True)

    saved_jobs = relationship(
        "SavedJob",
        back_populates="candidate",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


def decode_json_list(value: str | None) -> list[str]:
    """Decode a JSON-encoded list column (empty on missing or bad data)."""
    if not value:
        return []
    try:
        decoded = json.loads(value)
    except ValueError:
        return []
    if not isinstance(decoded, list):
        return []
    return [str(item) for item in decoded]


def encode_json_list(values) -> str | None:
    if values is None:
        return None
    if isinstance(values, str):
        return values
    return json.dumps(list(values))
