import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from fdeworld.config import get_settings

settings = get_settings()

CANDIDATE_ROLE = "candidate"
EMPLOYER_ROLE = "employer"


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=settings.session_expire_days)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT access token. Returns None if invalid."""
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        return None


def create_session_token(candidate_id: int) -> str:
    return create_access_token({"sub": str(candidate_id), "role": CANDIDATE_ROLE})


def create_employer_token(employer_id: int) -> str:
    return create_access_token({"sub": str(employer_id), "role": EMPLOYER_ROLE})


def session_subject(token: str | None, role: str) -> int | None:
    """Return the id a session token was issued for, if it is valid for ``role``."""
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or payload.get("role") != role:
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def generate_verification_token() -> str:
    """Generate a secure random token for magic-link sign in."""
    return secrets.token_hex(32)


def verification_token_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(hours=settings.verification_token_expiry_hours)
