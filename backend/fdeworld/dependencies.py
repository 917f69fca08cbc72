import secrets

from fastapi import Header, HTTPException, Request, status

from fdeworld.config import get_settings
from fdeworld.services.auth import CANDIDATE_ROLE, EMPLOYER_ROLE, session_subject

COOKIE_NAME = "fde_session"
EMPLOYER_COOKIE_NAME = "fde_employer_session"


def get_current_candidate_id(request: Request) -> int:
    """Get the signed-in candidate's id. Raises 401 if not authenticated.

    Use this as a dependency for protected routes.
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    candidate_id = session_subject(token, CANDIDATE_ROLE)
    if candidate_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return candidate_id


def get_current_employer_id(request: Request) -> int:
    employer_id = session_subject(request.cookies.get(EMPLOYER_COOKIE_NAME), EMPLOYER_ROLE)
    if employer_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return employer_id


def _token_matches(candidate: str | None) -> bool:
    expected = get_settings().db_sync_token
    if not expected or not candidate:
        return False
    return secrets.compare_digest(candidate.encode(), expected.encode())


def require_admin_token(x_admin_token: str | None = Header(None)) -> None:
    """Admin calls carry the shared sync token in the ``x-admin-token`` header.

    An unset token on the server disables these routes entirely.
    """
    if not _token_matches(x_admin_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

def require_sync_token(
    x_sync_token: str | None = Header(None),
    x_admin_token: str | None = Header(None),
    authorization: str | None = Header(None),
) -> None:
    """Scraper-facing calls: ``x-sync-token``, ``x-admin-token`` or a bearer token."""
    bearer = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer":
            bearer = credentials.strip()

    if not any(_token_matches(token) for token in (x_sync_token, x_admin_token, bearer)):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
