import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from fdeworld.config import get_settings
from fdeworld.database import Store, get_store
from fdeworld.dependencies import COOKIE_NAME
from fdeworld.schemas import (
    CandidateResponse,
    MessageResponse,
    SigninRequest,
    SignupRequest,
    SignupResponse,
)
from fdeworld.services import (
    create_session_token,
    generate_verification_token,
    verification_token_expiry,
)
from fdeworld.services import candidates as candidate_service

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()

SIGNIN_MESSAGE = "If that address is registered, a sign-in link is on its way."


def _issue_sign_in_link(store: Store, candidate_id: int) -> str:
    """Store a fresh one-time token and return the link that consumes it."""
    token = generate_verification_token()
    candidate_service.set_verification_token(
        store, candidate_id, token, verification_token_expiry()
    )
    return f"{settings.app_url}/api/auth/verify?{urlencode({'token': token})}"


def _dev_link(link: str) -> str | None:
    # No email is sent outside production; hand the link back instead.
    return None if settings.environment == "production" else link


@router.post("/signup", response_model=SignupResponse)
def signup(data: SignupRequest, store: Store = Depends(get_store)):
    """Create or refresh a candidate profile and issue a sign-in link."""
    candidate = candidate_service.upsert_candidate(
        store,
        email=data.email,
        name=data.name,
        role_types=data.role_types,
        linkedin_url=data.linkedin_url,
        location=data.location,
        surname=data.surname,
    )
    link = _issue_sign_in_link(store, candidate.id)
    logger.info("Issued sign-in link for candidate %d", candidate.id)

    return SignupResponse(
        message="Check your email for the sign-in link",
        verify_url=_dev_link(link),
    )


@router.post("/signin", response_model=SignupResponse)
def signin(data: SigninRequest, store: Store = Depends(get_store)):
    """Send a sign-in link to an existing candidate.

    The response is the same whether or not the address is registered.
    """
    candidate = candidate_service.get_candidate_by_email(store, data.email.strip().lower())
    if not candidate:
        return SignupResponse(message=SIGNIN_MESSAGE)

    link = _issue_sign_in_link(store, candidate.id)
    return SignupResponse(message=SIGNIN_MESSAGE, verify_url=_dev_link(link))


@router.get("/verify")
def verify(
    response: Response,
    token: str | None = Query(None),
    store: Store = Depends(get_store),
):
    """Consume a sign-in token and start a session."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token is required",
        )

    candidate = candidate_service.verify_candidate(store, token)
    if not candidate:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    # Set httpOnly cookie - secure only in production (HTTPS)
    response.set_cookie(
        key=COOKIE_NAME,
        value=create_session_token(candidate.id),
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
        max_age=60 * 60 * 24 * settings.session_expire_days,
    )
    return {
        "success": True,
        "candidate": CandidateResponse.model_validate(candidate).model_dump(),
    }


@router.post("/signout", response_model=MessageResponse)
def signout(response: Response):
    """Sign out by clearing the session cookie."""
    response.delete_cookie(key=COOKIE_NAME)
    return MessageResponse(message="Successfully signed out")
