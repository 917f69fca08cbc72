from fastapi import APIRouter, Depends, HTTPException, Response, status

from fdeworld.database import Store, get_store
from fdeworld.dependencies import COOKIE_NAME, get_current_candidate_id
from fdeworld.schemas import AccountResponse, MessageResponse, ProfileUpdate
from fdeworld.services import candidates as candidate_service

router = APIRouter()


@router.get("", response_model=AccountResponse)
def get_account(
    candidate_id: int = Depends(get_current_candidate_id),
    store: Store = Depends(get_store),
):
    """The signed-in candidate's profile and saved-job count."""
    candidate = candidate_service.get_candidate_by_id(store, candidate_id)
    if not candidate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Account not found",
        )
    account = AccountResponse.model_validate(candidate)
    account.saved_count = candidate_service.saved_job_count(store, candidate_id)
    return account


@router.patch("", response_model=MessageResponse)
def update_account(
    data: ProfileUpdate,
    candidate_id: int = Depends(get_current_candidate_id),
    store: Store = Depends(get_store),
):
    """Update profile fields present in the request body."""
    fields = data.model_dump(exclude_unset=True)
    if not candidate_service.update_candidate(store, candidate_id, fields):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Account not found",
        )
    return MessageResponse(message="Profile updated")


@router.delete("", response_model=MessageResponse)
def delete_account(
    response: Response,
    candidate_id: int = Depends(get_current_candidate_id),
    store: Store = Depends(get_store),
):
    """Delete the account and its saved jobs, then sign out."""
    if not candidate_service.delete_candidate(store, candidate_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Account not found",
        )
    response.delete_cookie(key=COOKIE_NAME)
    return MessageResponse(message="Account deleted")
