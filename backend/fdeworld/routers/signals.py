import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from fdeworld.database import Store, get_store
from fdeworld.dependencies import require_sync_token
from fdeworld.schemas import IngestResult, SignalIn, SignalRecord
from fdeworld.services import signals as signal_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ingest", response_model=IngestResult, dependencies=[Depends(require_sync_token)])
def ingest_signals(body: Any = Body(...), store: Store = Depends(get_store)):
    """Upsert a batch of signals posted as ``{"signals": [...]}``."""
    raw = body.get("signals") if isinstance(body, dict) else None
    if not isinstance(raw, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="signals must be an array",
        )

    try:
        signals = [SignalIn.model_validate(item) for item in raw]
    except ValidationError as e:
        logger.warning("Rejected signal batch with %d invalid fields", e.error_count())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signal: " + "; ".join(
                f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ),
        )

    return IngestResult(**signal_service.upsert_signals(store, signals))


@router.get("/feed", response_model=list[SignalRecord])
def get_feed(store: Store = Depends(get_store)):
    """The latest hiring signals for the homepage."""
    return signal_service.signals_feed(store)
