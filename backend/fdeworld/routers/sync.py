import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from fdeworld.config import get_settings
from fdeworld.database import Store, get_store
from fdeworld.dependencies import require_sync_token
from fdeworld.services.sync import SyncRejectedError, replace_database

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_sync_token)])
settings = get_settings()


@router.post("/sync-db")
async def sync_db(request: Request, store: Store = Depends(get_store)):
    """Replace the scraper-owned tables with those of the uploaded database file."""
    payload = await request.body()
    try:
        result = await run_in_threadpool(
            replace_database, store, payload, settings.sync_min_bytes
        )
    except SyncRejectedError as e:
        logger.warning("Rejected database sync: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"ok": True, "bytes": result.bytes, "path": result.path, "tables": result.tables}
