from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from fdeworld.database import Store, StoreError, get_store

router = APIRouter()


@router.get("/health")
def health_check(store: Store = Depends(get_store)):
    """Health check endpoint that verifies the store can answer a query.

    Note: This is a sync function because the store is synchronous.
    FastAPI will run it in a threadpool automatically.
    """
    try:
        store.execute("SELECT 1")
        db_status = "healthy"
    except (StoreError, SQLAlchemyError) as e:
        db_status = f"unhealthy: {str(e)}"

    return {
        "status": "ok" if db_status == "healthy" else "degraded",
        "database": db_status,
        "dirty": store.dirty,
    }
