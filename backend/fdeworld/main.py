import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fdeworld.config import get_settings
from fdeworld.database import Store
from fdeworld.routers import (
    account,
    admin,
    auth,
    employers,
    health,
    jobs,
    saved_jobs,
    signals,
    sync,
)

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A store set on app.state beforehand (tests) is used as-is.
    store = getattr(app.state, "store", None)
    if store is None:
        store = Store(settings.db_path, flush_interval=settings.db_flush_interval_seconds)
        app.state.store = store
    # A corrupt database file fails startup here rather than on first request.
    store.open()
    yield
    store.close()


app = FastAPI(
    title="FDE World Jobs",
    description="Solutions and forward deployed engineering job board",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(account.router, prefix="/api/account", tags=["account"])
app.include_router(saved_jobs.router, prefix="/api/saved-jobs", tags=["saved-jobs"])
app.include_router(employers.router, prefix="/api/employer", tags=["employer"])
app.include_router(signals.router, prefix="/api/signals", tags=["signals"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(sync.router, prefix="/api/admin", tags=["sync"])
# Older scraper deployments post to /admin/sync-db.
app.include_router(sync.router, prefix="/admin", tags=["sync"])


# Error handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Return HTTP errors as JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Log unexpected exceptions and return a generic 500."""
    # Log the exception with request context for debugging
    logger.exception(
        "Unhandled exception: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
