from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pawlegal.config import get_settings
from pawlegal.database import engine
from pawlegal.tasks.trash_purge import start_trash_purge_background, stop_trash_purge_background


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown events."""
    # Startup: create all database tables if they don't exist
    from pawlegal import models  # noqa: F401 - Import models to register them with Base
    from pawlegal.database import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    start_trash_purge_background()

    yield
    # Shutdown: stop the purge loop, then dispose the async engine connection pool
    await stop_trash_purge_background()
    await engine.dispose()


app = FastAPI(
    title="Paw Legal",
    description="Case management backend: recycle bin, audit logs and PDF exports",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Router includes ---
from pawlegal.api.deletions import router as deletions_router
from pawlegal.api.dossiers import router as dossiers_router
from pawlegal.api.logs import router as logs_router
from pawlegal.api.trash import router as trash_router

app.include_router(trash_router, prefix="/api")
app.include_router(logs_router, prefix="/api")
app.include_router(dossiers_router, prefix="/api")
app.include_router(deletions_router, prefix="/api")


@app.get("/api/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns a simple status response to verify the API is running.
    """
    return {"status": "ok"}
