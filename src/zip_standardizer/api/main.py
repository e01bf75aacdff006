"""FastAPI application entry point for the zip standardizer API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from zip_standardizer.api.routes import analysis, health, presets, rebuilds
from zip_standardizer.config import (
    configure_logging,
    get_api_host,
    get_api_port,
    get_api_reload,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup and clean up on shutdown."""
    from zip_standardizer.data.db import init_db
    from zip_standardizer.services.jobs import shutdown_runner

    configure_logging()
    init_db()
    yield
    shutdown_runner()


app = FastAPI(
    title="Zip Standardizer API",
    description="Check submitted project archives against a template and repackage them",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(presets.router, prefix="/api")
app.include_router(analysis.router, prefix="/api")
app.include_router(rebuilds.router, prefix="/api")


def main() -> None:
    """Serve the API; host, port and auto-reload come from the environment."""
    import uvicorn

    uvicorn.run(
        "zip_standardizer.api.main:app",
        host=get_api_host(),
        port=get_api_port(),
        reload=get_api_reload(),
    )


if __name__ == "__main__":
    main()
