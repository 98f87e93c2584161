"""
Ledger API Application Factory
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging
from .accounts import router as accounts_router
from .dependencies import LedgerSystem, get_ledger_system, reset_ledger_system


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the shared ledger system when the server stops"""
    yield
    reset_ledger_system()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(level=config.log_level, fmt=config.log_format)

    app = FastAPI(
        title="Ledger Service API",
        description="Per-account balances with deposit and withdrawal transactions",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.include_router(accounts_router, prefix="/account", tags=["Accounts"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "ledger_service",
            "version": __version__
        }

    return app


app = create_app()

__all__ = ["app", "create_app", "lifespan", "LedgerSystem", "get_ledger_system", "reset_ledger_system"]
