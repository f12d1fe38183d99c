"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Lifespan manager — opens the store on startup, closes it on shutdown
  2. Middleware — CORS, input sanitization, development request logging
  3. Exception handlers — maps domain errors to the error envelope
  4. Router registration — mounts all API endpoint groups under API_PREFIX

Running locally:
    uvicorn ledger_api.main:app --reload

The --reload flag watches for file changes and restarts automatically,
which is ideal for development but should not be used in production.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ledger_api import database
from ledger_api.config import settings
from ledger_api.exceptions import register_exception_handlers
from ledger_api.logging_config import setup_logging
from ledger_api.routers import accounts, auth, transactions, users
from ledger_api.sanitization import SanitizationMiddleware


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Connects to the store and creates missing tables. In production you'd
      use versioned migrations so schema changes are reviewable and
      reversible.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    # --- Startup ---
    await database.connect()
    logger.info("Ledger API started", extra={"environment": settings.ENVIRONMENT})
    yield
    # --- Shutdown ---
    await database.disconnect()
    logger.info("Ledger API stopped")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Banking REST API with users, accounts, deposits and withdrawals",
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # Middleware (the last one added runs first)
    # -----------------------------------------------------------------------

    app.add_middleware(SanitizationMiddleware, max_length=settings.MAX_INPUT_LENGTH)

    # CORS: Allow specified frontend origins to make requests.
    # In production, lock this down to your actual frontend domain(s).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.is_development:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            logger.debug("%s %s", request.method, request.url.path)
            return await call_next(request)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    register_exception_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    prefix = settings.API_PREFIX
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
    app.include_router(users.router, prefix=f"{prefix}/users", tags=["Users"])
    app.include_router(accounts.router, prefix=f"{prefix}/accounts", tags=["Accounts"])
    app.include_router(
        transactions.router, prefix=f"{prefix}/accounts", tags=["Transactions"]
    )
    app.include_router(
        transactions.history_router, prefix=f"{prefix}/transactions", tags=["Transactions"]
    )

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint for deployment probes (Kubernetes, Docker, etc.).

        Load balancers and orchestrators use this to determine if the
        container should receive traffic.
        """
        return {"status": "ok", "version": settings.APP_VERSION}

    return app


app = create_app()
