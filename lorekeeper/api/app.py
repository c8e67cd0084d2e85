"""
FastAPI application.

FastAPI/Starlette only provide the ASGI plumbing here: one catch-all
endpoint hands every request to the Router, which does all matching,
authentication, authorization and validation itself.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.responses import Response as HTTPResponse
from starlette.requests import ClientDisconnect

from lorekeeper.api.characters import register_character_routes
from lorekeeper.api.router import Response, Router
from lorekeeper.auth.jwt import TokenService
from lorekeeper.auth.policies import AuthorizationGuard, IdentityVerifier
from lorekeeper.auth.routes import register_auth_routes
from lorekeeper.config import Settings, get_settings
from lorekeeper.core.errors import Conflict, RequestAborted
from lorekeeper.core.models import Role
from lorekeeper.storage import StorageProvider, create_local_storage

logger = logging.getLogger(__name__)

DISPATCH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


# =============================================================================
# App State
# =============================================================================


class AppState:
    """Process-wide context, built once per application."""

    def __init__(self, settings: Settings, storage: StorageProvider | None = None):
        self.settings = settings
        self.storage = storage or create_local_storage(settings.password_hash_iterations)
        self.tokens = TokenService(settings)
        self.verifier = IdentityVerifier(self.tokens, self.storage.revocations)
        self.router = Router(
            self.verifier,
            AuthorizationGuard(),
            body_timeout=settings.body_read_timeout_seconds,
        )
        register_character_routes(self.router, self.storage.characters)
        register_auth_routes(
            self.router,
            self.storage.users,
            self.tokens,
            self.storage.revocations,
        )

    def bootstrap_admin(self) -> None:
        """Seed the configured admin account, if any."""
        if not self.settings.bootstrap_admin:
            return
        try:
            self.storage.users.create(
                self.settings.admin_email,
                self.settings.admin_password,
                role=Role.ADMIN,
            )
            logger.info("Bootstrapped admin account %s", self.settings.admin_email)
        except Conflict:
            logger.info("Admin account %s already exists", self.settings.admin_email)


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def to_http(response: Response) -> HTTPResponse:
    """Serialize a dispatcher Response."""
    if response.body is None:
        return HTTPResponse(status_code=response.status_code, headers=response.headers)
    return JSONResponse(
        content=response.body,
        status_code=response.status_code,
        headers=response.headers,
    )


# =============================================================================
# App Factory
# =============================================================================


def create_app(settings: Settings | None = None, storage: StorageProvider | None = None) -> FastAPI:
    """
    Build an application with its own stores.

    Tests call this with explicit settings to get fully isolated state.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    state = AppState(settings, storage)
    state.bootstrap_admin()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Lorekeeper API starting in %s mode", settings.environment)
        yield
        logger.info("Lorekeeper API shutting down")

    app = FastAPI(
        title="Lorekeeper API",
        description="Characters behind bearer-token auth and role checks",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.lorekeeper = state

    @app.get("/health", include_in_schema=False)
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "lorekeeper-api"}

    @app.api_route("/{path:path}", methods=DISPATCH_METHODS, include_in_schema=False)
    async def dispatch(request: Request):
        async def read_body() -> bytes:
            try:
                return await request.body()
            except ClientDisconnect as e:
                raise RequestAborted() from e

        response = await state.router.dispatch(
            request.method,
            request.url.path,
            request.headers,
            read_body,
        )
        return to_http(response)

    return app


app = create_app()
