# =============================================================================
# Auth Routes
# =============================================================================
#
# Endpoints:
#   POST /auth/register - Create account
#   POST /auth/login    - Get an access token
#   POST /auth/logout   - Revoke the presented token
#   POST /auth/revoke   - Revoke any token (admin)
#
# =============================================================================

from __future__ import annotations

import asyncio
import logging

from lorekeeper.api.router import Call, Response, Router
from lorekeeper.auth.jwt import TokenService
from lorekeeper.core.errors import InvalidCredentials
from lorekeeper.core.models import RevokeRequest, Role, UserCredentials, UserResponse
from lorekeeper.storage.base import RevocationStore, UserStore

logger = logging.getLogger(__name__)


def register_auth_routes(
    router: Router,
    users: UserStore,
    tokens: TokenService,
    revocations: RevocationStore,
) -> None:
    """Bind the auth handlers to their stores and register them."""
    
    # PBKDF2 is CPU-bound; hashing runs in a worker thread so the event loop
    # keeps serving other requests. UserStore is lock-guarded.
    
    async def register(call: Call) -> Response:
        """Create a new USER account."""
        data: UserCredentials = call.payload
        user = await asyncio.to_thread(users.create, data.email, data.password)
        logger.info("Registered user %s", user.id)
        return Response(201, UserResponse(**user.model_dump()).model_dump(mode="json"))
    
    async def login(call: Call) -> Response:
        data: UserCredentials = call.payload
        user = await asyncio.to_thread(users.authenticate, data.email, data.password)
        if not user:
            raise InvalidCredentials("Invalid email or password")
        
        return Response(200, {
            "access_token": tokens.issue(str(user.id), user.role),
            "token_type": "bearer",
            "expires_in": tokens.expires_in,
        })
    
    def logout(call: Call) -> Response:
        """Revoke the token this request was made with."""
        revocations.revoke(call.token)
        logger.info("Token revoked by its holder %s", call.identity.subject)
        return Response(200, {"message": "Token revoked"})
    
    def revoke(call: Call) -> Response:
        data: RevokeRequest = call.payload
        revocations.revoke(data.token)
        logger.info("Token revoked by admin %s", call.identity.subject)
        return Response(200, {"message": "Token revoked"})
    
    router.add("POST", "/auth/register", register, authenticated=False, shape=UserCredentials)
    router.add("POST", "/auth/login", login, authenticated=False, shape=UserCredentials)
    router.add("POST", "/auth/logout", logout)
    router.add("POST", "/auth/revoke", revoke, roles={Role.ADMIN}, shape=RevokeRequest)
