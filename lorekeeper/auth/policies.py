"""
Admission policies - authentication and role checks.

IdentityVerifier turns request headers into an Identity (or raises an
AuthenticationError); AuthorizationGuard checks that identity against
the roles a route allows. Neither mutates anything.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from lorekeeper.auth.context import Identity
from lorekeeper.auth.jwt import TokenService
from lorekeeper.core.errors import (
    InsufficientRole,
    MalformedCredentials,
    MissingCredentials,
    RevokedCredentials,
)
from lorekeeper.core.models import Role

if TYPE_CHECKING:
    from lorekeeper.storage.base import RevocationStore

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


# =============================================================================
# Bearer Token Extraction
# =============================================================================


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup that works on plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def extract_bearer_token(headers: Mapping[str, str]) -> str:
    """
    Pull the raw token out of ``Authorization: Bearer <token>``.
    
    The scheme is case-sensitive and separated from the token by
    exactly one space.
    """
    value = get_header(headers, "Authorization")
    if value is None:
        raise MissingCredentials()
    
    if not value.startswith(BEARER_PREFIX):
        raise MalformedCredentials("Authorization scheme must be 'Bearer'")
    
    token = value[len(BEARER_PREFIX):]
    if not token or token != token.strip() or " " in token:
        raise MalformedCredentials("Bearer token is empty or malformed")
    
    return token


# =============================================================================
# IdentityVerifier
# =============================================================================


class IdentityVerifier:
    """Authenticates requests against the token service and revocation list."""
    
    def __init__(self, tokens: TokenService, revocations: RevocationStore):
        self._tokens = tokens
        self._revocations = revocations
    
    def authenticate(self, headers: Mapping[str, str]) -> Identity:
        """
        Resolve the request's Identity.
        
        Order matters: revocation is checked before the signature, so a
        revoked token is reported as revoked even after it expires.
        
        Raises:
            MissingCredentials, MalformedCredentials, RevokedCredentials,
            InvalidCredentials, ExpiredCredentials
        """
        identity, _ = self.authenticate_with_token(headers)
        return identity

    def authenticate_with_token(self, headers: Mapping[str, str]) -> tuple[Identity, str]:
        """Same as authenticate(), also returning the raw token."""
        token = extract_bearer_token(headers)

        if self._revocations.is_revoked(token):
            raise RevokedCredentials()

        claims = self._tokens.decode(token)
        return Identity(subject=claims.sub, role=claims.role), token


# =============================================================================
# AuthorizationGuard
# =============================================================================


class AuthorizationGuard:
    """Role-based access check for a single route."""
    
    def authorize(self, identity: Identity, allowed_roles: Iterable[Role]) -> None:
        """
        Allow the identity if it holds one of ``allowed_roles``.
        
        An empty set means any authenticated identity is allowed.
        
        Raises:
            InsufficientRole: the identity's role is not allowed
        """
        allowed = frozenset(allowed_roles)
        if not allowed:
            return
        if not identity.has_any(allowed):
            raise InsufficientRole(
                f"Requires one of: {sorted(role.value for role in allowed)}"
            )
