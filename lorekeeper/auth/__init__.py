"""
Authentication and authorization.

Design principles:
1. Bearer JWTs, checked against a revocation list before the signature
2. Role-based access per route (ADMIN, USER)
3. Every failure is a typed exception, never a silent None
"""

from lorekeeper.auth.context import Identity
from lorekeeper.auth.jwt import (
    TokenClaims,
    TokenService,
    hash_password,
    verify_password,
)
from lorekeeper.auth.policies import (
    AuthorizationGuard,
    IdentityVerifier,
    extract_bearer_token,
)

__all__ = [
    "Identity",
    "TokenClaims",
    "TokenService",
    "hash_password",
    "verify_password",
    "AuthorizationGuard",
    "IdentityVerifier",
    "extract_bearer_token",
]
