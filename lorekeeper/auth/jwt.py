# =============================================================================
# JWT Tokens and Password Hashing
# =============================================================================
#
# This module provides:
#   - Access token creation
#   - Token signature/expiry validation
#   - Password hashing
#
# Revocation is not checked here; see IdentityVerifier in policies.py.
#
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import hashlib
import logging
import secrets

import jwt

from lorekeeper.config import Settings
from lorekeeper.core.errors import (
    ExpiredCredentials,
    InvalidCredentials,
    MalformedCredentials,
)
from lorekeeper.core.models import Role
from lorekeeper.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Password Hashing
# =============================================================================

def hash_password(password: str, iterations: int = 100_000) -> str:
    """
    Hash a password using PBKDF2-SHA256.
    
    Returns: salt:hash format string
    """
    salt = secrets.token_hex(32)
    hash_bytes = hashlib.pbkdf2_hmac(
        'sha256',
        password.encode('utf-8'),
        salt.encode('utf-8'),
        iterations=iterations,
    )
    return f"{iterations}:{salt}:{hash_bytes.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        iterations, salt, stored_hash = password_hash.split(':')
        hash_bytes = hashlib.pbkdf2_hmac(
            'sha256',
            password.encode('utf-8'),
            salt.encode('utf-8'),
            iterations=int(iterations),
        )
    except (ValueError, AttributeError):
        return False
    return secrets.compare_digest(hash_bytes.hex(), stored_hash)


# =============================================================================
# Token Claims
# =============================================================================

@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of an access token."""
    
    sub: str
    role: Role


# =============================================================================
# Token Service
# =============================================================================

class TokenService:
    """Issues and verifies HMAC-signed access tokens."""
    
    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._lifetime = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    
    @property
    def expires_in(self) -> int:
        """Seconds until a freshly issued token expires."""
        return int(self._lifetime.total_seconds())
    
    def issue(
        self,
        subject: str,
        role: Role,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a signed access token for a subject."""
        now = utc_now()
        payload = {
            "sub": subject,
            "role": role.value,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self._lifetime),
            "jti": generate_id("tok"),
            "type": "access",
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)
    
    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry, then extract the claims.
        
        Raises:
            ExpiredCredentials: Token has expired
            InvalidCredentials: Bad signature or not a JWT at all
            MalformedCredentials: Verified, but missing sub/role or unknown role
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredCredentials() from e
        except jwt.InvalidTokenError as e:
            raise InvalidCredentials(f"Invalid token: {e}") from e
        
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedCredentials("Token is missing the 'sub' claim")
        
        if payload.get("type", "access") != "access":
            raise MalformedCredentials("Not an access token")
        
        try:
            role = Role(payload.get("role"))
        except ValueError as e:
            raise MalformedCredentials("Token carries an unknown role") from e
        
        return TokenClaims(
            sub=subject,
            role=role,
        )
