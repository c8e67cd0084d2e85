"""
Identity - who is making the request.

Produced only by IdentityVerifier from a verified token, and
discarded when the request is done.
"""

from __future__ import annotations

from dataclasses import dataclass

from lorekeeper.core.models import Role


@dataclass(frozen=True)
class Identity:
    """
    The authenticated caller of a request.
    
    Usage in handlers:
        if call.identity.is_admin:
            ...
    """
    
    subject: str
    role: Role
    
    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
    
    def has_any(self, roles: frozenset[Role] | set[Role]) -> bool:
        """Does this identity hold one of the given roles?"""
        return self.role in roles
