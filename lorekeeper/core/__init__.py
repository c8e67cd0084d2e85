"""
Core module - data models, error taxonomy and shared helpers.
"""

from lorekeeper.core.models import (
    Character,
    CharacterCreate,
    CharacterUpdate,
    RevokeRequest,
    Role,
    User,
    UserCredentials,
    UserResponse,
)
from lorekeeper.core.validation import validate

__all__ = [
    "Character",
    "CharacterCreate",
    "CharacterUpdate",
    "RevokeRequest",
    "Role",
    "User",
    "UserCredentials",
    "UserResponse",
    "validate",
]
