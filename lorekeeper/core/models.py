"""
Core data models.

Stored entities (Character, User) and the payload shapes accepted
by the HTTP surface.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    """Platform-wide role carried in access tokens."""
    
    ADMIN = "admin"
    USER = "user"


# =============================================================================
# Characters
# =============================================================================


class CharacterCreate(BaseModel):
    """Payload for creating a character. Any client-sent id is ignored."""
    
    model_config = ConfigDict(populate_by_name=True)
    
    name: str = Field(min_length=6)
    last_name: str = Field(min_length=6, alias="lastName")


class CharacterUpdate(CharacterCreate):
    """Full replacement of a character's fields."""


class Character(BaseModel):
    """A stored character. ``id`` is always assigned by the store."""
    
    model_config = ConfigDict(populate_by_name=True)
    
    id: int = Field(ge=0)
    name: str
    last_name: str = Field(alias="lastName")
    
    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


# =============================================================================
# Users
# =============================================================================


class UserCredentials(BaseModel):
    """Email/password pair used to register and log in."""
    
    email: EmailStr
    password: str = Field(min_length=6)


class User(BaseModel):
    """User stored in memory."""
    
    id: int
    email: str
    password_hash: str
    role: Role = Role.USER


class UserResponse(BaseModel):
    """User data returned to client (no sensitive fields)."""
    
    id: int
    email: str
    role: Role


class RevokeRequest(BaseModel):
    """Administrative revocation of a specific token."""
    
    token: str = Field(min_length=1)
