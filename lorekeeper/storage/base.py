"""
Storage abstraction layer.

All shared mutable state goes through these interfaces. Callers never
reach into the underlying containers, and every test can build fresh
instances instead of sharing process-wide globals.

None of these operations perform I/O, so a mutation never suspends
half-way and is atomic with respect to other requests on the event loop.
Implementations still guard their state with a lock so they stay safe
when called from worker threads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from lorekeeper.core.models import Role, User

E = TypeVar("E", bound=BaseModel)


# =============================================================================
# Storage Interfaces
# =============================================================================


class RevocationStore(ABC):
    """
    Tokens that must no longer authenticate.
    
    Membership is monotonic: once revoked, a token stays revoked for the
    lifetime of the store.
    """
    
    @abstractmethod
    def revoke(self, token: str) -> None:
        """Mark a token as revoked. Revoking twice is a no-op."""
        pass
    
    @abstractmethod
    def is_revoked(self, token: str) -> bool:
        """Check whether a token has been revoked."""
        pass


class ResourceStore(ABC, Generic[E]):
    """
    Keyed collection of entities with store-assigned integer ids.
    """
    
    @abstractmethod
    def list(self) -> list[E]:
        """All entities in insertion order, as a snapshot."""
        pass
    
    @abstractmethod
    def get(self, id: int) -> E:
        """Get an entity by id. Raises ResourceNotFound."""
        pass
    
    @abstractmethod
    def create(self, payload: BaseModel | dict[str, Any]) -> E:
        """Store a new entity under a freshly assigned id."""
        pass
    
    @abstractmethod
    def update(self, id: int, payload: BaseModel | dict[str, Any]) -> E:
        """Replace an entity's fields, keeping its id. Raises ResourceNotFound."""
        pass
    
    @abstractmethod
    def delete(self, id: int) -> None:
        """Remove an entity. Raises ResourceNotFound."""
        pass


class UserStore(ABC):
    """Registered accounts, keyed by email."""
    
    @abstractmethod
    def create(self, email: str, password: str, role: Role = Role.USER) -> User:
        """Register a user. Raises Conflict if the email is taken."""
        pass
    
    @abstractmethod
    def find_by_email(self, email: str) -> User | None:
        """Get a user by email."""
        pass
    
    @abstractmethod
    def authenticate(self, email: str, password: str) -> User | None:
        """Return the user if the password matches."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for all stores.
    
    Built once at app startup; handlers receive the individual stores
    they need.
    """
    
    model_config = {"arbitrary_types_allowed": True}
    
    characters: ResourceStore
    users: UserStore
    revocations: RevocationStore
