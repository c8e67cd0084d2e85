"""
In-memory storage implementations.

Nothing here survives a restart.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Generic

from pydantic import BaseModel

from lorekeeper.auth.jwt import hash_password, verify_password
from lorekeeper.core.errors import Conflict, ResourceNotFound
from lorekeeper.core.models import Character, Role, User
from lorekeeper.storage.base import (
    E,
    ResourceStore,
    RevocationStore,
    StorageProvider,
    UserStore,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Revoked Tokens
# =============================================================================


class InMemoryRevocationStore(RevocationStore):
    """Revoked tokens held in a set."""
    
    def __init__(self):
        self._tokens: set[str] = set()
        self._lock = threading.Lock()
    
    def revoke(self, token: str) -> None:
        with self._lock:
            self._tokens.add(token)
    
    def is_revoked(self, token: str) -> bool:
        return token in self._tokens
    
    def __len__(self) -> int:
        return len(self._tokens)


# =============================================================================
# Generic Resource Store
# =============================================================================


class InMemoryResourceStore(ResourceStore[E], Generic[E]):
    """
    Entities held in an insertion-ordered dict.
    
    Ids come from a monotonic counter owned by the store, so two creates
    can never collide and ids are never reused after a delete.
    """
    
    def __init__(self, model: type[E], entity_name: str | None = None):
        self._model = model
        self._entity_name = entity_name or model.__name__
        self._items: dict[int, E] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
    
    def _not_found(self) -> ResourceNotFound:
        return ResourceNotFound(f"{self._entity_name} not found")
    
    @staticmethod
    def _fields(payload: BaseModel | dict[str, Any]) -> dict[str, Any]:
        data = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
        data.pop("id", None)
        return data
    
    def list(self) -> list[E]:
        with self._lock:
            return list(self._items.values())
    
    def get(self, id: int) -> E:
        entity = self._items.get(id)
        if entity is None:
            raise self._not_found()
        return entity
    
    def create(self, payload: BaseModel | dict[str, Any]) -> E:
        fields = self._fields(payload)
        with self._lock:
            entity = self._model(id=next(self._ids), **fields)
            self._items[entity.id] = entity
        logger.debug("Created %s %s", self._entity_name, entity.id)
        return entity
    
    def update(self, id: int, payload: BaseModel | dict[str, Any]) -> E:
        fields = self._fields(payload)
        with self._lock:
            if id not in self._items:
                raise self._not_found()
            entity = self._model(id=id, **fields)
            self._items[id] = entity
        return entity
    
    def delete(self, id: int) -> None:
        with self._lock:
            if id not in self._items:
                raise self._not_found()
            del self._items[id]
    
    def __len__(self) -> int:
        return len(self._items)


# =============================================================================
# Users
# =============================================================================


class InMemoryUserStore(UserStore):
    """Users keyed by lower-cased email."""
    
    def __init__(self, hash_iterations: int = 100_000):
        self._users: dict[str, User] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._hash_iterations = hash_iterations
    
    def create(self, email: str, password: str, role: Role = Role.USER) -> User:
        key = email.lower()
        password_hash = hash_password(password, self._hash_iterations)
        with self._lock:
            if key in self._users:
                raise Conflict("Email already registered")
            user = User(
                id=next(self._ids),
                email=key,
                password_hash=password_hash,
                role=role,
            )
            self._users[key] = user
        return user
    
    def find_by_email(self, email: str) -> User | None:
        return self._users.get(email.lower())
    
    def authenticate(self, email: str, password: str) -> User | None:
        user = self.find_by_email(email)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user


# =============================================================================
# Factory
# =============================================================================


def create_local_storage(hash_iterations: int = 100_000) -> StorageProvider:
    """Create a storage provider with fresh, empty in-memory stores."""
    return StorageProvider(
        characters=InMemoryResourceStore(Character, entity_name="Character"),
        users=InMemoryUserStore(hash_iterations=hash_iterations),
        revocations=InMemoryRevocationStore(),
    )
