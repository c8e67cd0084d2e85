"""
Storage abstractions and their in-memory implementations.
"""

from lorekeeper.storage.base import (
    ResourceStore,
    RevocationStore,
    StorageProvider,
    UserStore,
)
from lorekeeper.storage.local import (
    InMemoryResourceStore,
    InMemoryRevocationStore,
    InMemoryUserStore,
    create_local_storage,
)

__all__ = [
    "ResourceStore",
    "RevocationStore",
    "StorageProvider",
    "UserStore",
    "InMemoryResourceStore",
    "InMemoryRevocationStore",
    "InMemoryUserStore",
    "create_local_storage",
]
