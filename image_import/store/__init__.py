"""
The store module provides the backing store for managed images. Controllers
read a detached copy of an object at the start of a reconciliation pass and
write it back with a single `persist` call when the pass ends.

- Uses NamedResource as the key for all objects.
- Stores ManagedImage dataclass instances from manifest.py.

This abstract interface allows for various implementations (in-memory, files, etc.).
"""

from .store import Store, StoreEvent
from .in_memory import InMemoryStore
from .file import YamlFileStore

__all__ = [
    "Store",
    "StoreEvent",
    "InMemoryStore",
    "YamlFileStore",
]
