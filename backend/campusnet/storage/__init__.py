"""Persistence and catalog collaborators."""

from .base import RequestStore
from .catalog import DeviceCatalog
from .memory import InMemoryRequestStore
from .redis_store import RedisRequestStore

__all__ = [
    "RequestStore",
    "DeviceCatalog",
    "InMemoryRequestStore",
    "RedisRequestStore",
]
