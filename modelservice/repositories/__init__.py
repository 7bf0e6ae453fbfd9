"""
Persistence backends.

Each backend implements IPersistenceBackend for a single entity type.
"""

from modelservice.repositories.memory import MemoryBackend, MemoryDocument
from modelservice.repositories.sql import SQLAlchemyBackend

__all__ = [
    "MemoryBackend",
    "MemoryDocument",
    "SQLAlchemyBackend",
]
