"""
Service interfaces (Abstract Base Classes).

These define the contracts between ModelService, its persistence backends
and its user context.
"""

from modelservice.services.interfaces.context import IContextCapable
from modelservice.services.interfaces.persistence import IPersistenceBackend
from modelservice.services.interfaces.queryable import IQueryable

__all__ = [
    "IContextCapable",
    "IPersistenceBackend",
    "IQueryable",
]
