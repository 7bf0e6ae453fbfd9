"""
Queryable Service Interface (IQueryable)

The operation surface exposed to controllers and other callers. Parameters
are loosely typed, query-string style mappings; results are documents,
pages and result envelopes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from modelservice.schemas import BulkResult, FilterExpression, Page, UpdateResult


class IQueryable(ABC):
    """Abstract interface for a model service."""

    @abstractmethod
    async def get_by_id(self, document_id: Any) -> Optional[Any]:
        """
        Fetch one document by id.

        Raises:
            ValidationError: If the id is not a positive integer
        """
        pass

    @abstractmethod
    async def get(self, filters: List[FilterExpression]) -> List[Any]:
        pass

    @abstractmethod
    async def get_one(self, filters: List[FilterExpression]) -> Optional[Any]:
        pass

    @abstractmethod
    async def create_one(self, params: Dict[str, Any]) -> Any:
        """
        Persist a new document and fire ``created``.

        Raises:
            ServiceError: Normalized backend failure
        """
        pass

    @abstractmethod
    async def update_by_id(self, document_id: Any, patch: Dict[str, Any]) -> UpdateResult:
        """Update one document; failures are reported in the envelope."""
        pass

    @abstractmethod
    async def delete_by_id(self, document_id: Any) -> Any:
        """
        Delete one document and return it.

        Raises:
            NotFoundError: If no document has this id
        """
        pass

    @abstractmethod
    async def get_paginated(self, params: Mapping[str, Any]) -> Page:
        """Translate query parameters and return one page."""
        pass

    @abstractmethod
    async def update(self, params: Mapping[str, Any], patch: Dict[str, Any]) -> BulkResult:
        """Update every document matching ``params``."""
        pass

    @abstractmethod
    async def delete(self, params: Mapping[str, Any]) -> List[Any]:
        """Delete every document matching ``params``; return confirmed deletions."""
        pass
