"""
Persistence Backend Interface (IPersistenceBackend)

Abstract base class defining the contract every document store must meet
for ModelService to drive it.

Implementation guide:
- All data methods must be async
- get_properties and clean_error are synchronous
- Filters are a list of FilterExpression combined with AND
- Backends never raise ServiceError from data methods; ModelService calls
  clean_error to normalize whatever they raise
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from modelservice.core.errors import ServiceError
from modelservice.schemas import (
    FilterExpression,
    Page,
    PaginationEnvelope,
    PropertySchema,
    RemoveOutcome,
    UpdateOutcome,
)


class IPersistenceBackend(ABC):
    """
    Abstract interface for a single entity's document store.

    A backend owns one entity type (a pydantic document class, an ORM model).
    Documents it returns must expose a positive integer ``id`` attribute.
    """

    @abstractmethod
    async def find(self, filters: List[FilterExpression]) -> List[Any]:
        """
        Return every document matching all filters.

        Args:
            filters: Expressions combined with AND; empty list matches all

        Returns:
            Matching documents in id order
        """
        pass

    @abstractmethod
    async def find_one(self, filters: List[FilterExpression]) -> Optional[Any]:
        """Return the first matching document, or None."""
        pass

    @abstractmethod
    async def paginate(
        self,
        filters: List[FilterExpression],
        pagination: PaginationEnvelope
    ) -> Page:
        """
        Return one page of matching documents.

        Args:
            filters: Expressions combined with AND
            pagination: Resolved page, limit and sort order

        Returns:
            Page with the documents and the total match count
        """
        pass

    @abstractmethod
    async def save(self, data: Dict[str, Any]) -> Any:
        """
        Create and persist a new document.

        Raises:
            Backend-specific exception on validation or constraint failure
        """
        pass

    @abstractmethod
    async def update(
        self,
        filters: List[FilterExpression],
        patch: Dict[str, Any],
        multi: bool = False,
        run_validators: bool = True
    ) -> UpdateOutcome:
        """
        Apply a partial update to matching documents.

        Args:
            filters: Expressions selecting the documents
            patch: Field values to set
            multi: Update every match instead of only the first
            run_validators: Run the model's field validation on the patch

        Returns:
            UpdateOutcome with the acknowledgement flag and modified count
        """
        pass

    @abstractmethod
    async def remove(self, filters: List[FilterExpression]) -> RemoveOutcome:
        """Delete every matching document."""
        pass

    @abstractmethod
    def get_properties(self) -> Dict[str, PropertySchema]:
        """Return the entity's property schemas keyed by name."""
        pass

    @abstractmethod
    def clean_error(self, err: Exception) -> ServiceError:
        """Normalize a backend exception into the domain taxonomy."""
        pass
