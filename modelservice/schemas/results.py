"""
Result envelopes returned by backends and services.

Backends report raw outcomes (Page, UpdateOutcome, RemoveOutcome).
Services wrap them into envelopes that let callers inspect partial
failure without catching exceptions (UpdateResult, BulkResult).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from modelservice.core.errors import ServiceError


@dataclass
class Page:
    """One page of documents plus totals, as returned by ``paginate``."""
    docs: List[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.total == 0:
            return 1
        return (self.total + self.limit - 1) // self.limit

    def to_metadata(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
        }


@dataclass(frozen=True)
class UpdateOutcome:
    """Backend acknowledgement of an update call."""
    ok: bool
    modified: int = 0


@dataclass(frozen=True)
class RemoveOutcome:
    """Backend acknowledgement of a remove call."""
    ok: bool
    removed: int = 0


@dataclass
class UpdateResult:
    """
    Outcome of updating a single document.

    - document is None: nothing matched the id, updated and error are None
    - otherwise exactly one of updated / error is set
    """
    document: Optional[Any] = None
    updated: Optional[Any] = None
    error: Optional[ServiceError] = None


@dataclass(frozen=True)
class BulkCounts:
    documents: int
    updated: int
    errors: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "documents": self.documents,
            "updated": self.updated,
            "errors": self.errors,
        }


@dataclass
class BulkResult:
    """
    Aggregate outcome of a bulk update.

    ``counts`` is computed from the three collections on every access.
    """
    document_ids: List[int] = field(default_factory=list)
    updated_ids: List[int] = field(default_factory=list)
    errors_by_id: Dict[int, ServiceError] = field(default_factory=dict)

    @property
    def counts(self) -> BulkCounts:
        return BulkCounts(
            documents=len(self.document_ids),
            updated=len(self.updated_ids),
            errors=len(self.errors_by_id),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documents": list(self.document_ids),
            "updated": list(self.updated_ids),
            "errors": {
                str(document_id): error.to_dict()
                for document_id, error in self.errors_by_id.items()
            },
            "count": self.counts.to_dict(),
        }
