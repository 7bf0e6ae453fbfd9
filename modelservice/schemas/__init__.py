"""Query value objects and result envelopes."""

from modelservice.schemas.query import (
    FilterExpression,
    FilterOperator,
    PaginationEnvelope,
    PropertyKind,
    PropertySchema,
    SortDirection,
)
from modelservice.schemas.results import (
    BulkCounts,
    BulkResult,
    Page,
    RemoveOutcome,
    UpdateOutcome,
    UpdateResult,
)

__all__ = [
    "FilterExpression",
    "FilterOperator",
    "PaginationEnvelope",
    "PropertyKind",
    "PropertySchema",
    "SortDirection",
    "BulkCounts",
    "BulkResult",
    "Page",
    "RemoveOutcome",
    "UpdateOutcome",
    "UpdateResult",
]
