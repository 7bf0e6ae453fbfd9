"""
Query value objects.

Property schemas describe what a backend stores; filter expressions and
pagination envelopes describe what a request asks for. All of them are
immutable and discarded once the query has run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Tuple


class PropertyKind(str, Enum):
    """Closed set of property kinds a backend can report."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    OBJECT = "object"


class FilterOperator(str, Enum):
    """Operators accepted in the ``field__operator`` parameter suffix."""
    EQUALS = "equals"
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    NIN = "nin"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"


class SortDirection(str, Enum):
    """Sort direction for ordering"""
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class PropertySchema:
    """One stored property and whether requests may filter/sort on it."""
    name: str
    kind: PropertyKind
    queryable: bool = False


@dataclass(frozen=True)
class FilterExpression:
    """A single ``field operator value`` condition."""
    field: str
    operator: FilterOperator
    value: Any = None

    @classmethod
    def id_equals(cls, document_id: int) -> "FilterExpression":
        return cls("id", FilterOperator.EQUALS, document_id)

    @classmethod
    def id_in(cls, document_ids: List[int]) -> "FilterExpression":
        return cls("id", FilterOperator.IN, list(document_ids))


@dataclass(frozen=True)
class PaginationEnvelope:
    """Resolved page, page size and sort order for a listing query."""
    page: int = 1
    limit: int = 15
    sort: Tuple[Tuple[str, SortDirection], ...] = field(default_factory=tuple)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
