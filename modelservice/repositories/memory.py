"""
Memory Backend - In-Memory Persistence

Stores pydantic documents in a dict keyed by id. Used by tests and by
entities that do not need durable storage.

Documents are declared as MemoryDocument subclasses; a field is queryable
when declared with ``Field(json_schema_extra={"queryable": True})``:

    class Note(MemoryDocument):
        title: str = Field(json_schema_extra={"queryable": True})
        body: Optional[str] = None
"""

import logging
import types
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from modelservice.core.errors import ServiceError, UncaughtError, ValidationError
from modelservice.schemas import (
    FilterExpression,
    FilterOperator,
    Page,
    PaginationEnvelope,
    PropertyKind,
    PropertySchema,
    RemoveOutcome,
    SortDirection,
    UpdateOutcome,
)
from modelservice.services.interfaces import IPersistenceBackend

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = frozenset({"id", "created_at", "updated_at"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryDocument(BaseModel):
    """Base class for documents stored by MemoryBackend."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: int = Field(gt=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


def annotation_kind(annotation: Any) -> PropertyKind:
    """Map a field annotation to a PropertyKind, unwrapping Optional."""
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return annotation_kind(args[0])
        return PropertyKind.OBJECT

    if not isinstance(annotation, type):
        return PropertyKind.OBJECT

    # bool before int: bool is an int subclass
    if issubclass(annotation, bool):
        return PropertyKind.BOOLEAN
    if issubclass(annotation, (int, float, Decimal)):
        return PropertyKind.NUMBER
    if issubclass(annotation, str) or issubclass(annotation, Enum):
        return PropertyKind.STRING
    if issubclass(annotation, (datetime, date, time)):
        return PropertyKind.DATE
    return PropertyKind.OBJECT


class MemoryBackend(IPersistenceBackend):
    """
    In-memory IPersistenceBackend for one MemoryDocument subclass.

    Features:
    - Sequential integer ids starting at 1
    - Pydantic validation on save and on validated updates
    - All filter operators, multi-field sort and offset pagination
    - Returned documents are copies; mutating them never changes storage
    """

    def __init__(self, document_class: Type[MemoryDocument]):
        if not (isinstance(document_class, type) and issubclass(document_class, MemoryDocument)):
            raise TypeError("document_class must extend MemoryDocument")

        self.document_class = document_class
        self._documents: Dict[int, MemoryDocument] = {}
        self._next_id = 1
        self._properties = self._build_properties()

    def _build_properties(self) -> Dict[str, PropertySchema]:
        properties = {}
        for name, field_info in self.document_class.model_fields.items():
            extra = field_info.json_schema_extra
            queryable = bool(extra.get("queryable", False)) if isinstance(extra, dict) else False
            properties[name] = PropertySchema(
                name=name,
                kind=annotation_kind(field_info.annotation),
                queryable=queryable,
            )
        return properties

    # Schema
    def get_properties(self) -> Dict[str, PropertySchema]:
        return dict(self._properties)

    # Queries
    async def find(self, filters: List[FilterExpression]) -> List[MemoryDocument]:
        return [document.model_copy() for document in self._match(filters)]

    async def find_one(self, filters: List[FilterExpression]) -> Optional[MemoryDocument]:
        matches = self._match(filters)
        return matches[0].model_copy() if matches else None

    async def paginate(
        self,
        filters: List[FilterExpression],
        pagination: PaginationEnvelope
    ) -> Page:
        matches = self._sort(self._match(filters), pagination.sort)
        window = matches[pagination.offset:pagination.offset + pagination.limit]
        return Page(
            docs=[document.model_copy() for document in window],
            total=len(matches),
            page=pagination.page,
            limit=pagination.limit,
        )

    # Writes
    async def save(self, data: Dict[str, Any]) -> MemoryDocument:
        payload = {key: value for key, value in data.items() if key not in READ_ONLY_FIELDS}
        now = _utcnow()
        document = self.document_class.model_validate({
            **payload,
            "id": self._next_id,
            "created_at": now,
            "updated_at": now,
        })

        self._documents[document.id] = document
        self._next_id += 1
        logger.debug(
            "Document saved",
            extra={"entity": self.document_class.__name__, "document_id": document.id}
        )
        return document.model_copy()

    async def update(
        self,
        filters: List[FilterExpression],
        patch: Dict[str, Any],
        multi: bool = False,
        run_validators: bool = True
    ) -> UpdateOutcome:
        read_only = READ_ONLY_FIELDS.intersection(patch)
        if read_only:
            raise ValueError(f"read only properties cannot be updated: {', '.join(sorted(read_only))}")

        targets = self._match(filters)
        if not multi:
            targets = targets[:1]

        # Validate every target before storing any of them
        now = _utcnow()
        replacements = []
        for document in targets:
            if run_validators:
                replacement = self.document_class.model_validate({
                    **document.model_dump(),
                    **patch,
                    "updated_at": now,
                })
            else:
                replacement = document.model_copy(update={**patch, "updated_at": now})
            replacements.append(replacement)

        for replacement in replacements:
            self._documents[replacement.id] = replacement

        return UpdateOutcome(ok=True, modified=len(replacements))

    async def remove(self, filters: List[FilterExpression]) -> RemoveOutcome:
        targets = self._match(filters)
        for document in targets:
            del self._documents[document.id]
        return RemoveOutcome(ok=True, removed=len(targets))

    # Errors
    def clean_error(self, err: Exception) -> ServiceError:
        """
        Normalize a backend exception.

        - ServiceError: returned unchanged
        - pydantic ValidationError: one detail per failing field
        - ValueError / TypeError: ValidationError
        - anything else: UncaughtError
        """
        if isinstance(err, ServiceError):
            return err

        if isinstance(err, PydanticValidationError):
            details = [
                {
                    "property": ".".join(str(part) for part in error["loc"]),
                    "type": error["type"],
                    "message": error["msg"],
                    "value": error.get("input"),
                }
                for error in err.errors()
            ]
            return ValidationError(
                f"{self.document_class.__name__} validation failed",
                details=details,
            )

        if isinstance(err, (ValueError, TypeError)):
            return ValidationError(str(err))

        logger.error(
            f"Unexpected memory backend error: {err!r}",
            extra={"entity": self.document_class.__name__}
        )
        return UncaughtError()

    # Matching helpers
    def _match(self, filters: List[FilterExpression]) -> List[MemoryDocument]:
        return [
            document
            for _, document in sorted(self._documents.items())
            if all(self._matches(document, expression) for expression in filters)
        ]

    @staticmethod
    def _matches(document: MemoryDocument, expression: FilterExpression) -> bool:
        field_value = getattr(document, expression.field, None)
        op = expression.operator
        value = expression.value

        if op == FilterOperator.EQUALS:
            return field_value == value
        elif op == FilterOperator.LIKE:
            return isinstance(field_value, str) and str(value) in field_value
        elif op == FilterOperator.ILIKE:
            return isinstance(field_value, str) and str(value).lower() in field_value.lower()
        elif op == FilterOperator.IN:
            return field_value in value
        elif op == FilterOperator.NIN:
            return field_value not in value

        if field_value is None:
            return False
        try:
            if op == FilterOperator.GT:
                return field_value > value
            elif op == FilterOperator.GTE:
                return field_value >= value
            elif op == FilterOperator.LT:
                return field_value < value
            elif op == FilterOperator.LTE:
                return field_value <= value
        except TypeError:
            return False
        return False

    @staticmethod
    def _sort(documents: List[MemoryDocument], sort) -> List[MemoryDocument]:
        """Stable multi-field sort; None values sort last in either direction."""
        ordered = list(documents)
        for field_name, direction in reversed(sort):
            descending = direction == SortDirection.DESC
            present = [doc for doc in ordered if getattr(doc, field_name, None) is not None]
            missing = [doc for doc in ordered if getattr(doc, field_name, None) is None]
            present.sort(key=lambda doc: getattr(doc, field_name), reverse=descending)
            ordered = present + missing
        return ordered
