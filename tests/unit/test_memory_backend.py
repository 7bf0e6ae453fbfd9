"""
Unit tests for MemoryBackend.

Tests follow AAA (Arrange, Act, Assert) pattern.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Union

import pytest
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

from modelservice.core.errors import NotFoundError, UncaughtError, ValidationError
from modelservice.repositories import MemoryBackend, MemoryDocument
from modelservice.repositories.memory import annotation_kind
from modelservice.schemas import (
    FilterExpression,
    FilterOperator,
    PaginationEnvelope,
    PropertyKind,
    SortDirection,
)


class Colour(str, Enum):
    RED = "red"
    BLUE = "blue"


class TestAnnotationKind:
    """Tests for annotation to PropertyKind mapping."""

    @pytest.mark.parametrize("annotation, expected", [
        (str, PropertyKind.STRING),
        (Colour, PropertyKind.STRING),
        (int, PropertyKind.NUMBER),
        (float, PropertyKind.NUMBER),
        (bool, PropertyKind.BOOLEAN),
        (datetime, PropertyKind.DATE),
        (Optional[int], PropertyKind.NUMBER),
        (Optional[str], PropertyKind.STRING),
        (Union[int, str], PropertyKind.OBJECT),
        (Dict[str, int], PropertyKind.OBJECT),
        (list, PropertyKind.OBJECT),
    ])
    def test_mapping(self, annotation, expected):
        assert annotation_kind(annotation) == expected


class TestProperties:
    """Tests for get_properties."""

    def test_kinds_and_queryable_flags(self, memory_backend):
        properties = memory_backend.get_properties()

        assert properties["title"].kind == PropertyKind.STRING
        assert properties["title"].queryable is True
        assert properties["description"].queryable is False
        assert properties["views"].kind == PropertyKind.NUMBER
        assert properties["published"].kind == PropertyKind.BOOLEAN
        assert properties["taken_on"].kind == PropertyKind.DATE
        assert properties["tags"].kind == PropertyKind.OBJECT
        assert properties["id"].kind == PropertyKind.NUMBER
        assert properties["created_at"].kind == PropertyKind.DATE

    def test_rejects_non_document_class(self):
        with pytest.raises(TypeError):
            MemoryBackend(dict)


class TestSave:
    """Tests for save."""

    @pytest.mark.anyio
    async def test_sequential_ids_and_timestamps(self, memory_backend):
        first = await memory_backend.save({"title": "A"})
        second = await memory_backend.save({"title": "B"})

        assert (first.id, second.id) == (1, 2)
        assert first.created_at is not None
        assert first.updated_at == first.created_at

    @pytest.mark.anyio
    async def test_client_supplied_id_is_ignored(self, memory_backend):
        document = await memory_backend.save({"title": "A", "id": 50})

        assert document.id == 1

    @pytest.mark.anyio
    async def test_invalid_data_raises_pydantic_error(self, memory_backend):
        with pytest.raises(PydanticValidationError):
            await memory_backend.save({"views": 3})

        assert await memory_backend.find([]) == []

    @pytest.mark.anyio
    async def test_returned_document_is_a_copy(self, memory_backend):
        document = await memory_backend.save({"title": "A"})

        document.title = "Changed"

        assert (await memory_backend.find_one([FilterExpression.id_equals(1)])).title == "A"


class TestFind:
    """Tests for find / find_one operators."""

    @pytest.mark.anyio
    @pytest.mark.parametrize("expression, expected_ids", [
        (FilterExpression("title", FilterOperator.EQUALS, "Sea"), [4]),
        (FilterExpression("title", FilterOperator.LIKE, "Sun"), [1, 2]),
        (FilterExpression("title", FilterOperator.LIKE, "sun"), []),
        (FilterExpression("author", FilterOperator.ILIKE, "AL"), [1, 3]),
        (FilterExpression("author", FilterOperator.IN, ["bob", "Carol"]), [2, 4]),
        (FilterExpression("author", FilterOperator.NIN, ["Alice"]), [2, 4, 5]),
        (FilterExpression("views", FilterOperator.GT, 10), [2, 4]),
        (FilterExpression("views", FilterOperator.GTE, 10), [1, 2, 4]),
        (FilterExpression("views", FilterOperator.LT, 5), [5]),
        (FilterExpression("views", FilterOperator.LTE, 5), [3, 5]),
        (FilterExpression("rating", FilterOperator.GTE, 4.5), [1, 5]),
    ])
    async def test_operators(self, seeded_backend, expression, expected_ids):
        documents = await seeded_backend.find([expression])

        assert [doc.id for doc in documents] == expected_ids

    @pytest.mark.anyio
    async def test_filters_are_combined_with_and(self, seeded_backend):
        documents = await seeded_backend.find([
            FilterExpression("author", FilterOperator.EQUALS, "Alice"),
            FilterExpression("views", FilterOperator.GT, 5),
        ])

        assert [doc.id for doc in documents] == [1]

    @pytest.mark.anyio
    async def test_comparison_against_none_is_false(self, seeded_backend):
        documents = await seeded_backend.find([FilterExpression("author", FilterOperator.GT, "A")])

        assert 5 not in [doc.id for doc in documents]

    @pytest.mark.anyio
    async def test_find_one_missing(self, seeded_backend):
        assert await seeded_backend.find_one([FilterExpression.id_equals(42)]) is None


class TestPaginate:
    """Tests for paginate."""

    @pytest.mark.anyio
    async def test_multi_field_sort(self, seeded_backend):
        """
        Test sort by author asc then views desc.

        Arrange: Seeded pictures, Alice twice, one author missing
        Act: Paginate with two sort fields
        Assert: Alice documents by views desc, missing author last
        """
        pagination = PaginationEnvelope(
            page=1,
            limit=10,
            sort=(("author", SortDirection.ASC), ("views", SortDirection.DESC)),
        )

        page = await seeded_backend.paginate([], pagination)

        assert [doc.id for doc in page.docs] == [1, 3, 4, 2, 5]

    @pytest.mark.anyio
    async def test_window_and_totals(self, seeded_backend):
        page = await seeded_backend.paginate([], PaginationEnvelope(page=3, limit=2))

        assert [doc.id for doc in page.docs] == [5]
        assert page.total == 5
        assert page.pages == 3
        assert page.to_metadata() == {"total": 5, "page": 3, "limit": 2, "pages": 3}

    @pytest.mark.anyio
    async def test_page_past_the_end_is_empty(self, seeded_backend):
        page = await seeded_backend.paginate([], PaginationEnvelope(page=9, limit=2))

        assert page.docs == []
        assert page.total == 5


class TestUpdate:
    """Tests for update."""

    @pytest.mark.anyio
    async def test_single_update_touches_first_match_only(self, seeded_backend):
        outcome = await seeded_backend.update(
            [FilterExpression("author", FilterOperator.EQUALS, "Alice")],
            {"views": 100},
        )

        assert outcome.ok is True
        assert outcome.modified == 1
        views = [doc.views for doc in await seeded_backend.find([])]
        assert views == [100, 25, 5, 40, 0]

    @pytest.mark.anyio
    async def test_multi_update(self, seeded_backend):
        outcome = await seeded_backend.update(
            [FilterExpression("author", FilterOperator.EQUALS, "Alice")],
            {"views": 100},
            multi=True,
        )

        assert outcome.modified == 2

    @pytest.mark.anyio
    async def test_validated_update_rejects_bad_values(self, seeded_backend):
        with pytest.raises(PydanticValidationError):
            await seeded_backend.update([FilterExpression.id_equals(1)], {"views": -1})

        assert (await seeded_backend.find_one([FilterExpression.id_equals(1)])).views == 10

    @pytest.mark.anyio
    async def test_unvalidated_update_skips_validation(self, seeded_backend):
        outcome = await seeded_backend.update(
            [FilterExpression.id_equals(1)],
            {"views": -1},
            run_validators=False,
        )

        assert outcome.modified == 1

    @pytest.mark.anyio
    async def test_read_only_fields_cannot_be_patched(self, seeded_backend):
        with pytest.raises(ValueError):
            await seeded_backend.update([FilterExpression.id_equals(1)], {"id": 9})

    @pytest.mark.anyio
    async def test_updated_at_moves(self, seeded_backend):
        before = await seeded_backend.find_one([FilterExpression.id_equals(1)])

        await seeded_backend.update([FilterExpression.id_equals(1)], {"title": "New"})

        after = await seeded_backend.find_one([FilterExpression.id_equals(1)])
        assert after.updated_at >= before.updated_at
        assert after.created_at == before.created_at

    @pytest.mark.anyio
    async def test_no_match(self, seeded_backend):
        outcome = await seeded_backend.update([FilterExpression.id_equals(42)], {"title": "x"})

        assert outcome.modified == 0


class TestRemove:
    """Tests for remove."""

    @pytest.mark.anyio
    async def test_remove_matches(self, seeded_backend):
        outcome = await seeded_backend.remove([FilterExpression.id_in([1, 2, 42])])

        assert outcome.ok is True
        assert outcome.removed == 2
        assert [doc.id for doc in await seeded_backend.find([])] == [3, 4, 5]

    @pytest.mark.anyio
    async def test_remove_nothing(self, seeded_backend):
        outcome = await seeded_backend.remove([FilterExpression.id_in([])])

        assert outcome.removed == 0


class TestCleanError:
    """Tests for clean_error."""

    def test_service_error_passes_through(self, memory_backend):
        error = NotFoundError()

        assert memory_backend.clean_error(error) is error

    @pytest.mark.anyio
    async def test_pydantic_error_becomes_validation_error(self, memory_backend):
        """
        Test pydantic failures keep one detail per field.

        Arrange: Save missing title with negative views
        Act: clean_error on the raised exception
        Assert: ValidationError with title and views details
        """
        # Arrange
        with pytest.raises(PydanticValidationError) as exc_info:
            await memory_backend.save({"views": -1})

        # Act
        error = memory_backend.clean_error(exc_info.value)

        # Assert
        assert isinstance(error, ValidationError)
        assert {detail["property"] for detail in error.details} == {"title", "views"}
        assert all(set(detail) == {"property", "type", "message", "value"} for detail in error.details)

    def test_value_error_becomes_validation_error(self, memory_backend):
        error = memory_backend.clean_error(ValueError("read only"))

        assert isinstance(error, ValidationError)
        assert error.message == "read only"

    def test_other_errors_are_uncaught(self, memory_backend):
        assert isinstance(memory_backend.clean_error(RuntimeError("x")), UncaughtError)


class TestCustomDocument:
    """Tests with a document type declared inline."""

    @pytest.mark.anyio
    async def test_enum_field_filters_as_string(self):
        class Swatch(MemoryDocument):
            colour: Colour = Field(json_schema_extra={"queryable": True})

        backend = MemoryBackend(Swatch)
        await backend.save({"colour": "red"})
        await backend.save({"colour": "blue"})

        documents = await backend.find([FilterExpression("colour", FilterOperator.EQUALS, "blue")])

        assert backend.get_properties()["colour"].kind == PropertyKind.STRING
        assert [doc.id for doc in documents] == [2]
