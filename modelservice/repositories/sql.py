"""
SQLAlchemy Backend - relational persistence for ORM models.

Serves any declarative model that has an integer ``id`` primary key. Each
backend call opens its own AsyncSession from the injected session factory
and commits before returning.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, Numeric, String, Time
from sqlalchemy import delete, func, inspect, select
from sqlalchemy import update as sql_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

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


def column_kind(column_type: Any) -> PropertyKind:
    """Map a SQLAlchemy column type to a PropertyKind."""
    # Boolean first: some dialects implement it on top of Integer
    if isinstance(column_type, Boolean):
        return PropertyKind.BOOLEAN
    if isinstance(column_type, (Integer, Float, Numeric)):
        return PropertyKind.NUMBER
    if isinstance(column_type, String):
        return PropertyKind.STRING
    if isinstance(column_type, (Date, DateTime, Time)):
        return PropertyKind.DATE
    return PropertyKind.OBJECT


class SQLAlchemyBackend(IPersistenceBackend):
    """
    IPersistenceBackend over one SQLAlchemy declarative model.

    Attributes:
        model: Declarative model class
        session_factory: Factory returning AsyncSession instances
    """

    def __init__(self, model: Any, session_factory: async_sessionmaker[AsyncSession]):
        self.model = model
        self.session_factory = session_factory
        self._columns = {attr.key: attr.columns[0] for attr in inspect(model).column_attrs}
        if "id" not in self._columns:
            raise TypeError(f"{model.__name__} has no 'id' column")
        self._properties = {
            name: PropertySchema(
                name=name,
                kind=column_kind(column.type),
                queryable=bool(column.info.get("queryable", False)),
            )
            for name, column in self._columns.items()
        }

    def get_properties(self) -> Dict[str, PropertySchema]:
        return dict(self._properties)

    # ------------------------------------------------------------------
    # Statement helpers
    # ------------------------------------------------------------------

    def _condition(self, expression: FilterExpression):
        column = getattr(self.model, expression.field)
        op = expression.operator
        value = expression.value

        if op == FilterOperator.EQUALS:
            return column == value
        elif op == FilterOperator.LIKE:
            return column.contains(value, autoescape=True)
        elif op == FilterOperator.ILIKE:
            return column.icontains(value, autoescape=True)
        elif op == FilterOperator.IN:
            return column.in_(value)
        elif op == FilterOperator.NIN:
            return column.not_in(value)
        elif op == FilterOperator.GT:
            return column > value
        elif op == FilterOperator.GTE:
            return column >= value
        elif op == FilterOperator.LT:
            return column < value
        elif op == FilterOperator.LTE:
            return column <= value
        raise ValueError(f"unsupported filter operator '{op}'")

    def _conditions(self, filters: List[FilterExpression]) -> list:
        return [self._condition(expression) for expression in filters]

    def _order_by(self, pagination: PaginationEnvelope) -> list:
        clauses = []
        for field_name, direction in pagination.sort:
            column = getattr(self.model, field_name)
            clauses.append(column.desc() if direction == SortDirection.DESC else column.asc())
        # id as tie-breaker keeps pages stable
        clauses.append(self.model.id.asc())
        return clauses

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find(self, filters: List[FilterExpression]) -> List[Any]:
        stmt = select(self.model).where(*self._conditions(filters)).order_by(self.model.id)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def find_one(self, filters: List[FilterExpression]) -> Optional[Any]:
        stmt = (
            select(self.model)
            .where(*self._conditions(filters))
            .order_by(self.model.id)
            .limit(1)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def paginate(
        self,
        filters: List[FilterExpression],
        pagination: PaginationEnvelope
    ) -> Page:
        conditions = self._conditions(filters)
        count_stmt = select(func.count()).select_from(self.model).where(*conditions)
        stmt = (
            select(self.model)
            .where(*conditions)
            .order_by(*self._order_by(pagination))
            .offset(pagination.offset)
            .limit(pagination.limit)
        )

        async with self.session_factory() as session:
            total = await session.scalar(count_stmt)
            result = await session.execute(stmt)
            docs = list(result.scalars().all())

        return Page(docs=docs, total=total or 0, page=pagination.page, limit=pagination.limit)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, data: Dict[str, Any]) -> Any:
        payload = {key: value for key, value in data.items() if key not in READ_ONLY_FIELDS}

        async with self.session_factory() as session:
            document = self.model(**payload)
            session.add(document)
            await session.commit()
            await session.refresh(document)

        logger.debug(
            "Document saved",
            extra={"entity": self.model.__name__, "document_id": document.id}
        )
        return document

    async def update(
        self,
        filters: List[FilterExpression],
        patch: Dict[str, Any],
        multi: bool = False,
        run_validators: bool = True
    ) -> UpdateOutcome:
        for key in patch:
            if key in READ_ONLY_FIELDS:
                raise ValueError(f"read only property '{key}' cannot be updated")
            if key not in self._columns:
                raise ValueError(f"unknown property '{key}'")

        stmt = select(self.model).where(*self._conditions(filters)).order_by(self.model.id)
        if not multi:
            stmt = stmt.limit(1)

        async with self.session_factory() as session:
            targets = list((await session.execute(stmt)).scalars().all())
            if not targets:
                return UpdateOutcome(ok=True, modified=0)

            if run_validators:
                # Attribute assignment runs the model's @validates hooks
                for document in targets:
                    for key, value in patch.items():
                        setattr(document, key, value)
                await session.commit()
                return UpdateOutcome(ok=True, modified=len(targets))

            ids = [document.id for document in targets]
            result = await session.execute(
                sql_update(self.model)
                .where(self.model.id.in_(ids))
                .values(**patch)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return UpdateOutcome(ok=True, modified=result.rowcount)

    async def remove(self, filters: List[FilterExpression]) -> RemoveOutcome:
        stmt = delete(self.model).where(*self._conditions(filters))
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
        return RemoveOutcome(ok=True, removed=result.rowcount)

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def clean_error(self, err: Exception) -> ServiceError:
        """
        Normalize a backend exception.

        - ServiceError: returned unchanged
        - IntegrityError (constraint violation): ValidationError
        - ValueError / TypeError (validators, unknown attributes): ValidationError
        - anything else: UncaughtError
        """
        if isinstance(err, ServiceError):
            return err

        if isinstance(err, IntegrityError):
            return ValidationError(
                f"{self.model.__name__} constraint violation",
                details=[{
                    "property": None,
                    "type": "constraint",
                    "message": str(err.orig),
                    "value": None,
                }],
            )

        if isinstance(err, (ValueError, TypeError)):
            return ValidationError(str(err))

        if isinstance(err, SQLAlchemyError):
            logger.error(
                f"Database error: {err}",
                extra={"entity": self.model.__name__}
            )
        else:
            logger.error(
                f"Unexpected backend error: {err!r}",
                extra={"entity": self.model.__name__}
            )
        return UncaughtError()
