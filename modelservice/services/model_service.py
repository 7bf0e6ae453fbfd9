"""
Model Service

Generic CRUD and bulk operations over one persistence backend.

Single-document operations validate ids before any backend call, normalize
backend failures through ``backend.clean_error`` and fire events on the
service's ServiceEvents hub. Bulk operations resolve their target set with
the filter translator and pagination resolver, then process documents
one at a time.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from modelservice.core.config import settings
from modelservice.core.errors import (
    NotFoundError,
    ServiceError,
    UncaughtError,
    ValidationError,
)
from modelservice.schemas import BulkResult, FilterExpression, Page, UpdateResult
from modelservice.services.context import ServiceContext
from modelservice.services.event_publisher import ServiceEvents, ServiceEventType
from modelservice.services.filter_translator import FilterTranslator
from modelservice.services.interfaces import (
    IContextCapable,
    IPersistenceBackend,
    IQueryable,
)
from modelservice.services.pagination import PaginationResolver

logger = logging.getLogger(__name__)

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


class ModelService(IQueryable):
    """
    CRUD service for one entity.

    Args:
        name: Service name, used for events and logs
        backend: Persistence backend for the entity
        context: User context; a fresh ServiceContext when omitted
        events: Event hub; a fresh ServiceEvents when omitted
        log: Logger or LoggerAdapter bound to the service
        translator: Filter translator
        paginator: Pagination resolver
        unbounded_limit: Page size used by bulk operations without a limit
    """

    def __init__(
        self,
        name: str,
        backend: IPersistenceBackend,
        context: Optional[IContextCapable] = None,
        events: Optional[ServiceEvents] = None,
        log: Optional[logging.Logger] = None,
        translator: Optional[FilterTranslator] = None,
        paginator: Optional[PaginationResolver] = None,
        unbounded_limit: Optional[int] = None
    ):
        self.name = name
        self.backend = backend
        self.logger = log or logger
        self.context = context or ServiceContext(acl_check=settings.acl_check)
        self.events = events or ServiceEvents(name, log=self.logger)
        self.translator = translator or FilterTranslator(log=self.logger)
        self.unbounded_limit = unbounded_limit or settings.unbounded_limit
        self.paginator = paginator or PaginationResolver(
            log=self.logger, max_value=self.unbounded_limit
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def validate_id(document_id: Any) -> int:
        """
        Coerce ``document_id`` to a positive int.

        Integers and integral strings ("12") are accepted; booleans,
        floats and anything else are not.

        Raises:
            ValidationError: If the id is not an integer or not positive
        """
        if isinstance(document_id, bool):
            value = None
        elif isinstance(document_id, int):
            value = document_id
        elif isinstance(document_id, str) and _INTEGER_PATTERN.match(document_id.strip()):
            value = int(document_id.strip())
        else:
            value = None

        if value is None:
            raise ValidationError.for_property(
                "id must be an integer",
                prop="id",
                value=document_id,
                detail_message="must be an integer",
            )

        if value <= 0:
            raise ValidationError.for_property(
                "id must be a positive integer",
                prop="id",
                value=document_id,
            )

        return value

    def _with_unbounded_limit(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy ``params``, defaulting ``limit`` so one page covers every match."""
        resolved = dict(params)
        if not resolved.get("limit"):
            resolved["limit"] = self.unbounded_limit
        return resolved

    # ------------------------------------------------------------------
    # Single-document operations
    # ------------------------------------------------------------------

    async def get_by_id(self, document_id: Any) -> Optional[Any]:
        document_id = self.validate_id(document_id)
        return await self.backend.find_one([FilterExpression.id_equals(document_id)])

    async def get(self, filters: List[FilterExpression]) -> List[Any]:
        return await self.backend.find(filters)

    async def get_one(self, filters: List[FilterExpression]) -> Optional[Any]:
        return await self.backend.find_one(filters)

    async def create_one(self, params: Dict[str, Any]) -> Any:
        try:
            document = await self.backend.save(dict(params))
        except Exception as err:
            error = self.backend.clean_error(err)
            self.logger.info(
                f"create_one failed: {error.message}",
                extra={"event": "create_failed"}
            )
            raise error from err

        self.logger.info(
            "Document created",
            extra={"event": ServiceEventType.CREATED.value, "document_id": document.id}
        )
        self.events.emit(ServiceEventType.CREATED, document)
        return document

    async def update_by_id(self, document_id: Any, patch: Dict[str, Any]) -> UpdateResult:
        """
        Update one document.

        Returns an UpdateResult instead of raising on store failures:
        - not found: all fields None
        - empty patch: updated is the original document
        - store failure: error holds the normalized ServiceError
        - success: updated holds the re-fetched document

        Raises:
            ValidationError: If the id is invalid
        """
        document_id = self.validate_id(document_id)
        result = UpdateResult()

        original = await self.get_by_id(document_id)
        if original is None:
            return result

        result.document = original

        if not patch:
            result.updated = original
            return result

        try:
            outcome = await self.backend.update(
                [FilterExpression.id_equals(document_id)],
                dict(patch),
                multi=False,
                run_validators=True,
            )
            if not outcome.ok or outcome.modified != 1:
                result.error = UncaughtError("Model update error")
            else:
                result.updated = await self.get_by_id(document_id)
                self.events.emit(ServiceEventType.UPDATED, result)
        except Exception as err:
            self.logger.debug(
                f"update_by_id error {err}",
                extra={"event": "update_failed", "document_id": document_id}
            )
            result.error = self.backend.clean_error(err)

        return result

    async def delete_by_id(self, document_id: Any) -> Any:
        """
        Delete one document and return it.

        Raises:
            ValidationError: If the id is invalid
            NotFoundError: If no document has this id
            UncaughtError: If the backend did not delete exactly one document
        """
        document_id = self.validate_id(document_id)

        existing = await self.get_by_id(document_id)
        if existing is None:
            raise NotFoundError()

        deleted = await self.delete({"id": str(document_id)})
        if len(deleted) != 1:
            raise UncaughtError("Error while deleting the item")

        return deleted[0]

    async def get_paginated(self, params: Mapping[str, Any]) -> Page:
        properties = self.backend.get_properties()
        filters = self.translator.translate(params, properties)
        pagination = self.paginator.resolve(params, properties)
        try:
            return await self.backend.paginate(filters, pagination)
        except ServiceError:
            raise
        except Exception as err:
            raise self.backend.clean_error(err) from err

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def update(self, params: Mapping[str, Any], patch: Dict[str, Any]) -> BulkResult:
        """
        Update every document matching ``params``.

        Documents are processed sequentially in the resolved order. A
        failure on one document is recorded in ``errors_by_id`` and the
        batch continues.
        """
        page = await self.get_paginated(self._with_unbounded_limit(params))
        result = BulkResult(document_ids=[document.id for document in page.docs])

        for document_id in result.document_ids:
            try:
                outcome = await self.update_by_id(document_id, patch)
                if outcome.updated is not None:
                    result.updated_ids.append(document_id)
                    self.events.emit(ServiceEventType.UPDATED, outcome)
                elif outcome.error is not None:
                    result.errors_by_id[document_id] = outcome.error
            except ServiceError as err:
                result.errors_by_id[document_id] = err
            except Exception as err:
                self.logger.exception(
                    "Bulk update failed for document",
                    extra={"event": "bulk_update_failed", "document_id": document_id}
                )
                result.errors_by_id[document_id] = self.backend.clean_error(err)

        counts = result.counts
        self.logger.info(
            f"Bulk update done: {counts.updated} updated, {counts.errors} errors",
            extra={"event": "bulk_update", "count": counts.documents}
        )
        return result

    async def delete(self, params: Mapping[str, Any]) -> List[Any]:
        """
        Delete every document matching ``params``.

        Returns:
            Documents confirmed absent after removal, in resolved order

        Raises:
            UncaughtError: If the backend does not acknowledge the removal
        """
        page = await self.get_paginated(self._with_unbounded_limit(params))
        to_delete = list(page.docs)
        ids = [document.id for document in to_delete]

        outcome = await self.backend.remove([FilterExpression.id_in(ids)])
        if not outcome.ok:
            raise UncaughtError("unable to delete the items")

        still_present = {
            document.id for document in await self.backend.find([FilterExpression.id_in(ids)])
        }

        deleted = []
        for document in to_delete:
            if document.id in still_present:
                continue
            self.events.emit(ServiceEventType.DELETED, document)
            deleted.append(document)

        self.logger.info(
            f"Bulk delete done: {len(deleted)} of {len(ids)} removed",
            extra={"event": "bulk_delete", "count": len(deleted)}
        )
        return deleted
