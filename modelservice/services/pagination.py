"""
Pagination Resolver

Reads ``page``, ``limit`` and ``order`` from query-string style parameters
and returns a PaginationEnvelope. Invalid or oversized values never raise;
they fall back to the configured defaults.
"""

import logging
import math
from typing import Any, List, Mapping, Optional, Tuple

from modelservice.core.config import settings
from modelservice.schemas import PaginationEnvelope, PropertySchema, SortDirection
from modelservice.services.filter_translator import is_property_queryable

logger = logging.getLogger(__name__)


def parse_positive_int(raw: Any, default: int, maximum: Optional[int] = None) -> int:
    """
    Parse ``raw`` as a base-10 integer, truncating any fractional part.

    Returns ``default`` when the value is missing, non-numeric, below 1 or
    above ``maximum``.
    """
    if raw is None or isinstance(raw, bool):
        return default

    try:
        number = float(str(raw).strip())
    except ValueError:
        return default

    if not math.isfinite(number):
        return default

    value = int(number)
    if value < 1:
        return default
    if maximum is not None and value > maximum:
        return default
    return value


class PaginationResolver:
    """Resolves pagination and sort parameters against an entity's properties."""

    def __init__(
        self,
        default_page: Optional[int] = None,
        default_limit: Optional[int] = None,
        log: Optional[logging.Logger] = None,
        max_value: Optional[int] = None
    ):
        self.default_page = default_page or settings.pagination_default_page
        self.default_limit = default_limit or settings.pagination_default_limit
        # page and limit both stay under this so the SQL offset fits in 64 bits
        self.max_value = max_value or settings.unbounded_limit
        self.logger = log or logger

    def resolve(
        self,
        params: Mapping[str, Any],
        properties: Mapping[str, PropertySchema]
    ) -> PaginationEnvelope:
        """
        Build the pagination envelope for ``params``.

        Args:
            params: Query-string style mapping, may hold page, limit, order
            properties: Property schemas used to validate sort fields

        Returns:
            PaginationEnvelope with page >= 1, limit >= 1 and the accepted
            sort fields in request order
        """
        page = parse_positive_int(params.get("page"), self.default_page, self.max_value)
        limit = parse_positive_int(params.get("limit"), self.default_limit, self.max_value)
        sort = self._resolve_sort(params.get("order"), properties)

        return PaginationEnvelope(page=page, limit=limit, sort=sort)

    def _resolve_sort(
        self,
        raw: Any,
        properties: Mapping[str, PropertySchema]
    ) -> Tuple[Tuple[str, SortDirection], ...]:
        if not raw:
            return ()

        sort: List[Tuple[str, SortDirection]] = []
        for item in str(raw).split(","):
            name = item.strip()
            direction = SortDirection.ASC
            if name.startswith("-"):
                name = name[1:]
                direction = SortDirection.DESC

            if not name:
                continue

            if not is_property_queryable(properties, name):
                self.logger.debug(
                    "Dropping sort on non queryable property",
                    extra={"event": "sort_dropped", "entity": name}
                )
                continue

            sort.append((name, direction))

        return tuple(sort)
