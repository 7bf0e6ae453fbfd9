"""
Filter Translator

Turns query-string style parameters into FilterExpression lists.

Keys take the form ``field`` or ``field__operator``; a key without an
operator suffix means ``equals``. Only queryable properties produce
expressions, and only with operators their kind allows:

- string: equals, like, ilike, in, nin
- number: equals, gt, gte, lt, lte, between, in, nin
- date: not supported yet, always raises NotImplementedFeatureError
- boolean / object: never filterable

Everything else is dropped and logged at DEBUG level.
"""

import logging
import math
import re
from typing import Any, List, Mapping, Optional, Tuple, Union

from modelservice.core.errors import NotImplementedFeatureError, ValidationError
from modelservice.schemas import (
    FilterExpression,
    FilterOperator,
    PropertyKind,
    PropertySchema,
)

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^(\w+)__(\w+)$")

# Always queryable when the entity declares them.
ALWAYS_QUERYABLE = frozenset({"id", "created_at", "updated_at"})

STRING_OPERATORS = frozenset({
    FilterOperator.EQUALS,
    FilterOperator.LIKE,
    FilterOperator.ILIKE,
    FilterOperator.IN,
    FilterOperator.NIN,
})

NUMBER_OPERATORS = frozenset({
    FilterOperator.EQUALS,
    FilterOperator.GT,
    FilterOperator.GTE,
    FilterOperator.LT,
    FilterOperator.LTE,
    FilterOperator.BETWEEN,
    FilterOperator.IN,
    FilterOperator.NIN,
})

Number = Union[int, float]


def is_property_queryable(properties: Mapping[str, PropertySchema], name: str) -> bool:
    """
    Check whether requests may filter or sort on ``name``.

    The property must exist, and be either flagged queryable or one of the
    bookkeeping fields (id, created_at, updated_at).
    """
    schema = properties.get(name)
    if schema is None:
        return False
    return schema.queryable or name in ALWAYS_QUERYABLE


def split_values(raw: Any) -> List[str]:
    """Split a comma separated parameter into its parts."""
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw]
    return str(raw).split(",")


class FilterTranslator:
    """
    Stateless translator from parameter mappings to filter expressions.

    Output order follows the insertion order of the parameter mapping.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.logger = log or logger

    def translate(
        self,
        params: Mapping[str, Any],
        properties: Mapping[str, PropertySchema]
    ) -> List[FilterExpression]:
        """
        Translate ``params`` against the entity's property schemas.

        Args:
            params: Query-string style mapping (``{"views__gte": "10"}``)
            properties: Property schemas from the backend

        Returns:
            Filter expressions, one or two per accepted parameter

        Raises:
            ValidationError: Non-numeric number value or malformed between
            NotImplementedFeatureError: Any filter on a date property
        """
        expressions: List[FilterExpression] = []

        for key, raw in params.items():
            field_name, operator_name = self._parse_key(key)

            if not is_property_queryable(properties, field_name):
                self.logger.debug(
                    "Dropping filter on non queryable property",
                    extra={"event": "filter_dropped", "entity": field_name}
                )
                continue

            try:
                operator = FilterOperator(operator_name)
            except ValueError:
                self.logger.debug(
                    f"Dropping unknown filter operator '{operator_name}'",
                    extra={"event": "filter_dropped", "entity": field_name}
                )
                continue

            schema = properties[field_name]

            if schema.kind == PropertyKind.STRING:
                built = self._string_filter(field_name, operator, raw)
            elif schema.kind == PropertyKind.NUMBER:
                built = self._number_filter(field_name, operator, raw)
            elif schema.kind == PropertyKind.DATE:
                raise NotImplementedFeatureError("Date filtering is not implemented yet")
            else:
                built = []

            if not built:
                if operator == FilterOperator.BETWEEN and schema.kind == PropertyKind.NUMBER:
                    reason = "Dropping 'between' filter, both bounds are open"
                else:
                    reason = (
                        f"Dropping '{operator.value}' filter, not supported for "
                        f"{schema.kind.value} properties"
                    )
                self.logger.debug(
                    reason,
                    extra={"event": "filter_dropped", "entity": field_name}
                )
                continue

            self.logger.debug(
                f"Translated filter '{key}'",
                extra={"event": "filter_translated", "entity": field_name, "count": len(built)}
            )
            expressions.extend(built)

        return expressions

    @staticmethod
    def _parse_key(key: str) -> Tuple[str, str]:
        match = KEY_PATTERN.match(key)
        if match is None:
            return key, FilterOperator.EQUALS.value
        return match.group(1), match.group(2)

    def _string_filter(
        self,
        field_name: str,
        operator: FilterOperator,
        raw: Any
    ) -> List[FilterExpression]:
        if operator not in STRING_OPERATORS:
            return []

        if operator in (FilterOperator.IN, FilterOperator.NIN):
            return [FilterExpression(field_name, operator, split_values(raw))]

        return [FilterExpression(field_name, operator, str(raw))]

    def _number_filter(
        self,
        field_name: str,
        operator: FilterOperator,
        raw: Any
    ) -> List[FilterExpression]:
        if operator not in NUMBER_OPERATORS:
            return []

        if operator == FilterOperator.BETWEEN:
            return self._between_filter(field_name, raw)

        if operator in (FilterOperator.IN, FilterOperator.NIN):
            values = [self._parse_number(field_name, item) for item in split_values(raw)]
            return [FilterExpression(field_name, operator, values)]

        return [FilterExpression(field_name, operator, self._parse_number(field_name, raw))]

    def _between_filter(self, field_name: str, raw: Any) -> List[FilterExpression]:
        bounds = split_values(raw)
        if len(bounds) != 2:
            raise ValidationError.for_property(
                "Between filter requires 2 values comma separated",
                prop=field_name,
                value=raw,
            )

        lower, upper = (bound.strip() for bound in bounds)
        expressions = []
        if lower:
            expressions.append(FilterExpression(
                field_name, FilterOperator.GTE, self._parse_number(field_name, lower)
            ))
        if upper:
            expressions.append(FilterExpression(
                field_name, FilterOperator.LTE, self._parse_number(field_name, upper)
            ))
        return expressions

    @staticmethod
    def _parse_number(field_name: str, raw: Any) -> Number:
        """Parse a number, keeping integral values as int."""
        if isinstance(raw, bool):
            value = None
        elif isinstance(raw, (int, float)):
            value = raw
        else:
            text = str(raw).strip()
            try:
                value = int(text)
            except ValueError:
                try:
                    value = float(text)
                except ValueError:
                    value = None

        if value is None or not math.isfinite(value):
            raise ValidationError.for_property(
                f"'{field_name}' must be a number",
                prop=field_name,
                value=raw,
            )

        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

