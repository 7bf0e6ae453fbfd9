"""Service layer: query translation, model services and the registry."""

from modelservice.services.context import ContextUser, ServiceContext
from modelservice.services.event_publisher import (
    ServiceEvent,
    ServiceEvents,
    ServiceEventType,
)
from modelservice.services.filter_translator import FilterTranslator, is_property_queryable
from modelservice.services.model_service import ModelService
from modelservice.services.pagination import PaginationResolver
from modelservice.services.registry import ServiceRegistry

__all__ = [
    "ContextUser",
    "ServiceContext",
    "ServiceEvent",
    "ServiceEvents",
    "ServiceEventType",
    "FilterTranslator",
    "is_property_queryable",
    "ModelService",
    "PaginationResolver",
    "ServiceRegistry",
]
