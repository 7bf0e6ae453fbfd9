"""
Service Registry

Built once at process start and passed by reference (``app.state.registry``
in the HTTP layer). Owns the backends, service classes, event listeners and
initializers, and builds a fresh service instance, with its own user
context, each time one is requested.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from modelservice.core.config import Settings, settings as default_settings
from modelservice.core.errors import ConfigurationError
from modelservice.core.logging_config import get_service_logger
from modelservice.services.context import ServiceContext
from modelservice.services.event_publisher import (
    Listener,
    ServiceEvents,
    ServiceEventType,
)
from modelservice.services.filter_translator import FilterTranslator
from modelservice.services.interfaces import IPersistenceBackend
from modelservice.services.model_service import ModelService
from modelservice.services.pagination import PaginationResolver

logger = logging.getLogger(__name__)

Initializer = Callable[[ModelService], None]


@dataclass
class ServiceRegistration:
    """Everything needed to build one named service."""
    name: str
    backend_name: str
    service_class: Type[ModelService] = ModelService
    listeners: List[Tuple[ServiceEventType, Listener]] = field(default_factory=list)
    initializers: List[Initializer] = field(default_factory=list)


class ServiceRegistry:
    """
    Explicit replacement for process-wide service and backend caches.

    Example:
        registry = ServiceRegistry()
        registry.register_backend("pictures", SQLAlchemyBackend(Picture, session_factory))
        registry.register_service("pictures")
        service = registry.get_service("pictures", user=current_user)
    """

    def __init__(self, app_settings: Optional[Settings] = None):
        self.settings = app_settings or default_settings
        self._backends: Dict[str, IPersistenceBackend] = {}
        self._registrations: Dict[str, ServiceRegistration] = {}

    # ------------------------------------------------------------------
    # Backends
    # ------------------------------------------------------------------

    def register_backend(self, name: str, backend: IPersistenceBackend) -> None:
        if name in self._backends:
            raise ConfigurationError(f"backend '{name}' is already registered")
        self._backends[name] = backend
        logger.debug(f"Backend registered: {name}", extra={"entity": name})

    def get_backend(self, name: str) -> IPersistenceBackend:
        """
        Raises:
            ConfigurationError: If no backend is registered under ``name``
        """
        try:
            return self._backends[name]
        except KeyError:
            raise ConfigurationError(f"no backend registered for '{name}'") from None

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def register_service(
        self,
        name: str,
        backend_name: Optional[str] = None,
        service_class: Type[ModelService] = ModelService
    ) -> ServiceRegistration:
        """
        Register a service; its backend defaults to the one named like it.

        Raises:
            ConfigurationError: On duplicate names or a non ModelService class
        """
        if name in self._registrations:
            raise ConfigurationError(f"service '{name}' is already registered")
        if not (isinstance(service_class, type) and issubclass(service_class, ModelService)):
            raise ConfigurationError(f"service '{name}' must extend ModelService")

        registration = ServiceRegistration(
            name=name,
            backend_name=backend_name or name,
            service_class=service_class,
        )
        self._registrations[name] = registration
        return registration

    def add_listener(
        self,
        service_name: str,
        event_type: ServiceEventType,
        listener: Listener
    ) -> None:
        """Attach ``listener`` to every instance of the service built from now on."""
        self._get_registration(service_name).listeners.append(
            (ServiceEventType(event_type), listener)
        )

    def add_initializer(self, service_name: str, initializer: Initializer) -> None:
        """Run ``initializer(service)`` on every new instance of the service."""
        self._get_registration(service_name).initializers.append(initializer)

    @property
    def service_names(self) -> List[str]:
        return list(self._registrations)

    def get_service(self, name: str, user: Optional[Any] = None) -> ModelService:
        """
        Build a new service instance.

        Args:
            name: Registered service name
            user: Optional authenticated user for the instance's context

        Raises:
            ConfigurationError: If the service or its backend is unknown
        """
        registration = self._get_registration(name)
        backend = self.get_backend(registration.backend_name)

        service_logger = get_service_logger(name)
        events = ServiceEvents(name, log=service_logger)
        for event_type, listener in registration.listeners:
            events.subscribe(event_type, listener)

        context = ServiceContext(acl_check=self.settings.acl_check)
        if user is not None:
            context.set_user(user)

        service = registration.service_class(
            name=name,
            backend=backend,
            context=context,
            events=events,
            log=service_logger,
            translator=FilterTranslator(log=service_logger),
            paginator=PaginationResolver(
                default_page=self.settings.pagination_default_page,
                default_limit=self.settings.pagination_default_limit,
                log=service_logger,
                max_value=self.settings.unbounded_limit,
            ),
            unbounded_limit=self.settings.unbounded_limit,
        )

        for initializer in registration.initializers:
            initializer(service)

        return service

    def _get_registration(self, name: str) -> ServiceRegistration:
        try:
            return self._registrations[name]
        except KeyError:
            raise ConfigurationError(f"service '{name}' is not registered") from None
