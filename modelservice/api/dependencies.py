"""
FastAPI dependency functions.

Services are built per request from the registry stored on
``app.state.registry``. Authentication happens upstream: when a middleware
has put the authenticated user on ``request.state.user``, it becomes the
service's context user.
"""

from typing import Callable

from fastapi import Request

from modelservice.core.errors import ConfigurationError
from modelservice.services import ModelService, ServiceRegistry


def get_registry(request: Request) -> ServiceRegistry:
    """
    Dependency returning the application's service registry.

    Raises:
        ConfigurationError: If the application was built without one
    """
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise ConfigurationError("no service registry attached to the application")
    return registry


def service_dependency(service_name: str) -> Callable[[Request], ModelService]:
    """
    Build a dependency returning a fresh ``service_name`` service.

    Example:
        @router.get("/")
        async def list_items(service: ModelService = Depends(service_dependency("pictures"))):
            ...
    """

    def get_service(request: Request) -> ModelService:
        registry = get_registry(request)
        user = getattr(request.state, "user", None)
        return registry.get_service(service_name, user=user)

    return get_service
