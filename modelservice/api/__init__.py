"""HTTP layer: CRUD controller, dependencies and error rendering."""

from modelservice.api.controller import build_crud_router
from modelservice.api.exception_handlers import register_exception_handlers

__all__ = ["build_crud_router", "register_exception_handlers"]
