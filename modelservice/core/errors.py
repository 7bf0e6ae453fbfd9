"""
Domain error taxonomy.

Every error raised by services derives from ServiceError and carries a
status-like ``code``, a human message and optional structured ``details``.
The HTTP layer renders them as-is; nothing else needs to know about
backend-specific exception types.
"""

from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    """Base class for all service-level errors."""

    code: int = 500
    default_message: str = "an internal error occured"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None
    ):
        self.message = message or self.default_message
        self.details = details or []
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable representation used by the API layer and logs."""
        return {
            "name": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class UnauthorizedError(ServiceError):
    code = 401
    default_message = "you need to be logged in to access this ressource"


class ForbiddenError(ServiceError):
    code = 403
    default_message = "you are not allow to access this ressource"


class NotFoundError(ServiceError):
    code = 404
    default_message = "ressource not found"


class ValidationError(ServiceError):
    """
    Malformed or out-of-range input.

    ``details`` entries follow the shape
    ``{"property", "type", "message", "value"}``.
    """

    code = 422
    default_message = "a validation error occured"

    @classmethod
    def for_property(
        cls,
        message: str,
        prop: str,
        value: Any,
        error_type: str = "format",
        detail_message: Optional[str] = None
    ) -> "ValidationError":
        """Build an error carrying a single property detail."""
        return cls(message, details=[{
            "property": prop,
            "type": error_type,
            "message": detail_message or message,
            "value": value,
        }])


class UncaughtError(ServiceError):
    code = 500
    default_message = "an internal error occured"


class ConfigurationError(ServiceError):
    code = 500
    default_message = "there is a configuration error"


class NotImplementedFeatureError(ServiceError):
    code = 501
    default_message = "this is not implemented yet"
