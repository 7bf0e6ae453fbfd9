"""
Context Capability Interface (IContextCapable)

Request-scoped view of the current user and its rights. Services hold one
as ``service.context`` and call the assertion helpers before doing work.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional


class IContextCapable(ABC):
    """Abstract interface for user-context access and ACL assertions."""

    @abstractmethod
    def set_user(self, user: Optional[Any]) -> None:
        """Attach the authenticated user (or None to clear it)."""
        pass

    @abstractmethod
    def get_user(self) -> Optional[Any]:
        pass

    @abstractmethod
    def has_user(self) -> bool:
        pass

    @abstractmethod
    def get_user_rights(self) -> List[str]:
        pass

    @abstractmethod
    def user_can(self, right: str) -> bool:
        """Return True if the current user holds ``right``."""
        pass

    @abstractmethod
    def assert_has_user(self) -> None:
        """
        Raises:
            UnauthorizedError: If no user is attached
        """
        pass

    @abstractmethod
    def assert_no_user(self) -> None:
        """
        Raises:
            ForbiddenError: If a user is attached
        """
        pass

    @abstractmethod
    def assert_user_can(self, right: str) -> None:
        """
        Raises:
            ForbiddenError: If the current user lacks ``right``
        """
        pass

    @abstractmethod
    def assert_user_and_can(self, right: str) -> None:
        """Combined assert_has_user + assert_user_can."""
        pass
