"""
Service user context.

Holds the authenticated user for the duration of one service instance
(one request in the HTTP layer) and enforces access rights.
"""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field

from modelservice.core.errors import ForbiddenError, UnauthorizedError
from modelservice.services.interfaces import IContextCapable


class ContextUser(BaseModel):
    """Authenticated user as seen by services."""

    id: int
    username: Optional[str] = None
    rights: List[str] = Field(default_factory=list)


class ServiceContext(IContextCapable):
    """
    Default IContextCapable implementation.

    When ``acl_check`` is False every assertion passes, which lets
    background jobs drive services without a user.
    """

    def __init__(self, acl_check: bool = True):
        self.acl_check = acl_check
        self._user: Optional[ContextUser] = None

    def set_user(self, user: Optional[Any]) -> None:
        if user is None or isinstance(user, ContextUser):
            self._user = user
        elif isinstance(user, Mapping):
            self._user = ContextUser.model_validate(user)
        else:
            self._user = ContextUser.model_validate(user, from_attributes=True)

    def get_user(self) -> Optional[ContextUser]:
        return self._user

    def has_user(self) -> bool:
        return self._user is not None

    def get_user_rights(self) -> List[str]:
        if self._user is None:
            return []
        return list(self._user.rights)

    def user_can(self, right: str) -> bool:
        return right in self.get_user_rights()

    def disable_acl_check(self) -> None:
        self.acl_check = False

    def assert_has_user(self) -> None:
        if self.acl_check and not self.has_user():
            raise UnauthorizedError()

    def assert_no_user(self) -> None:
        if self.acl_check and self.has_user():
            raise ForbiddenError("you must not be logged in to access this ressource")

    def assert_user_can(self, right: str) -> None:
        if self.acl_check and not self.user_can(right):
            raise ForbiddenError(f"missing right '{right}'")

    def assert_user_and_can(self, right: str) -> None:
        self.assert_has_user()
        self.assert_user_can(right)
