"""
Unit tests for ServiceContext.

Tests follow AAA (Arrange, Act, Assert) pattern.
"""

from types import SimpleNamespace

import pytest

from modelservice.core.errors import ForbiddenError, UnauthorizedError
from modelservice.services import ContextUser, ServiceContext


@pytest.fixture
def context():
    return ServiceContext(acl_check=True)


@pytest.fixture
def editor():
    return {"id": 7, "username": "editor", "rights": ["pictures.update", "pictures.delete"]}


class TestUser:
    """Tests for user accessors."""

    def test_no_user_by_default(self, context):
        assert context.has_user() is False
        assert context.get_user() is None
        assert context.get_user_rights() == []

    def test_set_user_from_mapping(self, context, editor):
        context.set_user(editor)

        assert context.has_user() is True
        assert context.get_user() == ContextUser(**editor)
        assert context.get_user_rights() == ["pictures.update", "pictures.delete"]

    def test_set_user_from_object_attributes(self, context):
        user = SimpleNamespace(id=3, username="reader", rights=["pictures.read"])

        context.set_user(user)

        assert context.get_user().username == "reader"
        assert context.user_can("pictures.read") is True

    def test_clear_user(self, context, editor):
        context.set_user(editor)
        context.set_user(None)

        assert context.has_user() is False

    def test_user_can(self, context, editor):
        context.set_user(editor)

        assert context.user_can("pictures.update") is True
        assert context.user_can("pictures.create") is False


class TestAssertions:
    """Tests for ACL assertions."""

    def test_assert_has_user_without_user(self, context):
        with pytest.raises(UnauthorizedError) as exc_info:
            context.assert_has_user()

        assert exc_info.value.code == 401

    def test_assert_no_user_with_user(self, context, editor):
        context.set_user(editor)

        with pytest.raises(ForbiddenError):
            context.assert_no_user()

    def test_assert_no_user_without_user(self, context):
        context.assert_no_user()

    def test_assert_user_can_missing_right(self, context, editor):
        """
        Test a missing right is forbidden.

        Arrange: Editor without pictures.create
        Act: assert_user_can("pictures.create")
        Assert: ForbiddenError naming the right
        """
        # Arrange
        context.set_user(editor)

        # Act / Assert
        with pytest.raises(ForbiddenError) as exc_info:
            context.assert_user_can("pictures.create")

        assert "pictures.create" in exc_info.value.message

    def test_assert_user_and_can_checks_user_first(self, context):
        with pytest.raises(UnauthorizedError):
            context.assert_user_and_can("pictures.update")

    def test_assert_user_and_can_passes(self, context, editor):
        context.set_user(editor)

        context.assert_user_and_can("pictures.update")

    def test_disabled_acl_check_skips_assertions(self, context):
        """
        Test every assertion passes once ACL checks are disabled.

        Arrange: Context without user, ACL disabled
        Act: Run every assertion
        Assert: Nothing raised
        """
        # Arrange
        context.disable_acl_check()

        # Act
        context.assert_has_user()
        context.assert_user_can("anything")
        context.assert_user_and_can("anything")

        # Assert
        assert context.acl_check is False
