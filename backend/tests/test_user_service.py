"""
User administration tests.

Verifies:
- Admin-only create/list/update/delete
- Password strength, account and code uniqueness
- Supplier may only view themselves
- Self-deletion refused
- Deactivation and password change revoke tokens
"""

import pytest

from rfidtrack.models import AuthToken, SystemLog, User
from rfidtrack.validation import (
    ConflictError,
    ForbiddenError,
    FormatError,
    NotFoundError,
    PasswordValidationError,
    ValidationError,
)


NEW_USER = {
    "account": "packer",
    "password": "Packer123!",
    "code": "P01",
    "name": "Packer",
}


class TestCreateUser:
    def test_admin_creates_user(self, container, admin_user, db_session):
        result = container.user_service.create_user(admin_user.uuid, **NEW_USER)
        assert result["account"] == "packer"
        assert result["user_type"] == "user"
        assert result["is_active"] is True
        assert "password_hash" not in result

        stored = db_session.query(User).filter_by(account="packer").one()
        assert container.password_hasher.verify("Packer123!", stored.password_hash)
        assert db_session.query(SystemLog).filter_by(action="CREATE_USER").count() == 1

    def test_non_admin_forbidden(self, container, operator_user):
        with pytest.raises(ForbiddenError):
            container.user_service.create_user(operator_user.uuid, **NEW_USER)

    def test_weak_password(self, container, admin_user):
        with pytest.raises(PasswordValidationError) as excinfo:
            container.user_service.create_user(admin_user.uuid, **{**NEW_USER, "password": "weak"})
        assert len(excinfo.value.errors) == 4

    def test_duplicate_account(self, container, admin_user, operator_user):
        with pytest.raises(ConflictError, match="Account already exists"):
            container.user_service.create_user(admin_user.uuid, **{**NEW_USER, "account": "operator"})

    def test_duplicate_code(self, container, admin_user, operator_user):
        with pytest.raises(ConflictError, match="User code already exists"):
            container.user_service.create_user(admin_user.uuid, **{**NEW_USER, "code": "001"})

    def test_invalid_code(self, container, admin_user):
        with pytest.raises(FormatError):
            container.user_service.create_user(admin_user.uuid, **{**NEW_USER, "code": "p1"})

    def test_invalid_user_type(self, container, admin_user):
        with pytest.raises(ValidationError, match="user_type"):
            container.user_service.create_user(admin_user.uuid, **NEW_USER, user_type="root")


class TestGetAndListUsers:
    def test_supplier_sees_only_self(self, container, supplier_user, operator_user):
        assert container.user_service.get_user(supplier_user.uuid, supplier_user.uuid)["account"] == "supplier"
        with pytest.raises(ForbiddenError):
            container.user_service.get_user(supplier_user.uuid, operator_user.uuid)

    def test_regular_user_can_view_others(self, container, operator_user, supplier_user):
        assert container.user_service.get_user(operator_user.uuid, supplier_user.uuid)["code"] == "S01"

    def test_missing_user(self, container, admin_user):
        with pytest.raises(NotFoundError):
            container.user_service.get_user(admin_user.uuid, "nope")

    def test_list_filters(self, container, admin_user, operator_user, supplier_user, inactive_user):
        suppliers = container.user_service.list_users(admin_user.uuid, user_type="supplier")
        assert [u["account"] for u in suppliers["items"]] == ["supplier"]

        inactive = container.user_service.list_users(admin_user.uuid, is_active="false")
        assert [u["account"] for u in inactive["items"]] == ["inactive"]

    def test_list_requires_admin(self, container, operator_user):
        with pytest.raises(ForbiddenError):
            container.user_service.list_users(operator_user.uuid)


class TestUpdateUser:
    def test_rename_and_recode(self, container, admin_user, operator_user):
        result = container.user_service.update_user(
            admin_user.uuid, operator_user.uuid, {"name": "Line Operator", "code": "002"}
        )
        assert result["name"] == "Line Operator"
        assert result["code"] == "002"

    def test_code_collision(self, container, admin_user, operator_user, supplier_user):
        with pytest.raises(ConflictError):
            container.user_service.update_user(admin_user.uuid, operator_user.uuid, {"code": "S01"})

    def test_unknown_field(self, container, admin_user, operator_user):
        with pytest.raises(ValidationError, match="Unknown fields"):
            container.user_service.update_user(admin_user.uuid, operator_user.uuid, {"uuid": "x"})

    def test_deactivation_revokes_tokens(self, container, admin_user, operator_user, db_session):
        container.token_issuer.issue_pair(operator_user)
        db_session.commit()

        result = container.user_service.update_user(admin_user.uuid, operator_user.uuid, {"is_active": False})
        assert result["is_active"] is False
        live = db_session.query(AuthToken).filter_by(user_uuid=operator_user.uuid, is_revoked=False).count()
        assert live == 0

    def test_password_change(self, container, admin_user, operator_user, db_session):
        container.user_service.update_user(admin_user.uuid, operator_user.uuid, {"password": "Changed123!"})
        db_session.refresh(operator_user)
        assert container.password_hasher.verify("Changed123!", operator_user.password_hash)

    def test_cannot_deactivate_self(self, container, admin_user):
        with pytest.raises(ForbiddenError):
            container.user_service.update_user(admin_user.uuid, admin_user.uuid, {"is_active": False})


class TestDeleteUser:
    def test_self_deletion_forbidden(self, container, admin_user):
        with pytest.raises(ForbiddenError, match="Cannot delete your own account"):
            container.user_service.delete_user(admin_user.uuid, admin_user.uuid)

    def test_admin_deletes_user(self, container, admin_user, operator_user, db_session):
        target = operator_user.uuid
        container.token_issuer.issue_pair(operator_user)
        db_session.commit()

        container.user_service.delete_user(admin_user.uuid, target)
        assert db_session.get(User, target) is None
        assert db_session.query(AuthToken).filter_by(user_uuid=target).count() == 0

        log = db_session.query(SystemLog).filter_by(action="DELETE_USER").one()
        assert log.target_id == target

    def test_non_admin_cannot_delete(self, container, operator_user, supplier_user):
        with pytest.raises(ForbiddenError):
            container.user_service.delete_user(operator_user.uuid, supplier_user.uuid)
