# Overview: User administration workflows.

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..identifiers import UserCode
from ..models import User
from ..models.auth import USER_TYPE_USER, VALID_USER_TYPES
from ..repositories import UserRepository
from ..time_utils import utcnow
from ..validation import ConflictError, ForbiddenError, NotFoundError, ValidationError, parse_pagination, require_fields
from .audit_service import ACTION_CREATE_USER, ACTION_DELETE_USER, ACTION_UPDATE_USER, TARGET_USER, AuditService
from .auth_service import PasswordHasher
from .base import WorkflowService
from .token_service import TokenIssuer


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"account", "code", "name", "user_type", "is_active", "password"}


def _parse_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "1", "false", "0"):
        return value.lower() in ("true", "1")
    raise ValidationError(f"{field} must be a boolean")


class UserService(WorkflowService):
    """
    Admin-only user management, except get_user which any active actor may
    call for themselves (suppliers are restricted to their own profile).
    """

    def __init__(
        self,
        session: Session,
        user_repository: UserRepository,
        audit_service: AuditService,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
    ):
        super().__init__(session, user_repository, audit_service)
        self.password_hasher = password_hasher
        self.token_issuer = token_issuer

    def _load_user(self, uuid: str) -> User:
        user = self.user_repository.find_by_uuid(uuid)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _user_type(self, value) -> str:
        if value not in VALID_USER_TYPES:
            raise ValidationError(f"user_type must be one of: {', '.join(sorted(VALID_USER_TYPES))}")
        return value

    def create_user(
        self,
        actor_uuid: str,
        account: str,
        password: str,
        code: str,
        name: str,
        user_type: str = USER_TYPE_USER,
    ) -> dict:
        actor = self._require_admin(actor_uuid)
        require_fields(
            {"account": account, "password": password, "code": code, "name": name},
            "account", "password", "code", "name",
        )
        user_code = UserCode(code)
        user_type = self._user_type(user_type or USER_TYPE_USER)

        # Strength first, then uniqueness, then the (slow) hash
        password_hash = self.password_hasher.hash_validated(password)
        if self.user_repository.exists_by_account(account):
            raise ConflictError("Account already exists")
        if self.user_repository.exists_by_code(user_code):
            raise ConflictError("User code already exists")

        user = User(
            account=account,
            password_hash=password_hash,
            code=user_code,
            name=name,
            user_type=user_type,
        )
        self.user_repository.save(user)
        self.audit_service.record(
            actor.uuid, ACTION_CREATE_USER, TARGET_USER, user.uuid, f"Created user {account} ({user_type})",
        )
        self._commit()
        return user.to_dict()

    def get_user(self, actor_uuid: str, uuid: str) -> dict:
        actor = self._require_active_actor(actor_uuid)
        if actor.is_supplier and actor.uuid != uuid:
            raise ForbiddenError("Suppliers can only view their own profile")
        return self._load_user(uuid).to_dict()

    def list_users(
        self,
        actor_uuid: str,
        *,
        user_type: Optional[str] = None,
        is_active=None,
        page=None,
        limit=None,
    ) -> dict:
        self._require_admin(actor_uuid)
        result = self.user_repository.find_all(
            parse_pagination(page, limit),
            user_type=self._choice(user_type, VALID_USER_TYPES, "user_type"),
            is_active=None if is_active in (None, "") else _parse_bool(is_active, "is_active"),
        )
        return result.to_dict([user.to_dict() for user in result.items])

    def update_user(self, actor_uuid: str, uuid: str, changes: Mapping[str, Any]) -> dict:
        """
        Apply a partial update.

        Deactivation and password changes revoke every outstanding token of
        the target user.
        """
        actor = self._require_admin(actor_uuid)
        user = self._load_user(uuid)

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        changed = []
        revoke_reason = None

        if changes.get("password"):
            user.change_password(self.password_hasher.hash_validated(changes["password"]))
            changed.append("password")
            revoke_reason = "Password changed"

        account = changes.get("account")
        if account and account != user.account:
            if self.user_repository.exists_by_account(account):
                raise ConflictError("Account already exists")
            user.account = account
            changed.append("account")

        if changes.get("code"):
            code = UserCode(changes["code"])
            if code != user.code:
                if self.user_repository.exists_by_code(code):
                    raise ConflictError("User code already exists")
                user.code = code
                changed.append("code")

        if changes.get("name"):
            user.name = changes["name"]
            changed.append("name")

        if changes.get("user_type"):
            user.user_type = self._user_type(changes["user_type"])
            changed.append("user_type")

        if changes.get("is_active") is not None:
            is_active = _parse_bool(changes["is_active"], "is_active")
            if is_active != user.is_active:
                if not is_active and user.uuid == actor.uuid:
                    raise ForbiddenError("Cannot deactivate your own account")
                if is_active:
                    user.activate()
                else:
                    user.deactivate()
                    revoke_reason = "User account deactivated"
                changed.append("is_active")

        if changed:
            user.updated_at = utcnow()
            self.user_repository.save(user)
        if revoke_reason:
            revoked = self.token_issuer.revoke_all(user.uuid, revoke_reason)
            logger.info("Revoked %d tokens for user %s: %s", revoked, user.uuid, revoke_reason)

        self.audit_service.record(
            actor.uuid, ACTION_UPDATE_USER, TARGET_USER, user.uuid,
            f"Updated user {user.account}: {', '.join(changed) or 'no changes'}",
        )
        self._commit()
        return user.to_dict()

    def delete_user(self, actor_uuid: str, uuid: str) -> None:
        actor = self._require_admin(actor_uuid)
        if actor.uuid == uuid:
            raise ForbiddenError("Cannot delete your own account")

        user = self._load_user(uuid)
        account = user.account
        self.user_repository.delete(user)
        self.audit_service.record(actor.uuid, ACTION_DELETE_USER, TARGET_USER, uuid, f"Deleted user {account}")
        self._commit()
