# Overview: Password hashing policy and the login / refresh / logout workflows.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Tokens managed separately (see token_service.py)
- Failed logins are audited even though the request fails
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from ..repositories import UserRepository
from ..validation import AuthenticationError, ForbiddenError, PasswordValidationError
from .audit_service import (
    ACTION_LOGIN_FAILED,
    ACTION_LOGIN_SUCCESS,
    ACTION_LOGOUT,
    TARGET_USER,
    AuditService,
)
from .base import WorkflowService
from .token_service import TokenIssuer


logger = logging.getLogger(__name__)

SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?'\":{}|<>_\-+=\[\]\\/;`~]")


@dataclass
class PasswordStrength:
    valid: bool
    errors: list[str] = field(default_factory=list)


class PasswordHasher:
    """bcrypt wrapper plus the password strength policy."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")  # Store as string in database

    def verify(self, password: str, password_hash: str) -> bool:
        """Timing-safe compare; a malformed stored hash simply fails."""
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

    @staticmethod
    def validate_strength(password: str) -> PasswordStrength:
        """
        Requirements:
        - Minimum 8 characters
        - At least one uppercase letter
        - At least one lowercase letter
        - At least one digit
        - At least one special character

        Every violated rule is reported, not just the first.
        """
        password = password or ""
        errors = []
        if len(password) < 8:
            errors.append("Password must be at least 8 characters long")
        if not re.search(r"[A-Z]", password):
            errors.append("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", password):
            errors.append("Password must contain at least one lowercase letter")
        if not re.search(r"\d", password):
            errors.append("Password must contain at least one digit")
        if not SPECIAL_CHARACTERS.search(password):
            errors.append("Password must contain at least one special character")
        return PasswordStrength(valid=not errors, errors=errors)

    def hash_validated(self, password: str) -> str:
        strength = self.validate_strength(password)
        if not strength.valid:
            raise PasswordValidationError(strength.errors)
        return self.hash(password)


class AuthService(WorkflowService):
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

    def login(self, account: str, password: str, ip_address: Optional[str] = None) -> dict:
        """
        Authenticate by account + password and issue a token pair.

        Unknown account and wrong password share one message so the
        response does not reveal which accounts exist.
        """
        user = self.user_repository.find_by_account(account)
        if user is None:
            logger.info("Login failed: unknown account %s", account)
            raise AuthenticationError("Invalid credentials")

        if not self.password_hasher.verify(password, user.password_hash):
            self.audit_service.record(
                user.uuid, ACTION_LOGIN_FAILED, TARGET_USER, user.uuid,
                "Failed login attempt: invalid password", ip_address,
            )
            # Commit the audit row before failing the request
            self._commit()
            raise AuthenticationError("Invalid credentials")

        if not user.is_active:
            raise ForbiddenError("Account is disabled")

        user.record_login()
        tokens = self.token_issuer.issue_pair(user, ip_address)
        self.audit_service.record(
            user.uuid, ACTION_LOGIN_SUCCESS, TARGET_USER, user.uuid,
            f"User {user.account} logged in", ip_address,
        )
        self._commit()
        return {"user": user.to_dict(), "tokens": tokens.to_dict()}

    def refresh(self, refresh_token: str, ip_address: Optional[str] = None) -> dict:
        user, tokens = self.token_issuer.rotate_refresh(refresh_token, ip_address)
        self._commit()
        return {"user": user.to_dict(), "tokens": tokens.to_dict()}

    def logout(self, actor_uuid: str, access_token: str, ip_address: Optional[str] = None) -> bool:
        actor = self._require_active_actor(actor_uuid)
        revoked = self.token_issuer.revoke(access_token, "User logout")
        self.audit_service.record(
            actor.uuid, ACTION_LOGOUT, TARGET_USER, actor.uuid, f"User {actor.account} logged out", ip_address,
        )
        self._commit()
        return revoked
