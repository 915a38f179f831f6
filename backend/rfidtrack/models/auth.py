from __future__ import annotations

import uuid as uuid_lib

from ..extensions import db
from ..identifiers import UserCode
from ..time_utils import to_utc_z, utcnow
from .types import IdentifierType


USER_TYPE_ADMIN = "admin"
USER_TYPE_USER = "user"
USER_TYPE_SUPPLIER = "supplier"
VALID_USER_TYPES = {USER_TYPE_ADMIN, USER_TYPE_USER, USER_TYPE_SUPPLIER}

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class User(db.Model):
    """
    Operator, administrator or supplier account.

    WHY: Every RFID, box and shipment records the uuid of the user that
    created it, and every workflow action is attributed in system_logs.

    account and code are unique across the system. Users are never
    hard-deleted except by an explicit admin action (self-deletion is refused
    by the workflow layer).
    """
    __tablename__ = "users"

    uuid = db.Column(db.String(36), primary_key=True)
    account = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    code = db.Column(IdentifierType(UserCode), nullable=False, unique=True, index=True)
    name = db.Column(db.String(100), nullable=False)

    # admin | user | supplier
    user_type = db.Column(db.String(16), nullable=False, default=USER_TYPE_USER)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("uuid", str(uuid_lib.uuid4()))
        kwargs.setdefault("user_type", USER_TYPE_USER)
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    @property
    def is_admin(self) -> bool:
        return self.user_type == USER_TYPE_ADMIN

    @property
    def is_supplier(self) -> bool:
        return self.user_type == USER_TYPE_SUPPLIER

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = utcnow()

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = utcnow()

    def record_login(self) -> None:
        now = utcnow()
        self.last_login_at = now
        self.updated_at = now

    def change_password(self, password_hash: str) -> None:
        self.password_hash = password_hash
        self.updated_at = utcnow()

    def to_dict(self) -> dict:
        return {
            "uuid": self.uuid,
            "account": self.account,
            "code": str(self.code),
            "name": self.name,
            "user_type": self.user_type,
            "is_active": self.is_active,
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class AuthToken(db.Model):
    """
    Issued access / refresh token.

    SECURITY NOTES:
    - Only the SHA-256 hash of a token is stored, never the plaintext
    - Access tokens are short-lived, refresh tokens longer-lived
    - Refresh tokens are single use: refreshing revokes the old one
    - Revocable on logout, deactivation, or password change
    """
    __tablename__ = "auth_tokens"
    __table_args__ = (
        db.Index("ix_auth_tokens_user_active", "user_uuid", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_uuid = db.Column(db.String(36), db.ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False, index=True)

    # access | refresh
    token_type = db.Column(db.String(16), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship(
        "User",
        backref=db.backref("auth_tokens", lazy=True, cascade="all, delete-orphan"),
    )

    def revoke(self, reason: str) -> None:
        self.is_revoked = True
        self.revoked_at = utcnow()
        self.revoked_reason = reason

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_uuid": self.user_uuid,
            "token_type": self.token_type,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
