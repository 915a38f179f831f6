# Overview: Opaque access/refresh token issuance, validation and revocation.

"""
Token Management Service

WHY: Every API call is attributed to an actor. Tokens are opaque random
strings; the database stores only their SHA-256 hash.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Access tokens short-lived, refresh tokens long-lived
- Refresh is single use: rotating revokes the presented token
- Revocable on logout, deactivation or password change

Nothing here commits; the calling workflow owns the transaction.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..models import AuthToken, User
from ..models.auth import TOKEN_TYPE_ACCESS, TOKEN_TYPE_REFRESH
from ..time_utils import to_utc_z, utcnow
from ..validation import AuthenticationError


def generate_token() -> str:
    """
    64-character hex string (32 bytes of entropy).

    This is the plaintext sent to the client; it is never stored.
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is sufficient for high-entropy tokens (unlike passwords)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": "Bearer",
            "access_expires_at": to_utc_z(self.access_expires_at),
            "refresh_expires_at": to_utc_z(self.refresh_expires_at),
        }


class TokenIssuer:
    def __init__(self, session: Session, access_ttl: timedelta, refresh_ttl: timedelta):
        self.session = session
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def _store(self, user: User, token_type: str, ttl: timedelta, ip_address: Optional[str]) -> tuple[str, AuthToken]:
        plaintext = generate_token()
        now = utcnow()
        record = AuthToken(
            user_uuid=user.uuid,
            token_type=token_type,
            token_hash=hash_token(plaintext),
            created_at=now,
            expires_at=now + ttl,
            is_revoked=False,
            ip_address=ip_address,
        )
        self.session.add(record)
        return plaintext, record

    def issue_pair(self, user: User, ip_address: Optional[str] = None) -> TokenPair:
        access, access_record = self._store(user, TOKEN_TYPE_ACCESS, self.access_ttl, ip_address)
        refresh, refresh_record = self._store(user, TOKEN_TYPE_REFRESH, self.refresh_ttl, ip_address)
        self.session.flush()
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            access_expires_at=access_record.expires_at,
            refresh_expires_at=refresh_record.expires_at,
        )

    def _find_live(self, token: str, token_type: str) -> Optional[AuthToken]:
        if not token:
            return None
        record = (
            self.session.query(AuthToken)
            .filter_by(token_hash=hash_token(token), token_type=token_type, is_revoked=False)
            .first()
        )
        if record is None or record.expires_at < utcnow():
            return None
        return record

    def authenticate_access(self, token: str) -> Optional[User]:
        """
        Return the active user behind an access token, or None.

        A token whose user was deactivated is revoked on sight.
        """
        record = self._find_live(token, TOKEN_TYPE_ACCESS)
        if record is None:
            return None
        user = record.user
        if user is None or not user.is_active:
            record.revoke("User account deactivated")
            self.session.flush()
            return None
        return user

    def rotate_refresh(self, token: str, ip_address: Optional[str] = None) -> tuple[User, TokenPair]:
        record = self._find_live(token, TOKEN_TYPE_REFRESH)
        if record is None:
            raise AuthenticationError("Invalid or expired refresh token")

        user = record.user
        if user is None or not user.is_active:
            record.revoke("User account deactivated")
            self.session.flush()
            raise AuthenticationError("User not found or inactive")

        record.revoke("Rotated")
        return user, self.issue_pair(user, ip_address)

    def revoke(self, token: str, reason: str = "User logout") -> bool:
        record = (
            self.session.query(AuthToken)
            .filter_by(token_hash=hash_token(token), is_revoked=False)
            .first()
        )
        if record is None:
            return False
        record.revoke(reason)
        self.session.flush()
        return True

    def revoke_all(self, user_uuid: str, reason: str = "Revoke all tokens") -> int:
        records = self.session.query(AuthToken).filter_by(user_uuid=user_uuid, is_revoked=False).all()
        for record in records:
            record.revoke(reason)
        self.session.flush()
        return len(records)

    def cleanup_expired(self, older_than_days: int = 30) -> int:
        """Delete tokens that expired more than older_than_days ago."""
        cutoff = utcnow() - timedelta(days=older_than_days)
        deleted = (
            self.session.query(AuthToken)
            .filter(AuthToken.expires_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.session.flush()
        return deleted
