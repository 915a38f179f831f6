# Overview: Shared actor checks and transaction boundary for workflow services.

from __future__ import annotations

from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from ..models import User
from ..repositories import UserRepository
from ..validation import ForbiddenError, NotFoundError, ValidationError
from .audit_service import AuditService
from .concurrency import commit_with_retry


I = TypeVar("I")


class WorkflowService:
    """
    Every workflow operation follows the same shape:

    1. load the actor, NotFound if missing, Forbidden if inactive
    2. parse primitive inputs into identifier value types
    3. load referenced entities, NotFound if missing
    4. enforce cross-entity rules, 5. mutate through entity methods
    6. persist, 7. audit, 8. return a projection

    The commit at the end of each mutating operation is the unit of work.
    """

    def __init__(self, session: Session, user_repository: UserRepository, audit_service: AuditService):
        self.session = session
        self.user_repository = user_repository
        self.audit_service = audit_service

    def _require_active_actor(self, actor_uuid: str) -> User:
        actor = self.user_repository.find_by_uuid(actor_uuid)
        if actor is None:
            raise NotFoundError("User not found")
        if not actor.is_active:
            raise ForbiddenError("User is not active")
        return actor

    def _require_admin(self, actor_uuid: str) -> User:
        actor = self._require_active_actor(actor_uuid)
        if not actor.is_admin:
            raise ForbiddenError("Admin privileges required")
        return actor

    @staticmethod
    def _optional(factory: Callable[[str], I], raw) -> I | None:
        """Build an identifier filter, treating None/"" as absent."""
        if raw in (None, ""):
            return None
        return factory(raw)

    @staticmethod
    def _choice(raw, allowed: set[str], field: str) -> str | None:
        if raw in (None, ""):
            return None
        if raw not in allowed:
            raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")
        return raw

    def _commit(self) -> None:
        commit_with_retry(self.session)
