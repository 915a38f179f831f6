# Overview: Read-only audit log queries for administrators.

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ..repositories import LogFilters, SystemLogRepository, UserRepository
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError, parse_pagination
from .audit_service import AuditService
from .base import WorkflowService


def _parse_date(value: Optional[str], field: str):
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")


class LogService(WorkflowService):
    def __init__(
        self,
        session: Session,
        user_repository: UserRepository,
        audit_service: AuditService,
        system_log_repository: SystemLogRepository,
    ):
        super().__init__(session, user_repository, audit_service)
        self.system_log_repository = system_log_repository

    def query_logs(
        self,
        actor_uuid: str,
        *,
        user_uuid: Optional[str] = None,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        page=None,
        limit=None,
    ) -> dict:
        self._require_admin(actor_uuid)
        filters = LogFilters(
            user_uuid=user_uuid or None,
            action=action or None,
            target_type=target_type or None,
            target_id=target_id or None,
            start_date=_parse_date(start_date, "start_date"),
            end_date=_parse_date(end_date, "end_date"),
        )
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise ValidationError("start_date must be before end_date")

        result = self.system_log_repository.find_all(parse_pagination(page, limit), filters)
        return result.to_dict([entry.to_dict() for entry in result.items])

    def summary(self, actor_uuid: str) -> dict:
        self._require_admin(actor_uuid)
        summary = self.system_log_repository.summary(top_actions=5, recent=10)
        return {
            "total_logs": summary.total,
            "unique_users": summary.unique_users,
            "top_actions": [{"action": action, "count": count} for action, count in summary.top_actions],
            "recent_logs": [entry.to_dict() for entry in summary.recent],
        }
