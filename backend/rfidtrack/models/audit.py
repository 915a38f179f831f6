from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class SystemLog(db.Model):
    """
    Append-only audit trail of workflow actions.

    WHY: Every RFID, box, shipment and user mutation is attributable to an
    actor. action is a free-form code (CREATE_BOX, SHIP_SHIPMENT, ...).

    IMMUTABLE: Never update or delete. user_uuid is deliberately not a
    foreign key so entries outlive deleted users.
    """
    __tablename__ = "system_logs"
    __table_args__ = (
        db.Index("ix_system_logs_user_action", "user_uuid", "action"),
        db.Index("ix_system_logs_target", "target_type", "target_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_uuid = db.Column(db.String(36), nullable=False, index=True)
    action = db.Column(db.String(64), nullable=False, index=True)
    target_type = db.Column(db.String(32), nullable=True)
    target_id = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("created_at", utcnow())
        super().__init__(**kwargs)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_uuid": self.user_uuid,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "description": self.description,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
        }
