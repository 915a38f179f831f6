# Overview: Audit sink; appends SystemLog entries inside the caller's transaction.

from __future__ import annotations

import logging
from typing import Optional

from ..models import SystemLog
from ..repositories import SystemLogRepository


logger = logging.getLogger(__name__)


ACTION_CREATE_RFID = "CREATE_RFID"
ACTION_BATCH_CREATE_RFID = "BATCH_CREATE_RFID"
ACTION_DELETE_RFID = "DELETE_RFID"
ACTION_CREATE_BOX = "CREATE_BOX"
ACTION_BATCH_CREATE_BOX = "BATCH_CREATE_BOX"
ACTION_ADD_RFID_TO_BOX = "ADD_RFID_TO_BOX"
ACTION_REMOVE_RFID_FROM_BOX = "REMOVE_RFID_FROM_BOX"
ACTION_CREATE_SHIPMENT = "CREATE_SHIPMENT"
ACTION_ADD_BOX_TO_SHIPMENT = "ADD_BOX_TO_SHIPMENT"
ACTION_REMOVE_BOX_FROM_SHIPMENT = "REMOVE_BOX_FROM_SHIPMENT"
ACTION_SHIP_SHIPMENT = "SHIP_SHIPMENT"
ACTION_UPDATE_SHIPMENT_NOTE = "UPDATE_SHIPMENT_NOTE"
ACTION_CREATE_USER = "CREATE_USER"
ACTION_UPDATE_USER = "UPDATE_USER"
ACTION_DELETE_USER = "DELETE_USER"
ACTION_LOGIN_SUCCESS = "LOGIN_SUCCESS"
ACTION_LOGIN_FAILED = "LOGIN_FAILED"
ACTION_LOGOUT = "LOGOUT"

TARGET_RFID = "rfid"
TARGET_BOX = "box"
TARGET_SHIPMENT = "shipment"
TARGET_USER = "user"


class AuditService:
    """
    Append-only audit trail.

    record() writes in the caller's transaction: if the audit row cannot be
    written the whole operation fails with it. Nothing here commits.
    """

    def __init__(self, system_log_repository: SystemLogRepository, ip_address: Optional[str] = None):
        self.system_log_repository = system_log_repository
        # Request-scoped default, set by the container for HTTP calls
        self.ip_address = ip_address

    def record(
        self,
        actor_uuid: str,
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        description: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> SystemLog:
        entry = SystemLog(
            user_uuid=actor_uuid,
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            description=description,
            ip_address=ip_address if ip_address is not None else self.ip_address,
        )
        self.system_log_repository.append(entry)
        logger.info("AUDIT %s by %s on %s:%s %s", action, actor_uuid, target_type, target_id, description or "")
        return entry

    def log_create_rfid(self, actor_uuid: str, rfid: str, sku: str) -> SystemLog:
        return self.record(actor_uuid, ACTION_CREATE_RFID, TARGET_RFID, rfid, f"Created RFID {rfid} for SKU {sku}")

    def log_create_box(self, actor_uuid: str, box_no: str) -> SystemLog:
        return self.record(actor_uuid, ACTION_CREATE_BOX, TARGET_BOX, box_no, f"Created box {box_no}")

    def log_batch_create_box(self, actor_uuid: str, code: str, box_numbers: list[str]) -> SystemLog:
        return self.record(
            actor_uuid,
            ACTION_BATCH_CREATE_BOX,
            TARGET_BOX,
            code,
            f"Created {len(box_numbers)} boxes for code {code}: {box_numbers[0]} to {box_numbers[-1]}",
        )

    def log_create_shipment(self, actor_uuid: str, shipment_no: str) -> SystemLog:
        return self.record(
            actor_uuid, ACTION_CREATE_SHIPMENT, TARGET_SHIPMENT, shipment_no, f"Created shipment {shipment_no}"
        )

    def log_ship_shipment(self, actor_uuid: str, shipment_no: str, box_count: int) -> SystemLog:
        return self.record(
            actor_uuid,
            ACTION_SHIP_SHIPMENT,
            TARGET_SHIPMENT,
            shipment_no,
            f"Shipped shipment with {box_count} boxes",
        )
