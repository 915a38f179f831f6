# Overview: Shipment workflows: create, add/remove boxes, ship, note, lookups.

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ..identifiers import BoxNumber, ShipmentNumber, UserCode
from ..models.shipping import VALID_SHIPMENT_STATUSES
from ..repositories import BoxRepository, ShipmentRepository, UserRepository
from ..validation import NotFoundError, parse_pagination
from .audit_service import (
    ACTION_ADD_BOX_TO_SHIPMENT,
    ACTION_REMOVE_BOX_FROM_SHIPMENT,
    ACTION_UPDATE_SHIPMENT_NOTE,
    TARGET_SHIPMENT,
    AuditService,
)
from .base import WorkflowService
from .shipment_generation_service import ShipmentGenerationService


class ShipmentService(WorkflowService):
    def __init__(
        self,
        session: Session,
        user_repository: UserRepository,
        audit_service: AuditService,
        shipment_repository: ShipmentRepository,
        box_repository: BoxRepository,
        shipment_generation_service: ShipmentGenerationService,
    ):
        super().__init__(session, user_repository, audit_service)
        self.shipment_repository = shipment_repository
        self.box_repository = box_repository
        self.shipment_generation_service = shipment_generation_service

    def _load_shipment(self, shipment_no: ShipmentNumber):
        shipment = self.shipment_repository.find_by_shipment_no(shipment_no)
        if shipment is None:
            raise NotFoundError("Shipment not found")
        return shipment

    def create_shipment(self, actor_uuid: str, user_code: Optional[str] = None, note: Optional[str] = None) -> dict:
        """user_code defaults to the actor's own code."""
        actor = self._require_active_actor(actor_uuid)
        code = UserCode(user_code) if user_code not in (None, "") else actor.code

        shipment = self.shipment_generation_service.generate_shipment(code, actor, note)
        self.shipment_repository.save(shipment)
        self.audit_service.log_create_shipment(actor.uuid, str(shipment.shipment_no))
        self._commit()
        return shipment.to_dict()

    def add_box_to_shipment(self, actor_uuid: str, shipment_no: str, box_no: str) -> dict:
        actor = self._require_active_actor(actor_uuid)
        number = ShipmentNumber(shipment_no)
        box_number = BoxNumber(box_no)

        shipment = self._load_shipment(number)
        box = self.box_repository.find_by_box_no(box_number)
        if box is None:
            raise NotFoundError("Box not found")

        shipment.add_box(box)
        self.shipment_repository.save(shipment)
        self.audit_service.record(
            actor.uuid, ACTION_ADD_BOX_TO_SHIPMENT, TARGET_SHIPMENT, str(number),
            f"Added box {box_number} to shipment {number}",
        )
        self._commit()
        return shipment.to_dict()

    def remove_box_from_shipment(self, actor_uuid: str, shipment_no: str, box_no: str) -> dict:
        actor = self._require_active_actor(actor_uuid)
        number = ShipmentNumber(shipment_no)
        box_number = BoxNumber(box_no)

        shipment = self._load_shipment(number)
        shipment.remove_box(box_number)
        self.shipment_repository.save(shipment)
        self.audit_service.record(
            actor.uuid, ACTION_REMOVE_BOX_FROM_SHIPMENT, TARGET_SHIPMENT, str(number),
            f"Removed box {box_number} from shipment {number}",
        )
        self._commit()
        return shipment.to_dict()

    def ship_shipment(self, actor_uuid: str, shipment_no: str) -> dict:
        actor = self._require_active_actor(actor_uuid)
        number = ShipmentNumber(shipment_no)

        shipment = self._load_shipment(number)
        shipment.ship()
        self.shipment_repository.save(shipment)
        self.audit_service.log_ship_shipment(actor.uuid, str(number), shipment.box_count)
        self._commit()
        return shipment.to_dict()

    def update_note(self, actor_uuid: str, shipment_no: str, note: Optional[str]) -> dict:
        actor = self._require_active_actor(actor_uuid)
        number = ShipmentNumber(shipment_no)

        shipment = self._load_shipment(number)
        shipment.update_note(note)
        self.shipment_repository.save(shipment)
        self.audit_service.record(
            actor.uuid, ACTION_UPDATE_SHIPMENT_NOTE, TARGET_SHIPMENT, str(number),
            f"Updated note on shipment {number}",
        )
        self._commit()
        return shipment.to_dict()

    def get_shipment(self, actor_uuid: str, shipment_no: str) -> dict:
        self._require_active_actor(actor_uuid)
        return self._load_shipment(ShipmentNumber(shipment_no)).to_dict()

    def list_shipments(
        self,
        actor_uuid: str,
        *,
        status: Optional[str] = None,
        user_code: Optional[str] = None,
        page=None,
        limit=None,
    ) -> dict:
        self._require_active_actor(actor_uuid)
        result = self.shipment_repository.find_all(
            parse_pagination(page, limit),
            status=self._choice(status, VALID_SHIPMENT_STATUSES, "status"),
            user_code=self._optional(UserCode, user_code),
        )
        return result.to_dict([s.to_dict(include_boxes=False) for s in result.items])
