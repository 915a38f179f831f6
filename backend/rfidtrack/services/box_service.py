# Overview: Box workflows: create (single/batch), pack and unpack RFIDs, lookups.

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ..identifiers import BoxNumber, RfidTag, ShipmentNumber
from ..models.packing import BOX_STATUS_CREATED, BOX_STATUS_PACKED
from ..repositories import BoxRepository, ProductRfidRepository, UserRepository
from ..validation import ConflictError, NotFoundError, parse_int, parse_pagination
from .audit_service import ACTION_ADD_RFID_TO_BOX, ACTION_REMOVE_RFID_FROM_BOX, TARGET_BOX, AuditService
from .base import WorkflowService
from .box_generation_service import BoxGenerationService
from .concurrency import retry_on_conflict


MAX_BATCH_BOXES = 100


class BoxService(WorkflowService):
    def __init__(
        self,
        session: Session,
        user_repository: UserRepository,
        audit_service: AuditService,
        box_repository: BoxRepository,
        product_rfid_repository: ProductRfidRepository,
        box_generation_service: BoxGenerationService,
        allocation_attempts: int = 3,
    ):
        super().__init__(session, user_repository, audit_service)
        self.box_repository = box_repository
        self.product_rfid_repository = product_rfid_repository
        self.box_generation_service = box_generation_service
        self.allocation_attempts = allocation_attempts

    def _load_box(self, box_no: BoxNumber):
        box = self.box_repository.find_by_box_no(box_no)
        if box is None:
            raise NotFoundError("Box not found")
        return box

    def create_box(self, actor_uuid: str, code: str) -> dict:
        actor = self._require_active_actor(actor_uuid)
        BoxGenerationService.validate_code(code)

        def _allocate():
            # Re-reads the latest serial on every attempt
            box = self.box_generation_service.generate_box(code, actor)
            return self.box_repository.save(box)

        box = retry_on_conflict(_allocate, attempts=self.allocation_attempts, label="Box number")
        self.audit_service.log_create_box(actor.uuid, str(box.box_no))
        self._commit()
        return box.to_dict()

    def create_batch_boxes(self, actor_uuid: str, code: str, quantity) -> dict:
        actor = self._require_active_actor(actor_uuid)
        BoxGenerationService.validate_code(code)
        count = parse_int(quantity, "quantity", minimum=1, maximum=MAX_BATCH_BOXES)

        def _allocate():
            boxes = self.box_generation_service.generate_batch_boxes(code, count, actor)
            return self.box_repository.save_all(boxes)

        boxes = retry_on_conflict(_allocate, attempts=self.allocation_attempts, label="Box number batch")
        self.audit_service.log_batch_create_box(actor.uuid, code, [str(b.box_no) for b in boxes])
        self._commit()
        return {
            "code": code,
            "quantity": len(boxes),
            "boxes": [box.to_dict() for box in boxes],
        }

    def add_rfid_to_box(self, actor_uuid: str, box_no: str, rfid: str) -> dict:
        actor = self._require_active_actor(actor_uuid)
        box_number = BoxNumber(box_no)
        tag = RfidTag(rfid)

        box = self._load_box(box_number)
        box.ensure_open()

        product_rfid = self.product_rfid_repository.find_by_rfid(tag)
        if product_rfid is None:
            raise NotFoundError("RFID not found")

        box.add_product_rfid(product_rfid)
        self.box_repository.save(box)
        self.audit_service.record(
            actor.uuid, ACTION_ADD_RFID_TO_BOX, TARGET_BOX, str(box_number),
            f"Added RFID {tag} to box {box_number}",
        )
        self._commit()
        return box.to_dict()

    def remove_rfid_from_box(self, actor_uuid: str, box_no: str, rfid: str) -> dict:
        actor = self._require_active_actor(actor_uuid)
        box_number = BoxNumber(box_no)
        tag = RfidTag(rfid)

        box = self._load_box(box_number)
        box.ensure_open()

        product_rfid = self.product_rfid_repository.find_by_rfid(tag)
        if product_rfid is None:
            raise NotFoundError("RFID not found")
        if product_rfid.box_no is None:
            raise ConflictError("RFID is not assigned to any box")
        if product_rfid.box_no != box_number:
            raise ConflictError("RFID is not assigned to this box")

        box.remove_product_rfid(tag)
        self.box_repository.save(box)
        self.audit_service.record(
            actor.uuid, ACTION_REMOVE_RFID_FROM_BOX, TARGET_BOX, str(box_number),
            f"Removed RFID {tag} from box {box_number}",
        )
        self._commit()
        return box.to_dict()

    def get_box(self, actor_uuid: str, box_no: str) -> dict:
        self._require_active_actor(actor_uuid)
        return self._load_box(BoxNumber(box_no)).to_dict()

    def list_boxes(
        self,
        actor_uuid: str,
        *,
        shipment_no: Optional[str] = None,
        status: Optional[str] = None,
        page=None,
        limit=None,
    ) -> dict:
        self._require_active_actor(actor_uuid)
        result = self.box_repository.find_all(
            parse_pagination(page, limit),
            shipment_no=self._optional(ShipmentNumber, shipment_no),
            status=self._choice(status, {BOX_STATUS_CREATED, BOX_STATUS_PACKED}, "status"),
        )
        return result.to_dict([box.to_dict(include_products=False) for box in result.items])
