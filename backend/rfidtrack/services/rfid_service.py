# Overview: RFID workflows: single create, batch create, generate, query, delete.

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..identifiers import SKU, BoxNumber, ProductNumber, RfidTag, SerialNumber
from ..models import ProductRfid
from ..models.packing import VALID_RFID_STATUSES
from ..repositories import ProductRfidRepository, RfidFilters, UserRepository
from ..validation import ConflictError, DomainError, NotFoundError, SerialOverflowError, parse_int, parse_pagination
from .audit_service import ACTION_BATCH_CREATE_RFID, ACTION_DELETE_RFID, TARGET_RFID, AuditService
from .base import WorkflowService
from .rfid_generation_service import RfidGenerationService


logger = logging.getLogger(__name__)

MAX_BATCH_RFIDS = 1000

ITEM_CREATED = "created"
ITEM_SKIPPED = "skipped"


class RfidService(WorkflowService):
    def __init__(
        self,
        session: Session,
        user_repository: UserRepository,
        audit_service: AuditService,
        product_rfid_repository: ProductRfidRepository,
        rfid_generation_service: RfidGenerationService,
    ):
        super().__init__(session, user_repository, audit_service)
        self.product_rfid_repository = product_rfid_repository
        self.rfid_generation_service = rfid_generation_service

    def _project(self, product_rfid: ProductRfid) -> dict:
        data = product_rfid.to_dict()
        data["status"] = self.product_rfid_repository.status_of(product_rfid)
        return data

    def create_rfid(self, actor_uuid: str, sku: str, serial_no: str, product_no: Optional[str] = None) -> dict:
        actor = self._require_active_actor(actor_uuid)
        sku_value = SKU(sku)
        serial = SerialNumber(serial_no)
        product = self._optional(ProductNumber, product_no)

        if self.product_rfid_repository.find_by_sku_and_serial(sku_value, serial):
            raise ConflictError(f"Serial number {serial} already exists for SKU {sku_value}")

        product_rfid = self.rfid_generation_service.generate_rfid(sku_value, serial, actor, product)
        self.product_rfid_repository.save(product_rfid)
        self.audit_service.log_create_rfid(actor.uuid, str(product_rfid.rfid), str(sku_value))
        self._commit()
        return self._project(product_rfid)

    def batch_create_rfids(
        self,
        actor_uuid: str,
        sku: str,
        start_serial,
        quantity,
        product_no: Optional[str] = None,
    ) -> dict:
        """
        Create a contiguous serial run.

        Per-item failures (serial past 9999, serial already used, tag
        collision) are reported inline as "skipped" and do not abort the
        batch. Input errors (bad SKU, mismatched product number, bad
        quantity) still fail the whole call.
        """
        actor = self._require_active_actor(actor_uuid)
        sku_value = SKU(sku)
        start = parse_int(start_serial, "start_serial", minimum=1, maximum=SerialNumber.MAX)
        count = parse_int(quantity, "quantity", minimum=1, maximum=MAX_BATCH_RFIDS)
        product = self.rfid_generation_service.resolve_product_number(
            sku_value, self._optional(ProductNumber, product_no)
        )

        items = []
        created = []
        for number in range(start, start + count):
            try:
                serial = SerialNumber.from_int(number)
            except SerialOverflowError as exc:
                items.append({"serial_no": f"{number:04d}", "status": ITEM_SKIPPED, "reason": str(exc)})
                continue

            existing = self.product_rfid_repository.find_by_sku_and_serial(sku_value, serial)
            if existing is not None:
                items.append({
                    "serial_no": str(serial),
                    "status": ITEM_SKIPPED,
                    "reason": "Serial number already exists",
                    "rfid": str(existing.rfid),
                })
                continue

            try:
                product_rfid = self.rfid_generation_service.generate_rfid(sku_value, serial, actor, product)
            except DomainError as exc:
                items.append({"serial_no": str(serial), "status": ITEM_SKIPPED, "reason": str(exc)})
                continue

            self.product_rfid_repository.save(product_rfid)
            created.append(product_rfid)
            items.append({"serial_no": str(serial), "status": ITEM_CREATED, "rfid": str(product_rfid.rfid)})

        skipped = count - len(created)
        if skipped:
            logger.info("Batch RFID for SKU %s: %d created, %d skipped", sku_value, len(created), skipped)

        self.audit_service.record(
            actor.uuid,
            ACTION_BATCH_CREATE_RFID,
            TARGET_RFID,
            str(sku_value),
            f"Batch created {len(created)} of {count} RFIDs for SKU {sku_value} starting at serial {start:04d}",
        )
        self._commit()
        return {
            "sku": str(sku_value),
            "total_requested": count,
            "total_created": len(created),
            "failed": skipped,
            "items": items,
            "rfids": [self._project(p) for p in created],
        }

    def generate_product_rfids(self, actor_uuid: str, sku: str, quantity) -> dict:
        """
        Generate `quantity` new tags continuing after the SKU's highest serial.

        The run is checked against 9999 up front, so either the whole run
        fits or nothing is generated.
        """
        actor = self._require_active_actor(actor_uuid)
        sku_value = SKU(sku)
        count = parse_int(quantity, "quantity", minimum=1, maximum=MAX_BATCH_RFIDS)

        latest = self.product_rfid_repository.find_latest_serial(sku_value)
        start = int(latest) + 1 if latest else 1
        end = start + count - 1
        if end > SerialNumber.MAX:
            raise SerialOverflowError(
                f"Cannot generate {count} RFIDs for SKU {sku_value}: serial number would exceed {SerialNumber.MAX}"
            )

        created = []
        for number in range(start, end + 1):
            serial = SerialNumber.from_int(number)
            try:
                product_rfid = self.rfid_generation_service.generate_rfid(sku_value, serial, actor)
            except ConflictError as exc:
                logger.warning("Skipping serial %s for SKU %s: %s", serial, sku_value, exc)
                continue
            self.product_rfid_repository.save(product_rfid)
            self.audit_service.log_create_rfid(actor.uuid, str(product_rfid.rfid), str(sku_value))
            created.append(product_rfid)

        self._commit()
        return {
            "sku": str(sku_value),
            "product_no": str(sku_value.product_number),
            "generated_count": len(created),
            "start_serial": f"{start:04d}",
            "end_serial": f"{end:04d}",
            "rfids": [self._project(p) for p in created],
        }

    def get_rfid(self, actor_uuid: str, rfid: str) -> dict:
        self._require_active_actor(actor_uuid)
        product_rfid = self.product_rfid_repository.find_by_rfid(RfidTag(rfid))
        if product_rfid is None:
            raise NotFoundError("RFID not found")
        return self._project(product_rfid)

    def query_rfids(
        self,
        actor_uuid: str,
        *,
        sku: Optional[str] = None,
        product_no: Optional[str] = None,
        box_no: Optional[str] = None,
        status: Optional[str] = None,
        page=None,
        limit=None,
    ) -> dict:
        self._require_active_actor(actor_uuid)
        filters = RfidFilters(
            sku=self._optional(SKU, sku),
            product_no=self._optional(ProductNumber, product_no),
            box_no=self._optional(BoxNumber, box_no),
            status=self._choice(status, VALID_RFID_STATUSES, "status"),
        )
        result = self.product_rfid_repository.find_all(parse_pagination(page, limit), filters)
        return result.to_dict([self._project(p) for p in result.items])

    def delete_rfid(self, actor_uuid: str, rfid: str) -> None:
        actor = self._require_admin(actor_uuid)
        tag = RfidTag(rfid)
        product_rfid = self.product_rfid_repository.find_by_rfid(tag)
        if product_rfid is None:
            raise NotFoundError("RFID not found")
        if product_rfid.is_assigned_to_box:
            raise ConflictError(f"Cannot delete RFID {tag}: it is packed in box {product_rfid.box_no}")

        self.product_rfid_repository.delete(product_rfid)
        self.audit_service.record(actor.uuid, ACTION_DELETE_RFID, TARGET_RFID, str(tag), f"Deleted RFID {tag}")
        self._commit()
