# Overview: SQLAlchemy-backed repository implementations.

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..identifiers import SKU, BoxNumber, RfidTag, SerialNumber, ShipmentNumber, UserCode
from ..models import Box, ProductRfid, Shipment, SystemLog, User
from ..models.packing import (
    BOX_STATUS_CREATED,
    BOX_STATUS_PACKED,
    RFID_STATUS_AVAILABLE,
    RFID_STATUS_BOUND,
    RFID_STATUS_SHIPPED,
)
from ..models.shipping import SHIPMENT_STATUS_SHIPPED
from ..validation import ConflictError, Pagination, ValidationError
from .interfaces import LogFilters, LogSummary, Page, RfidFilters


logger = logging.getLogger(__name__)


def paginate(query, pagination: Pagination) -> Page:
    total = query.order_by(None).count()
    items = query.offset(pagination.offset).limit(pagination.limit).all()
    return Page(items=items, total=total, page=pagination.page, limit=pagination.limit)


class SqlRepository:
    """Shared session handling for the SQL repositories."""

    entity_label = "Record"

    def __init__(self, session: Session):
        self.session = session

    def _flush(self, key) -> None:
        """
        Flush pending writes; a unique-key violation becomes ConflictError.

        This is the final existence check for identifiers that were allocated
        from a "read latest" query and may have raced another writer.
        """
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("Uniqueness violation saving %s %s: %s", self.entity_label, key, exc.orig)
            raise ConflictError(f"{self.entity_label} {key} already exists") from exc

    def delete(self, entity) -> None:
        self.session.delete(entity)
        self.session.flush()


class SqlUserRepository(SqlRepository):
    entity_label = "User"

    def find_by_uuid(self, uuid: str) -> Optional[User]:
        return self.session.get(User, uuid)

    def find_by_account(self, account: str) -> Optional[User]:
        return self.session.query(User).filter_by(account=account).first()

    def find_by_code(self, code: UserCode) -> Optional[User]:
        return self.session.query(User).filter_by(code=code).first()

    def exists_by_account(self, account: str) -> bool:
        return self.session.query(User.uuid).filter_by(account=account).first() is not None

    def exists_by_code(self, code: UserCode) -> bool:
        return self.session.query(User.uuid).filter_by(code=code).first() is not None

    def find_all(self, pagination: Pagination, *, user_type=None, is_active=None) -> Page[User]:
        query = self.session.query(User)
        if user_type is not None:
            query = query.filter(User.user_type == user_type)
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))
        query = query.order_by(User.created_at.desc(), User.account.asc())
        return paginate(query, pagination)

    def save(self, user: User) -> User:
        self.session.add(user)
        self._flush(user.account)
        return user


class SqlProductRfidRepository(SqlRepository):
    entity_label = "RFID"

    def find_by_rfid(self, rfid: RfidTag) -> Optional[ProductRfid]:
        return self.session.get(ProductRfid, rfid)

    def exists(self, rfid: RfidTag) -> bool:
        return self.session.query(ProductRfid.rfid).filter(ProductRfid.rfid == rfid).first() is not None

    def find_by_sku_and_serial(self, sku: SKU, serial_no: SerialNumber) -> Optional[ProductRfid]:
        return (
            self.session.query(ProductRfid)
            .filter(ProductRfid.sku == sku, ProductRfid.serial_no == serial_no)
            .first()
        )

    def find_by_sku(self, sku: SKU) -> list[ProductRfid]:
        return (
            self.session.query(ProductRfid)
            .filter(ProductRfid.sku == sku)
            .order_by(ProductRfid.serial_no.asc())
            .all()
        )

    def find_latest_serial(self, sku: SKU) -> Optional[SerialNumber]:
        # Serials are fixed-width digits, so string order is numeric order
        latest = (
            self.session.query(ProductRfid)
            .filter(ProductRfid.sku == sku)
            .order_by(ProductRfid.serial_no.desc())
            .first()
        )
        return latest.serial_no if latest else None

    def find_all(self, pagination: Pagination, filters: RfidFilters) -> Page[ProductRfid]:
        query = self.session.query(ProductRfid)
        if filters.sku is not None:
            query = query.filter(ProductRfid.sku == filters.sku)
        if filters.product_no is not None:
            query = query.filter(ProductRfid.product_no == filters.product_no)
        if filters.box_no is not None:
            query = query.filter(ProductRfid.box_no == filters.box_no)

        if filters.status == RFID_STATUS_AVAILABLE:
            query = query.filter(ProductRfid.box_no.is_(None))
        elif filters.status == RFID_STATUS_BOUND:
            query = (
                query.join(Box, Box.box_no == ProductRfid.box_no)
                .outerjoin(Shipment, Shipment.shipment_no == Box.shipment_no)
                .filter((Shipment.status.is_(None)) | (Shipment.status != SHIPMENT_STATUS_SHIPPED))
            )
        elif filters.status == RFID_STATUS_SHIPPED:
            query = (
                query.join(Box, Box.box_no == ProductRfid.box_no)
                .join(Shipment, Shipment.shipment_no == Box.shipment_no)
                .filter(Shipment.status == SHIPMENT_STATUS_SHIPPED)
            )
        elif filters.status is not None:
            raise ValidationError(f"Invalid status: {filters.status}")

        query = query.order_by(ProductRfid.created_at.desc(), ProductRfid.rfid.asc())
        return paginate(query, pagination)

    def status_of(self, product_rfid: ProductRfid) -> str:
        if product_rfid.box_no is None:
            return RFID_STATUS_AVAILABLE
        shipment_status = (
            self.session.query(Shipment.status)
            .join(Box, Box.shipment_no == Shipment.shipment_no)
            .filter(Box.box_no == product_rfid.box_no)
            .scalar()
        )
        if shipment_status == SHIPMENT_STATUS_SHIPPED:
            return RFID_STATUS_SHIPPED
        return RFID_STATUS_BOUND

    def save(self, product_rfid: ProductRfid) -> ProductRfid:
        self.session.add(product_rfid)
        self._flush(product_rfid.rfid)
        return product_rfid


class SqlBoxRepository(SqlRepository):
    entity_label = "Box"

    def find_by_box_no(self, box_no: BoxNumber) -> Optional[Box]:
        return self.session.get(Box, box_no)

    def exists(self, box_no: BoxNumber) -> bool:
        return self.session.query(Box.box_no).filter(Box.box_no == box_no).first() is not None

    def find_latest_by_prefix(self, prefix: str) -> Optional[Box]:
        return (
            self.session.query(Box)
            .filter(Box.box_no.like(f"{prefix}%"))
            .order_by(Box.box_no.desc())
            .first()
        )

    def find_all(self, pagination: Pagination, *, shipment_no=None, status=None) -> Page[Box]:
        query = self.session.query(Box)
        if shipment_no is not None:
            query = query.filter(Box.shipment_no == shipment_no)
        if status == BOX_STATUS_CREATED:
            query = query.filter(Box.shipment_no.is_(None))
        elif status == BOX_STATUS_PACKED:
            query = query.filter(Box.shipment_no.isnot(None))
        elif status is not None:
            raise ValidationError(f"Invalid status: {status}")
        query = query.order_by(Box.created_at.desc(), Box.box_no.desc())
        return paginate(query, pagination)

    def save(self, box: Box) -> Box:
        self.session.add(box)
        self._flush(box.box_no)
        return box

    def save_all(self, boxes: Sequence[Box]) -> list[Box]:
        self.session.add_all(boxes)
        key = f"{boxes[0].box_no}..{boxes[-1].box_no}" if boxes else ""
        self._flush(key)
        return list(boxes)


class SqlShipmentRepository(SqlRepository):
    entity_label = "Shipment"

    def find_by_shipment_no(self, shipment_no: ShipmentNumber) -> Optional[Shipment]:
        return self.session.get(Shipment, shipment_no)

    def exists(self, shipment_no: ShipmentNumber) -> bool:
        return (
            self.session.query(Shipment.shipment_no)
            .filter(Shipment.shipment_no == shipment_no)
            .first()
            is not None
        )

    def find_all(self, pagination: Pagination, *, status=None, user_code=None) -> Page[Shipment]:
        query = self.session.query(Shipment)
        if status is not None:
            query = query.filter(Shipment.status == status)
        if user_code is not None:
            query = query.filter(Shipment.user_code == user_code)
        query = query.order_by(Shipment.created_at.desc(), Shipment.shipment_no.desc())
        return paginate(query, pagination)

    def save(self, shipment: Shipment) -> Shipment:
        self.session.add(shipment)
        self._flush(shipment.shipment_no)
        return shipment


class SqlSystemLogRepository(SqlRepository):
    entity_label = "Log entry"

    def append(self, entry: SystemLog) -> SystemLog:
        self.session.add(entry)
        self.session.flush()
        return entry

    def _filtered(self, filters: LogFilters):
        query = self.session.query(SystemLog)
        if filters.user_uuid:
            query = query.filter(SystemLog.user_uuid == filters.user_uuid)
        if filters.action:
            query = query.filter(SystemLog.action == filters.action)
        if filters.target_type:
            query = query.filter(SystemLog.target_type == filters.target_type)
        if filters.target_id:
            query = query.filter(SystemLog.target_id == filters.target_id)
        if filters.start_date:
            query = query.filter(SystemLog.created_at >= filters.start_date)
        if filters.end_date:
            query = query.filter(SystemLog.created_at <= filters.end_date)
        return query

    def find_all(self, pagination: Pagination, filters: LogFilters) -> Page[SystemLog]:
        query = self._filtered(filters).order_by(SystemLog.created_at.desc(), SystemLog.id.desc())
        return paginate(query, pagination)

    def summary(self, *, top_actions: int = 5, recent: int = 10) -> LogSummary:
        total = self.session.query(func.count(SystemLog.id)).scalar() or 0
        unique_users = self.session.query(func.count(func.distinct(SystemLog.user_uuid))).scalar() or 0

        action_count = func.count(SystemLog.id).label("count")
        top = (
            self.session.query(SystemLog.action, action_count)
            .group_by(SystemLog.action)
            .order_by(action_count.desc(), SystemLog.action.asc())
            .limit(top_actions)
            .all()
        )
        latest = (
            self.session.query(SystemLog)
            .order_by(SystemLog.created_at.desc(), SystemLog.id.desc())
            .limit(recent)
            .all()
        )
        return LogSummary(
            total=total,
            unique_users=unique_users,
            top_actions=[(action, count) for action, count in top],
            recent=latest,
        )
