from __future__ import annotations

from sqlalchemy.ext.orderinglist import ordering_list

from ..extensions import db
from ..identifiers import BoxNumber, ShipmentNumber, UserCode
from ..time_utils import to_utc_z, utcnow
from ..validation import ConflictError, NotFoundError
from .packing import Box
from .types import IdentifierType


SHIPMENT_STATUS_CREATED = "CREATED"
SHIPMENT_STATUS_SHIPPED = "SHIPPED"
VALID_SHIPMENT_STATUSES = {SHIPMENT_STATUS_CREATED, SHIPMENT_STATUS_SHIPPED}


class Shipment(db.Model):
    """
    Outbound shipment of packed boxes.

    STATE MACHINE:
    - CREATED: boxes may be added and removed
    - SHIPPED: terminal, box list frozen

    Only CREATED -> SHIPPED exists; there is no reverse transition.
    The note stays editable in both states.
    """
    __tablename__ = "shipments"

    shipment_no = db.Column(IdentifierType(ShipmentNumber), primary_key=True)
    user_code = db.Column(IdentifierType(UserCode), nullable=False, index=True)

    created_by = db.Column(db.String(36), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    note = db.Column(db.Text, nullable=True)

    # CREATED | SHIPPED
    status = db.Column(db.String(16), nullable=False, default=SHIPMENT_STATUS_CREATED, index=True)
    shipped_at = db.Column(db.DateTime(timezone=True), nullable=True)

    boxes = db.relationship(
        "Box",
        order_by="Box.shipment_position",
        collection_class=ordering_list("shipment_position"),
    )

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("status", SHIPMENT_STATUS_CREATED)
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    @property
    def is_shipped(self) -> bool:
        return self.status == SHIPMENT_STATUS_SHIPPED

    @property
    def box_count(self) -> int:
        return len(self.boxes)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def _ensure_open(self, message: str) -> None:
        if self.is_shipped:
            raise ConflictError(message)

    def add_box(self, box: Box) -> None:
        self._ensure_open("Cannot add boxes to a shipped shipment")
        if box.shipment_no is not None:
            if box.shipment_no == self.shipment_no:
                raise ConflictError(f"Box {box.box_no} is already in this shipment")
            raise ConflictError(f"Box {box.box_no} is already assigned to shipment {box.shipment_no}")
        if box.product_count == 0:
            raise ConflictError("Cannot add empty box to shipment")

        self.boxes.append(box)
        box.assign_to_shipment(self.shipment_no)
        self.touch()

    def remove_box(self, box_no: BoxNumber) -> Box:
        self._ensure_open("Cannot remove boxes from a shipped shipment")
        for box in self.boxes:
            if box.box_no == box_no:
                break
        else:
            raise NotFoundError(f"Box {box_no} is not in shipment {self.shipment_no}")

        self.boxes.remove(box)
        box.remove_from_shipment()
        self.touch()
        return box

    def ship(self) -> None:
        self._ensure_open("Shipment is already shipped")
        if not self.boxes:
            raise ConflictError("Cannot ship empty shipment")

        now = utcnow()
        self.status = SHIPMENT_STATUS_SHIPPED
        self.shipped_at = now
        self.updated_at = now

    def update_note(self, note: str | None) -> None:
        self.note = note
        self.touch()

    def to_dict(self, include_boxes: bool = True) -> dict:
        data = {
            "shipment_no": str(self.shipment_no),
            "user_code": str(self.user_code),
            "status": self.status,
            "note": self.note,
            "box_count": self.box_count,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "shipped_at": to_utc_z(self.shipped_at) if self.shipped_at else None,
        }
        if include_boxes:
            data["boxes"] = [box.to_dict(include_products=False) for box in self.boxes]
        return data
