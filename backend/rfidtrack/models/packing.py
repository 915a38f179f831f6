from __future__ import annotations

from sqlalchemy.ext.orderinglist import ordering_list

from ..extensions import db
from ..identifiers import SKU, BoxNumber, ProductNumber, RfidTag, SerialNumber, ShipmentNumber
from ..time_utils import to_utc_z, utcnow
from ..validation import ConflictError, NotFoundError
from .types import IdentifierType


BOX_STATUS_CREATED = "CREATED"
BOX_STATUS_PACKED = "PACKED"

RFID_STATUS_AVAILABLE = "available"
RFID_STATUS_BOUND = "bound"
RFID_STATUS_SHIPPED = "shipped"
VALID_RFID_STATUSES = {RFID_STATUS_AVAILABLE, RFID_STATUS_BOUND, RFID_STATUS_SHIPPED}


class ProductRfid(db.Model):
    """
    One physical unit, identified by its RFID tag.

    box_no is a back-reference maintained by Box.add_product_rfid /
    Box.remove_product_rfid. Nothing else mutates a ProductRfid after creation.
    """
    __tablename__ = "product_rfids"
    __table_args__ = (
        db.UniqueConstraint("sku", "serial_no", name="uq_product_rfids_sku_serial"),
    )

    rfid = db.Column(IdentifierType(RfidTag), primary_key=True)
    sku = db.Column(IdentifierType(SKU), nullable=False, index=True)
    product_no = db.Column(IdentifierType(ProductNumber), nullable=False, index=True)
    serial_no = db.Column(IdentifierType(SerialNumber), nullable=False)

    created_by = db.Column(db.String(36), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    box_no = db.Column(IdentifierType(BoxNumber), db.ForeignKey("boxes.box_no"), nullable=True, index=True)
    # Packing order inside the owning box (managed by ordering_list)
    box_position = db.Column(db.Integer, nullable=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("created_at", utcnow())
        super().__init__(**kwargs)

    @property
    def is_assigned_to_box(self) -> bool:
        return self.box_no is not None

    def assign_to_box(self, box_no: BoxNumber) -> None:
        self.box_no = box_no

    def remove_from_box(self) -> None:
        self.box_no = None
        self.box_position = None

    def to_dict(self) -> dict:
        return {
            "rfid": str(self.rfid),
            "sku": str(self.sku),
            "product_no": str(self.product_no),
            "serial_no": str(self.serial_no),
            "box_no": str(self.box_no) if self.box_no else None,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class Box(db.Model):
    """
    Packing box.

    STATES:
    - open: shipment_no is NULL, contents may change
    - packed (locked): shipment_no is set, contents are frozen

    The box owns its product list; insertion order is packing order.
    """
    __tablename__ = "boxes"

    box_no = db.Column(IdentifierType(BoxNumber), primary_key=True)
    code = db.Column(db.String(3), nullable=False, index=True)

    created_by = db.Column(db.String(36), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    shipment_no = db.Column(
        IdentifierType(ShipmentNumber),
        db.ForeignKey("shipments.shipment_no"),
        nullable=True,
        index=True,
    )
    shipment_position = db.Column(db.Integer, nullable=True)

    product_rfids = db.relationship(
        "ProductRfid",
        order_by="ProductRfid.box_position",
        collection_class=ordering_list("box_position"),
    )

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    @property
    def is_locked(self) -> bool:
        return self.shipment_no is not None

    @property
    def product_count(self) -> int:
        return len(self.product_rfids)

    @property
    def status(self) -> str:
        return BOX_STATUS_PACKED if self.is_locked else BOX_STATUS_CREATED

    def touch(self) -> None:
        self.updated_at = utcnow()

    def ensure_open(self) -> None:
        if self.is_locked:
            raise ConflictError("Cannot modify box that is assigned to a shipment")

    def add_product_rfid(self, product_rfid: ProductRfid) -> None:
        self.ensure_open()
        if product_rfid.is_assigned_to_box:
            if product_rfid.box_no == self.box_no:
                raise ConflictError(f"RFID {product_rfid.rfid} is already in this box")
            raise ConflictError(f"RFID {product_rfid.rfid} is already assigned to box {product_rfid.box_no}")

        self.product_rfids.append(product_rfid)
        product_rfid.assign_to_box(self.box_no)
        self.touch()

    def remove_product_rfid(self, rfid: RfidTag) -> ProductRfid:
        self.ensure_open()
        for product_rfid in self.product_rfids:
            if product_rfid.rfid == rfid:
                break
        else:
            raise NotFoundError(f"RFID {rfid} is not in box {self.box_no}")

        self.product_rfids.remove(product_rfid)
        product_rfid.remove_from_box()
        self.touch()
        return product_rfid

    def assign_to_shipment(self, shipment_no: ShipmentNumber) -> None:
        if self.shipment_no is not None:
            if self.shipment_no == shipment_no:
                return
            raise ConflictError(f"Box {self.box_no} is already assigned to shipment {self.shipment_no}")
        self.shipment_no = shipment_no
        self.touch()

    def remove_from_shipment(self) -> None:
        self.shipment_no = None
        self.shipment_position = None
        self.touch()

    def to_dict(self, include_products: bool = True) -> dict:
        data = {
            "box_no": str(self.box_no),
            "code": self.code,
            "shipment_no": str(self.shipment_no) if self.shipment_no else None,
            "status": self.status,
            "product_count": self.product_count,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_products:
            data["product_rfids"] = [str(p.rfid) for p in self.product_rfids]
        return data
