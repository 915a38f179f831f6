# Overview: Builds ProductRfid entities from SKU, product number and serial.

from __future__ import annotations

from typing import Optional

from ..derivation import RfidDerivationStrategy
from ..identifiers import SKU, ProductNumber, SerialNumber
from ..models import ProductRfid, User
from ..repositories import ProductRfidRepository
from ..validation import ConflictError, MismatchError


class RfidGenerationService:
    """
    Deterministic RFID generation.

    The returned entity is NOT persisted; saving it is the caller's job.
    A tag that already exists is a hard failure: there is no retry because
    the same inputs always derive the same tag.
    """

    def __init__(self, product_rfid_repository: ProductRfidRepository, strategy: RfidDerivationStrategy):
        self.product_rfid_repository = product_rfid_repository
        self.strategy = strategy

    @staticmethod
    def resolve_product_number(sku: SKU, product_no: Optional[ProductNumber] = None) -> ProductNumber:
        """Product number defaults to the SKU prefix and must always equal it."""
        expected = sku.product_number
        if product_no is None:
            return expected
        if product_no != expected:
            raise MismatchError(f"Product number {product_no} does not match SKU prefix {expected}")
        return product_no

    def generate_rfid(
        self,
        sku: SKU,
        serial_no: SerialNumber,
        actor: User,
        product_no: Optional[ProductNumber] = None,
    ) -> ProductRfid:
        product_no = self.resolve_product_number(sku, product_no)
        rfid = self.strategy.derive(sku, product_no, serial_no)

        if self.product_rfid_repository.exists(rfid):
            raise ConflictError(f"RFID {rfid} already exists")

        return ProductRfid(
            rfid=rfid,
            sku=sku,
            product_no=product_no,
            serial_no=serial_no,
            created_by=actor.uuid,
        )
