# Overview: Repository contracts the workflow services depend on.

"""
Repository interfaces

Services only see these Protocols, never the SQLAlchemy session directly, so
a workflow can be exercised against any store that honours the contracts
below (the SQL implementations live in repositories/sql.py).

Contract shared by every repository:
- find_by_x(key) returns the entity or None
- save(entity) stages and flushes; a uniqueness violation surfaces as
  ConflictError (the transaction is rolled back first)
- delete(entity) removes it within the current transaction
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from ..identifiers import SKU, BoxNumber, ProductNumber, RfidTag, SerialNumber, ShipmentNumber, UserCode
from ..models import Box, ProductRfid, Shipment, SystemLog, User
from ..validation import Pagination


T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return math.ceil(self.total / self.limit)

    def to_dict(self, items: Sequence[dict]) -> dict:
        return {
            "items": list(items),
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "total_pages": self.total_pages,
            },
        }


@dataclass
class LogFilters:
    user_uuid: Optional[str] = None
    action: Optional[str] = None
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass
class RfidFilters:
    sku: Optional[SKU] = None
    product_no: Optional[ProductNumber] = None
    box_no: Optional[BoxNumber] = None
    status: Optional[str] = None


@dataclass
class LogSummary:
    total: int
    unique_users: int
    top_actions: list[tuple[str, int]] = field(default_factory=list)
    recent: list[SystemLog] = field(default_factory=list)


@runtime_checkable
class UserRepository(Protocol):
    def find_by_uuid(self, uuid: str) -> Optional[User]: ...

    def find_by_account(self, account: str) -> Optional[User]: ...

    def find_by_code(self, code: UserCode) -> Optional[User]: ...

    def exists_by_account(self, account: str) -> bool: ...

    def exists_by_code(self, code: UserCode) -> bool: ...

    def find_all(
        self,
        pagination: Pagination,
        *,
        user_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page[User]: ...

    def save(self, user: User) -> User: ...

    def delete(self, user: User) -> None: ...


@runtime_checkable
class ProductRfidRepository(Protocol):
    def find_by_rfid(self, rfid: RfidTag) -> Optional[ProductRfid]: ...

    def exists(self, rfid: RfidTag) -> bool: ...

    def find_by_sku_and_serial(self, sku: SKU, serial_no: SerialNumber) -> Optional[ProductRfid]: ...

    def find_by_sku(self, sku: SKU) -> list[ProductRfid]: ...

    def find_latest_serial(self, sku: SKU) -> Optional[SerialNumber]: ...

    def find_all(self, pagination: Pagination, filters: RfidFilters) -> Page[ProductRfid]: ...

    def status_of(self, product_rfid: ProductRfid) -> str: ...

    def save(self, product_rfid: ProductRfid) -> ProductRfid: ...

    def delete(self, product_rfid: ProductRfid) -> None: ...


@runtime_checkable
class BoxRepository(Protocol):
    def find_by_box_no(self, box_no: BoxNumber) -> Optional[Box]: ...

    def exists(self, box_no: BoxNumber) -> bool: ...

    def find_latest_by_prefix(self, prefix: str) -> Optional[Box]: ...

    def find_all(
        self,
        pagination: Pagination,
        *,
        shipment_no: Optional[ShipmentNumber] = None,
        status: Optional[str] = None,
    ) -> Page[Box]: ...

    def save(self, box: Box) -> Box: ...

    def save_all(self, boxes: Sequence[Box]) -> list[Box]: ...

    def delete(self, box: Box) -> None: ...


@runtime_checkable
class ShipmentRepository(Protocol):
    def find_by_shipment_no(self, shipment_no: ShipmentNumber) -> Optional[Shipment]: ...

    def exists(self, shipment_no: ShipmentNumber) -> bool: ...

    def find_all(
        self,
        pagination: Pagination,
        *,
        status: Optional[str] = None,
        user_code: Optional[UserCode] = None,
    ) -> Page[Shipment]: ...

    def save(self, shipment: Shipment) -> Shipment: ...

    def delete(self, shipment: Shipment) -> None: ...


@runtime_checkable
class SystemLogRepository(Protocol):
    def append(self, entry: SystemLog) -> SystemLog: ...

    def find_all(self, pagination: Pagination, filters: LogFilters) -> Page[SystemLog]: ...

    def summary(self, *, top_actions: int = 5, recent: int = 10) -> LogSummary: ...
