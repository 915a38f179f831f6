# Overview: RFID value derivation strategies (one is selected per deployment).

"""
RFID derivation

Two derivations exist for turning (SKU, product number, serial) into an
RfidTag, and they are NOT interchangeable: tags produced by one can never be
matched by the other. A deployment picks exactly one via the RFID_DERIVATION
config key and keeps it for the lifetime of its data.

    concat  SKU(13) + serial(4)                          e.g. A2526002012340001
    hashed  FNV-1a/128 of SKU + product + serial, first 17 uppercase hex digits
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .identifiers import SKU, ProductNumber, RfidTag, SerialNumber


FNV128_OFFSET_BASIS = 0x6C62272E07BB014262B821756295C58D
FNV128_PRIME = 0x0000000001000000000000000000013B
FNV128_MASK = (1 << 128) - 1


class RfidDerivationStrategy(ABC):
    name: str = ""

    @abstractmethod
    def derive(self, sku: SKU, product_no: ProductNumber, serial_no: SerialNumber) -> RfidTag:
        """Deterministically compute the tag for one physical unit."""


class ConcatenatedRfidStrategy(RfidDerivationStrategy):
    name = "concat"

    def derive(self, sku: SKU, product_no: ProductNumber, serial_no: SerialNumber) -> RfidTag:
        return RfidTag(f"{sku.value}{serial_no.value}")


def fnv1a_128(data: bytes) -> int:
    h = FNV128_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV128_PRIME) & FNV128_MASK
    return h


class HashedRfidStrategy(RfidDerivationStrategy):
    name = "hashed"

    def derive(self, sku: SKU, product_no: ProductNumber, serial_no: SerialNumber) -> RfidTag:
        source = f"{sku.value}{product_no.value}{serial_no.value}".encode("ascii")
        digest = format(fnv1a_128(source), "032X")
        return RfidTag(digest[: RfidTag.LENGTH])


RFID_STRATEGIES: dict[str, type[RfidDerivationStrategy]] = {
    ConcatenatedRfidStrategy.name: ConcatenatedRfidStrategy,
    HashedRfidStrategy.name: HashedRfidStrategy,
}


def get_rfid_strategy(name: str) -> RfidDerivationStrategy:
    try:
        return RFID_STRATEGIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown RFID derivation '{name}'. Must be one of: {', '.join(sorted(RFID_STRATEGIES))}"
        )
