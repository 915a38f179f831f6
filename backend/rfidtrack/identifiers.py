# Overview: Immutable, self-validating identifier value types.

"""
Identifier value types

Every structured code in the packing workflow is wrapped in a frozen
dataclass that validates its length and charset at construction. This is
the only place formats are enforced: models and services trust an
already-constructed identifier.

    UserCode        3   [A-Z0-9]
    ProductNumber   8   [A-Z0-9]   first 8 chars of a SKU
    SKU            13   [A-Z0-9]   product(8) + color(3) + size(2)
    SerialNumber    4   digits     0001-9999
    RfidTag        17   [A-Z0-9]
    BoxNumber      13   [A-Z0-9]   B + code(3) + year(4) + serial(5)
    ShipmentNumber 16   [A-Z0-9]

Equality is by value and by type: SKU("X...") never equals ProductNumber("X...").
Identifiers of one type order by value; the ORM sorts primary keys during flush.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar

from .validation import FormatError, SerialOverflowError


_ALNUM = re.compile(r"[A-Z0-9]+")
_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True, order=True)
class Identifier:
    value: str

    LABEL: ClassVar[str] = "Identifier"
    LENGTH: ClassVar[int] = 0
    PATTERN: ClassVar[re.Pattern] = _ALNUM
    CHARSET_MESSAGE: ClassVar[str] = "must contain only uppercase letters and numbers"

    def __post_init__(self) -> None:
        value = self.value
        if value is not None and not isinstance(value, str):
            raise FormatError(f"{self.LABEL} must be a string")
        if not value:
            raise FormatError(f"{self.LABEL} cannot be empty")
        if len(value) != self.LENGTH:
            raise FormatError(f"{self.LABEL} must be exactly {self.LENGTH} characters")
        if not self.PATTERN.fullmatch(value):
            raise FormatError(f"{self.LABEL} {self.CHARSET_MESSAGE}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class UserCode(Identifier):
    LABEL: ClassVar[str] = "User code"
    LENGTH: ClassVar[int] = 3


@dataclass(frozen=True, order=True)
class ProductNumber(Identifier):
    LABEL: ClassVar[str] = "Product number"
    LENGTH: ClassVar[int] = 8


@dataclass(frozen=True, order=True)
class SKU(Identifier):
    LABEL: ClassVar[str] = "SKU"
    LENGTH: ClassVar[int] = 13

    @property
    def product_number(self) -> ProductNumber:
        return ProductNumber(self.value[:8])

    @property
    def color(self) -> str:
        return self.value[8:11]

    @property
    def size(self) -> str:
        return self.value[11:13]


@dataclass(frozen=True, order=True)
class SerialNumber(Identifier):
    LABEL: ClassVar[str] = "Serial number"
    LENGTH: ClassVar[int] = 4
    PATTERN: ClassVar[re.Pattern] = _DIGITS
    CHARSET_MESSAGE: ClassVar[str] = "must be 4 digits"

    MAX: ClassVar[int] = 9999

    def __post_init__(self) -> None:
        super().__post_init__()
        if int(self.value) == 0:
            raise FormatError("Serial number must be between 0001 and 9999")

    @classmethod
    def from_int(cls, number: int) -> "SerialNumber":
        if number > cls.MAX:
            raise SerialOverflowError(f"Serial number exceeds {cls.MAX}")
        return cls(f"{number:04d}")

    def __int__(self) -> int:
        return int(self.value)


@dataclass(frozen=True, order=True)
class RfidTag(Identifier):
    LABEL: ClassVar[str] = "RFID tag"
    LENGTH: ClassVar[int] = 17


@dataclass(frozen=True, order=True)
class BoxNumber(Identifier):
    LABEL: ClassVar[str] = "Box number"
    LENGTH: ClassVar[int] = 13

    SERIAL_MAX: ClassVar[int] = 99999

    @classmethod
    def compose(cls, code: str, year: int, serial: int) -> "BoxNumber":
        return cls(f"{cls.prefix(code, year)}{serial:05d}")

    @staticmethod
    def prefix(code: str, year: int) -> str:
        return f"B{code}{year:04d}"

    @property
    def code(self) -> str:
        return self.value[1:4]

    @property
    def year(self) -> int:
        return int(self.value[4:8])

    @property
    def serial(self) -> int:
        return int(self.value[8:])


@dataclass(frozen=True, order=True)
class ShipmentNumber(Identifier):
    LABEL: ClassVar[str] = "Shipment number"
    LENGTH: ClassVar[int] = 16
