"""
RFID derivation strategy tests.
"""

import pytest

from rfidtrack.derivation import (
    ConcatenatedRfidStrategy,
    HashedRfidStrategy,
    fnv1a_128,
    get_rfid_strategy,
)
from rfidtrack.identifiers import SKU, ProductNumber, RfidTag, SerialNumber


SKU_VALUE = SKU("A252600201234")
PRODUCT = ProductNumber("A2526002")


class TestConcatenatedStrategy:
    def test_sku_plus_serial(self):
        tag = ConcatenatedRfidStrategy().derive(SKU_VALUE, PRODUCT, SerialNumber("0001"))
        assert tag == RfidTag("A2526002012340001")


class TestHashedStrategy:
    def test_fnv1a_128_known_vector(self):
        # Empty input hashes to the offset basis
        assert fnv1a_128(b"") == 0x6C62272E07BB014262B821756295C58D

    def test_deterministic_17_uppercase_hex(self):
        strategy = HashedRfidStrategy()
        first = strategy.derive(SKU_VALUE, PRODUCT, SerialNumber("0001"))
        second = strategy.derive(SKU_VALUE, PRODUCT, SerialNumber("0001"))
        assert first == second
        assert len(first.value) == 17
        assert all(c in "0123456789ABCDEF" for c in first.value)

    def test_serial_changes_tag(self):
        strategy = HashedRfidStrategy()
        assert strategy.derive(SKU_VALUE, PRODUCT, SerialNumber("0001")) != strategy.derive(
            SKU_VALUE, PRODUCT, SerialNumber("0002")
        )

    def test_not_interchangeable_with_concat(self):
        serial = SerialNumber("0001")
        assert HashedRfidStrategy().derive(SKU_VALUE, PRODUCT, serial) != ConcatenatedRfidStrategy().derive(
            SKU_VALUE, PRODUCT, serial
        )


class TestStrategyLookup:
    @pytest.mark.parametrize("name,cls", [("concat", ConcatenatedRfidStrategy), ("hashed", HashedRfidStrategy)])
    def test_known_names(self, name, cls):
        assert isinstance(get_rfid_strategy(name), cls)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown RFID derivation"):
            get_rfid_strategy("md5")
