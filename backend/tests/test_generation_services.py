"""
Generation service tests.

Verifies:
- RFID derivation, product number defaulting and mismatch detection
- Box numbering per code + year, batch runs and the 99999 ceiling
- Shipment numbers: shape, collision retry and exhaustion
"""

import random

import pytest

from conftest import fixed_clock
from rfidtrack.identifiers import SKU, BoxNumber, ProductNumber, RfidTag, SerialNumber, ShipmentNumber, UserCode
from rfidtrack.models import Box
from rfidtrack.models.shipping import SHIPMENT_STATUS_CREATED
from rfidtrack.services.shipment_generation_service import ShipmentGenerationService, to_base36
from rfidtrack.validation import (
    ConflictError,
    FormatError,
    GenerationExhaustedError,
    MismatchError,
    SerialOverflowError,
)


SKU_VALUE = SKU("A252600201234")


# =============================================================================
# RFID GENERATION
# =============================================================================


class TestRfidGeneration:
    def test_concatenated_tag(self, container, operator_user):
        rfid = container.rfid_generation_service.generate_rfid(SKU_VALUE, SerialNumber("0001"), operator_user)
        assert rfid.rfid == RfidTag("A2526002012340001")
        assert rfid.product_no == ProductNumber("A2526002")
        assert rfid.created_by == operator_user.uuid
        assert rfid.box_no is None

    def test_explicit_matching_product_number(self, container, operator_user):
        rfid = container.rfid_generation_service.generate_rfid(
            SKU_VALUE, SerialNumber("0002"), operator_user, ProductNumber("A2526002")
        )
        assert rfid.serial_no == SerialNumber("0002")

    def test_mismatched_product_number(self, container, operator_user):
        with pytest.raises(MismatchError):
            container.rfid_generation_service.generate_rfid(
                SKU_VALUE, SerialNumber("0001"), operator_user, ProductNumber("B2526002")
            )

    def test_generated_entity_is_not_persisted(self, container, operator_user):
        container.rfid_generation_service.generate_rfid(SKU_VALUE, SerialNumber("0001"), operator_user)
        assert container.product_rfid_repository.find_by_rfid(RfidTag("A2526002012340001")) is None

    def test_second_generation_of_same_tag_conflicts(self, container, operator_user, db_session):
        service = container.rfid_generation_service
        first = service.generate_rfid(SKU_VALUE, SerialNumber("0001"), operator_user)
        container.product_rfid_repository.save(first)
        db_session.commit()

        with pytest.raises(ConflictError, match="already exists"):
            service.generate_rfid(SKU_VALUE, SerialNumber("0001"), operator_user)


# =============================================================================
# BOX GENERATION
# =============================================================================


class TestBoxGeneration:
    def test_first_box_of_the_year(self, container, operator_user):
        box = container.box_generation_service.generate_box("001", operator_user)
        assert box.box_no == BoxNumber("B001202500001")
        assert box.code == "001"

    def test_continues_after_latest(self, container, operator_user, db_session):
        db_session.add(Box(box_no=BoxNumber("B001202500041"), code="001", created_by=operator_user.uuid))
        db_session.add(Box(box_no=BoxNumber("B002202500900"), code="002", created_by=operator_user.uuid))
        db_session.commit()

        box = container.box_generation_service.generate_box("001", operator_user)
        assert box.box_no == BoxNumber("B001202500042")

    def test_other_years_do_not_count(self, container, operator_user, db_session):
        db_session.add(Box(box_no=BoxNumber("B001202400500"), code="001", created_by=operator_user.uuid))
        db_session.commit()

        box = container.box_generation_service.generate_box("001", operator_user)
        assert box.box_no.serial == 1

    def test_batch_is_consecutive(self, container, operator_user):
        boxes = container.box_generation_service.generate_batch_boxes("007", 3, operator_user)
        assert [b.box_no.value for b in boxes] == ["B007202500001", "B007202500002", "B007202500003"]

    @pytest.mark.parametrize("code", ["01", "0001", "A01", "", None, "001\n", "١٢٣"])
    def test_invalid_code(self, container, operator_user, code):
        with pytest.raises(FormatError, match="3 digits"):
            container.box_generation_service.generate_box(code, operator_user)

    def test_batch_overflow_is_all_or_nothing(self, container, operator_user, db_session):
        db_session.add(Box(box_no=BoxNumber("B001202599998"), code="001", created_by=operator_user.uuid))
        db_session.commit()

        with pytest.raises(SerialOverflowError):
            container.box_generation_service.generate_batch_boxes("001", 3, operator_user)

        # Exactly one slot left still works
        boxes = container.box_generation_service.generate_batch_boxes("001", 1, operator_user)
        assert boxes[0].box_no.serial == 99999


# =============================================================================
# SHIPMENT GENERATION
# =============================================================================


class TestShipmentGeneration:
    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"

    def test_number_shape(self, container, operator_user):
        shipment = container.shipment_generation_service.generate_shipment(
            UserCode("001"), operator_user, note="fragile"
        )
        number = shipment.shipment_no.value
        assert len(number) == 16
        assert number.startswith("001")
        millis = int(fixed_clock().timestamp() * 1000)
        assert number[3:].startswith(to_base36(millis))
        assert shipment.status == SHIPMENT_STATUS_CREATED
        assert shipment.note == "fragile"
        assert shipment.box_count == 0

    def test_retries_on_collision(self, operator_user):
        class FakeRepo:
            def __init__(self):
                self.calls = 0

            def exists(self, number):
                self.calls += 1
                return self.calls <= 3

        repo = FakeRepo()
        service = ShipmentGenerationService(repo, fixed_clock, rng=random.Random(7), max_attempts=10)
        number = service.generate_shipment_number(UserCode("001"))
        assert isinstance(number, ShipmentNumber)
        assert repo.calls == 4

    def test_exhaustion(self):
        class AlwaysTaken:
            def exists(self, number):
                return True

        service = ShipmentGenerationService(AlwaysTaken(), fixed_clock, rng=random.Random(7), max_attempts=5)
        with pytest.raises(GenerationExhaustedError, match="after 5 attempts"):
            service.generate_shipment_number(UserCode("001"))
