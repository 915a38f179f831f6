"""
RFID workflow tests.

Verifies:
- Single create (audit, duplicate serial)
- Batch create with per-item skips (serial > 9999, existing serial)
- Generate continuing after the SKU's highest serial
- Query with status filter, admin-only delete
"""

import pytest

from rfidtrack.identifiers import RfidTag
from rfidtrack.models import SystemLog
from rfidtrack.validation import (
    ConflictError,
    ForbiddenError,
    MismatchError,
    NotFoundError,
    SerialOverflowError,
    ValidationError,
)


SKU = "A252600201234"


class TestActorChecks:
    def test_unknown_actor(self, container):
        with pytest.raises(NotFoundError, match="User not found"):
            container.rfid_service.create_rfid("missing-uuid", SKU, "0001")

    def test_inactive_actor(self, container, inactive_user):
        with pytest.raises(ForbiddenError):
            container.rfid_service.create_rfid(inactive_user.uuid, SKU, "0001")


class TestCreateRfid:
    def test_creates_and_audits(self, container, operator_user, db_session):
        result = container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001")

        assert result["rfid"] == "A2526002012340001"
        assert result["product_no"] == "A2526002"
        assert result["status"] == "available"

        log = db_session.query(SystemLog).filter_by(action="CREATE_RFID").one()
        assert log.user_uuid == operator_user.uuid
        assert log.target_id == "A2526002012340001"

    def test_duplicate_serial_conflicts(self, container, operator_user):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001")
        with pytest.raises(ConflictError, match="already exists"):
            container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001")

    def test_product_number_mismatch(self, container, operator_user):
        with pytest.raises(MismatchError):
            container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001", product_no="ZZZZZZZZ")


class TestBatchCreate:
    def test_contiguous_run(self, container, operator_user):
        result = container.rfid_service.batch_create_rfids(operator_user.uuid, SKU, 1, 3)
        assert result["total_created"] == 3
        assert [r["rfid"] for r in result["rfids"]] == [
            "A2526002012340001",
            "A2526002012340002",
            "A2526002012340003",
        ]

    def test_serials_past_9999_are_skipped(self, container, operator_user):
        result = container.rfid_service.batch_create_rfids(operator_user.uuid, SKU, 9998, 5)

        assert result["total_requested"] == 5
        assert result["total_created"] == 2
        assert result["failed"] == 3
        statuses = [(item["serial_no"], item["status"]) for item in result["items"]]
        assert statuses == [
            ("9998", "created"),
            ("9999", "created"),
            ("10000", "skipped"),
            ("10001", "skipped"),
            ("10002", "skipped"),
        ]
        assert result["items"][2]["reason"] == "Serial number exceeds 9999"
        assert result["total_created"] + result["failed"] == result["total_requested"]
        for item in result["items"]:
            assert ("reason" in item) == (item["status"] == "skipped")

    def test_existing_serials_are_skipped(self, container, operator_user):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "0002")
        result = container.rfid_service.batch_create_rfids(operator_user.uuid, SKU, 1, 3)

        assert result["total_created"] == 2
        skipped = [item for item in result["items"] if item["status"] == "skipped"]
        assert skipped == [{
            "serial_no": "0002",
            "status": "skipped",
            "reason": "Serial number already exists",
            "rfid": "A2526002012340002",
        }]

    def test_single_batch_audit_entry(self, container, operator_user, db_session):
        container.rfid_service.batch_create_rfids(operator_user.uuid, SKU, 1, 4)
        assert db_session.query(SystemLog).filter_by(action="BATCH_CREATE_RFID").count() == 1

    @pytest.mark.parametrize("start,quantity", [(0, 1), (10000, 1), (1, 0), (1, 1001)])
    def test_bounds(self, container, operator_user, start, quantity):
        with pytest.raises(ValidationError):
            container.rfid_service.batch_create_rfids(operator_user.uuid, SKU, start, quantity)


class TestGenerateProductRfids:
    def test_starts_at_one(self, container, operator_user):
        result = container.rfid_service.generate_product_rfids(operator_user.uuid, SKU, 2)
        assert result["generated_count"] == 2
        assert (result["start_serial"], result["end_serial"]) == ("0001", "0002")

    def test_continues_after_highest_serial(self, container, operator_user):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "0010")
        result = container.rfid_service.generate_product_rfids(operator_user.uuid, SKU, 2)
        assert [r["serial_no"] for r in result["rfids"]] == ["0011", "0012"]

    def test_overflow_fails_up_front(self, container, operator_user, db_session):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "9998")
        with pytest.raises(SerialOverflowError):
            container.rfid_service.generate_product_rfids(operator_user.uuid, SKU, 2)


class TestQueryAndDelete:
    def test_status_filter(self, container, operator_user):
        container.rfid_service.batch_create_rfids(operator_user.uuid, SKU, 1, 2)
        box = container.box_service.create_box(operator_user.uuid, "001")
        container.box_service.add_rfid_to_box(operator_user.uuid, box["box_no"], "A2526002012340001")

        bound = container.rfid_service.query_rfids(operator_user.uuid, status="bound")
        available = container.rfid_service.query_rfids(operator_user.uuid, status="available")

        assert [r["rfid"] for r in bound["items"]] == ["A2526002012340001"]
        assert [r["rfid"] for r in available["items"]] == ["A2526002012340002"]
        assert available["pagination"]["total"] == 1

    def test_shipped_status(self, container, operator_user):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001")
        box = container.box_service.create_box(operator_user.uuid, "001")
        container.box_service.add_rfid_to_box(operator_user.uuid, box["box_no"], "A2526002012340001")
        shipment = container.shipment_service.create_shipment(operator_user.uuid)
        container.shipment_service.add_box_to_shipment(operator_user.uuid, shipment["shipment_no"], box["box_no"])
        container.shipment_service.ship_shipment(operator_user.uuid, shipment["shipment_no"])

        result = container.rfid_service.get_rfid(operator_user.uuid, "A2526002012340001")
        assert result["status"] == "shipped"

    def test_invalid_status(self, container, operator_user):
        with pytest.raises(ValidationError):
            container.rfid_service.query_rfids(operator_user.uuid, status="lost")

    def test_delete_requires_admin(self, container, operator_user):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001")
        with pytest.raises(ForbiddenError):
            container.rfid_service.delete_rfid(operator_user.uuid, "A2526002012340001")

    def test_admin_delete(self, container, operator_user, admin_user):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001")
        container.rfid_service.delete_rfid(admin_user.uuid, "A2526002012340001")
        assert container.product_rfid_repository.find_by_rfid(RfidTag("A2526002012340001")) is None

    def test_boxed_rfid_cannot_be_deleted(self, container, operator_user, admin_user):
        container.rfid_service.create_rfid(operator_user.uuid, SKU, "0001")
        box = container.box_service.create_box(operator_user.uuid, "001")
        container.box_service.add_rfid_to_box(operator_user.uuid, box["box_no"], "A2526002012340001")
        with pytest.raises(ConflictError, match="packed in box"):
            container.rfid_service.delete_rfid(admin_user.uuid, "A2526002012340001")
