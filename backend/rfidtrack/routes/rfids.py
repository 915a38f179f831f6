# Overview: Flask API routes for product RFID tags.

from flask import Blueprint, g, jsonify, request

from ..decorators import get_container, require_auth
from ..validation import require_fields


rfids_bp = Blueprint("rfids", __name__, url_prefix="/api/rfid")


@rfids_bp.post("")
@require_auth
def create_rfid():
    """
    Request body:
    {
        "sku": str (13),
        "serial_no": str (4 digits),
        "product_no": str (8, optional, defaults to the SKU prefix)
    }
    """
    data = require_fields(request.get_json(silent=True), "sku", "serial_no")
    result = get_container().rfid_service.create_rfid(
        g.current_user.uuid, data["sku"], data["serial_no"], data.get("product_no")
    )
    return jsonify(result), 201


@rfids_bp.post("/batch")
@require_auth
def batch_create_rfids():
    """
    Request body:
    {
        "sku": str,
        "start_serial": int (1-9999),
        "quantity": int (1-1000),
        "product_no": str (optional)
    }

    Always 201 once the input is valid; per-item results are in "items".
    """
    data = require_fields(request.get_json(silent=True), "sku", "start_serial", "quantity")
    result = get_container().rfid_service.batch_create_rfids(
        g.current_user.uuid,
        data["sku"],
        data["start_serial"],
        data["quantity"],
        product_no=data.get("product_no"),
    )
    return jsonify(result), 201


@rfids_bp.post("/generate")
@require_auth
def generate_rfids():
    data = require_fields(request.get_json(silent=True), "sku", "quantity")
    result = get_container().rfid_service.generate_product_rfids(g.current_user.uuid, data["sku"], data["quantity"])
    return jsonify(result), 201


@rfids_bp.get("")
@require_auth
def list_rfids():
    args = request.args
    result = get_container().rfid_service.query_rfids(
        g.current_user.uuid,
        sku=args.get("sku"),
        product_no=args.get("product_no"),
        box_no=args.get("box_no"),
        status=args.get("status"),
        page=args.get("page"),
        limit=args.get("limit"),
    )
    return jsonify(result), 200


@rfids_bp.get("/<rfid>")
@require_auth
def get_rfid(rfid: str):
    return jsonify(get_container().rfid_service.get_rfid(g.current_user.uuid, rfid)), 200


@rfids_bp.delete("/<rfid>")
@require_auth
def delete_rfid(rfid: str):
    get_container().rfid_service.delete_rfid(g.current_user.uuid, rfid)
    return jsonify({"message": f"RFID {rfid} deleted"}), 200
