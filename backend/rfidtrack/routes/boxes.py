# Overview: Flask API routes for boxes and packing.

from flask import Blueprint, g, jsonify, request

from ..decorators import get_container, require_auth
from ..validation import require_fields


boxes_bp = Blueprint("boxes", __name__, url_prefix="/api/box")


@boxes_bp.post("")
@require_auth
def create_box():
    """
    Request body: {"code": "001"}

    Returns:
        201: Box created (box_no = B + code + year + 5-digit serial)
        400: Invalid code
    """
    data = require_fields(request.get_json(silent=True), "code")
    return jsonify(get_container().box_service.create_box(g.current_user.uuid, data["code"])), 201


@boxes_bp.post("/batch")
@require_auth
def create_batch_boxes():
    data = require_fields(request.get_json(silent=True), "code", "quantity")
    result = get_container().box_service.create_batch_boxes(g.current_user.uuid, data["code"], data["quantity"])
    return jsonify(result), 201


@boxes_bp.post("/add-rfid")
@require_auth
def add_rfid_to_box():
    data = require_fields(request.get_json(silent=True), "box_no", "rfid")
    result = get_container().box_service.add_rfid_to_box(g.current_user.uuid, data["box_no"], data["rfid"])
    return jsonify(result), 200


@boxes_bp.post("/remove-rfid")
@require_auth
def remove_rfid_from_box():
    data = require_fields(request.get_json(silent=True), "box_no", "rfid")
    result = get_container().box_service.remove_rfid_from_box(g.current_user.uuid, data["box_no"], data["rfid"])
    return jsonify(result), 200


@boxes_bp.get("")
@require_auth
def list_boxes():
    args = request.args
    result = get_container().box_service.list_boxes(
        g.current_user.uuid,
        shipment_no=args.get("shipment_no"),
        status=args.get("status"),
        page=args.get("page"),
        limit=args.get("limit"),
    )
    return jsonify(result), 200


@boxes_bp.get("/<box_no>")
@require_auth
def get_box(box_no: str):
    return jsonify(get_container().box_service.get_box(g.current_user.uuid, box_no)), 200
