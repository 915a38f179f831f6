# Overview: Flask API routes for shipments.

from flask import Blueprint, g, jsonify, request

from ..decorators import get_container, require_auth
from ..validation import ValidationError, require_fields


shipments_bp = Blueprint("shipments", __name__, url_prefix="/api/shipment")


@shipments_bp.post("")
@require_auth
def create_shipment():
    """
    Request body:
    {
        "user_code": str (3, optional, defaults to the caller's code),
        "note": str (optional)
    }
    """
    data = require_fields(request.get_json(silent=True))
    result = get_container().shipment_service.create_shipment(
        g.current_user.uuid, user_code=data.get("user_code"), note=data.get("note")
    )
    return jsonify(result), 201


@shipments_bp.post("/add-box")
@require_auth
def add_box_to_shipment():
    data = require_fields(request.get_json(silent=True), "shipment_no", "box_no")
    result = get_container().shipment_service.add_box_to_shipment(
        g.current_user.uuid, data["shipment_no"], data["box_no"]
    )
    return jsonify(result), 200


@shipments_bp.post("/remove-box")
@require_auth
def remove_box_from_shipment():
    data = require_fields(request.get_json(silent=True), "shipment_no", "box_no")
    result = get_container().shipment_service.remove_box_from_shipment(
        g.current_user.uuid, data["shipment_no"], data["box_no"]
    )
    return jsonify(result), 200


@shipments_bp.post("/ship")
@require_auth
def ship_shipment():
    """
    Transition CREATED -> SHIPPED. Irreversible.

    Returns:
        200: Shipped
        409: Already shipped, or no boxes
    """
    data = require_fields(request.get_json(silent=True), "shipment_no")
    result = get_container().shipment_service.ship_shipment(g.current_user.uuid, data["shipment_no"])
    return jsonify(result), 200


@shipments_bp.patch("/<shipment_no>/note")
@require_auth
def update_shipment_note(shipment_no: str):
    data = require_fields(request.get_json(silent=True))
    if "note" not in data:
        raise ValidationError("Missing required fields: note")
    note = data["note"]
    if note is not None and not isinstance(note, str):
        raise ValidationError("note must be a string")
    result = get_container().shipment_service.update_note(g.current_user.uuid, shipment_no, note)
    return jsonify(result), 200


@shipments_bp.get("")
@require_auth
def list_shipments():
    args = request.args
    result = get_container().shipment_service.list_shipments(
        g.current_user.uuid,
        status=args.get("status"),
        user_code=args.get("user_code"),
        page=args.get("page"),
        limit=args.get("limit"),
    )
    return jsonify(result), 200


@shipments_bp.get("/<shipment_no>")
@require_auth
def get_shipment(shipment_no: str):
    return jsonify(get_container().shipment_service.get_shipment(g.current_user.uuid, shipment_no)), 200
