# Overview: Flask API routes for user administration.

from flask import Blueprint, g, jsonify, request

from ..decorators import get_container, require_auth
from ..validation import require_fields


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.post("")
@require_auth
def create_user():
    """
    Admin only.

    Request body:
    {
        "account": str,
        "password": str (8+ chars, upper, lower, digit, special),
        "code": str (3, unique),
        "name": str,
        "user_type": "admin" | "user" | "supplier" (optional, default "user")
    }
    """
    data = require_fields(request.get_json(silent=True), "account", "password", "code", "name")
    result = get_container().user_service.create_user(
        g.current_user.uuid,
        account=data["account"],
        password=data["password"],
        code=data["code"],
        name=data["name"],
        user_type=data.get("user_type") or "user",
    )
    return jsonify(result), 201


@users_bp.get("")
@require_auth
def list_users():
    args = request.args
    result = get_container().user_service.list_users(
        g.current_user.uuid,
        user_type=args.get("user_type"),
        is_active=args.get("is_active"),
        page=args.get("page"),
        limit=args.get("limit"),
    )
    return jsonify(result), 200


@users_bp.get("/<uuid>")
@require_auth
def get_user(uuid: str):
    return jsonify(get_container().user_service.get_user(g.current_user.uuid, uuid)), 200


@users_bp.patch("/<uuid>")
@require_auth
def update_user(uuid: str):
    data = require_fields(request.get_json(silent=True))
    return jsonify(get_container().user_service.update_user(g.current_user.uuid, uuid, data)), 200


@users_bp.delete("/<uuid>")
@require_auth
def delete_user(uuid: str):
    get_container().user_service.delete_user(g.current_user.uuid, uuid)
    return jsonify({"message": "User deleted"}), 200
