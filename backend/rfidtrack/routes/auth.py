# Overview: Flask API routes for login, token refresh and logout.

"""
Authentication API routes

- POST /api/auth/login     account + password -> user + token pair
- POST /api/auth/refresh   refresh token -> rotated token pair
- POST /api/auth/logout    revokes the presented access token
- GET  /api/auth/me        current user

Self-registration does not exist: accounts are created by administrators
(POST /api/users or `flask users create`).
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import get_container, require_auth
from ..validation import require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    data = require_fields(request.get_json(silent=True), "account", "password")
    result = get_container().auth_service.login(data["account"], data["password"], request.remote_addr)
    return jsonify(result), 200


@auth_bp.post("/refresh")
def refresh_route():
    data = require_fields(request.get_json(silent=True), "refresh_token")
    result = get_container().auth_service.refresh(data["refresh_token"], request.remote_addr)
    return jsonify(result), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    get_container().auth_service.logout(g.current_user.uuid, g.access_token, request.remote_addr)
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify(g.current_user.to_dict()), 200
