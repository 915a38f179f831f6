# Overview: Flask API routes for the audit log (admin only).

from flask import Blueprint, g, jsonify, request

from ..decorators import get_container, require_auth


logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.get("")
@require_auth
def query_logs():
    """
    Query params: user_uuid, action, target_type, target_id,
    start_date, end_date (ISO-8601), page, limit (max 100).
    """
    args = request.args
    result = get_container().log_service.query_logs(
        g.current_user.uuid,
        user_uuid=args.get("user_uuid"),
        action=args.get("action"),
        target_type=args.get("target_type"),
        target_id=args.get("target_id"),
        start_date=args.get("start_date"),
        end_date=args.get("end_date"),
        page=args.get("page"),
        limit=args.get("limit"),
    )
    return jsonify(result), 200


@logs_bp.get("/summary")
@require_auth
def log_summary():
    return jsonify(get_container().log_service.summary(g.current_user.uuid)), 200
