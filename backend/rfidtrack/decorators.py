# Overview: Request decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .container import ServiceContainer
from .extensions import db


def get_container() -> ServiceContainer:
    """Request-scoped container, created on first use."""
    if "container" not in g:
        g.container = ServiceContainer(db.session, current_app.config, ip_address=request.remote_addr)
    return g.container


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid access token.

    Sets on flask.g:
    - g.current_user: the authenticated, active User
    - g.access_token: the presented token (for logout)

    Returns 401 if the header is missing, the token is unknown, expired or
    revoked, or the user has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        user = get_container().token_issuer.authenticate_access(token)
        if user is None:
            # authenticate_access may have revoked a token of a deactivated user
            db.session.commit()
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.access_token = token
        return f(*args, **kwargs)

    return decorated_function
