# backend/rfidtrack/__init__.py
from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate
from .logging_config import configure_logging
from .validation import DomainError


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        db.session.rollback()
        app.logger.info("%s: %s", type(exc).__name__, exc)
        body = {"error": str(exc)}
        errors = getattr(exc, "errors", None)
        if errors:
            body["details"] = errors
        return jsonify(body), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500


def create_app(test_config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app)

    # Fail fast on a misconfigured derivation strategy
    from .derivation import get_rfid_strategy
    get_rfid_strategy(app.config["RFID_DERIVATION"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    register_error_handlers(app)

    @app.teardown_request
    def drop_request_container(exc):
        # Containers are per request even when tests share one app context
        g.pop("container", None)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.rfids import rfids_bp
    from .routes.boxes import boxes_bp
    from .routes.shipments import shipments_bp
    from .routes.users import users_bp
    from .routes.logs import logs_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(rfids_bp)
    app.register_blueprint(boxes_bp)
    app.register_blueprint(shipments_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(logs_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
