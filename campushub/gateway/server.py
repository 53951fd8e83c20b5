"""
API gateway: combines the user and admin blueprints.
This is the entrypoint for local development and for WSGI servers
(`campushub.gateway.server:create_app()`).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from campushub.admin_service.routes import admin_bp
from campushub.auth_service import store
from campushub.auth_service import utils as auth_utils
from campushub.config import load_config
from campushub.database.db_connection import configure_db
from campushub.notify_service import mailer
from campushub.user_service.routes import user_bp

LOG_FORMAT = "[%(levelname)s] %(asctime)s - %(message)s"


def build_notifier(config: Dict[str, Any]) -> mailer.Notifier:
    """Create the notifier described by `config`; mail is off without an API key."""
    transport = None
    if config.get("RESEND_API_KEY"):
        transport = mailer.ResendTransport(config["RESEND_API_KEY"], config["MAIL_FROM"])
    else:
        logging.warning("RESEND_API_KEY is not set; notification emails are disabled.")

    return mailer.Notifier(
        transport,
        app_url=config.get("APP_URL", ""),
        max_workers=config.get("NOTIFY_WORKERS") or 2,
    )


def create_app(overrides: Optional[Dict[str, Any]] = None,
               notifier: Optional[mailer.Notifier] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        overrides: Config keys that replace values loaded from the
            environment (tests pass JWT_SECRET, TESTING, ...).
        notifier: A ready Notifier; built from config when omitted.

    Returns:
        Flask: The configured Flask application.

    Raises:
        RuntimeError: If JWT_SECRET is not configured.
    """
    config = load_config()
    config.update(overrides or {})

    logging.basicConfig(level=config["LOG_LEVEL"], format=LOG_FORMAT)

    app = Flask(__name__)
    app.config.update(config)

    CORS(app, resources={
        r"/*": {
            "origins": config["CORS_ORIGINS"],
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        }
    })

    configure_db(
        config["DATABASE_URL"],
        minconn=config["DB_POOL_MIN"],
        maxconn=config["DB_POOL_MAX"],
        connect_timeout=config["DB_CONNECT_TIMEOUT"],
    )

    app.extensions[auth_utils.EXTENSION_KEY] = auth_utils.TokenService(
        config["JWT_SECRET"], expiration_minutes=config["TOKEN_EXPIRATION_MINUTES"]
    )
    app.extensions[mailer.EXTENSION_KEY] = notifier or build_notifier(config)

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(user_bp, url_prefix="/user")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    logging.info("All blueprints registered successfully.")

    # --- ERROR HANDLING ---
    @app.errorhandler(Exception)
    def handle_exception(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"success": False, "msg": error.description}), error.code
        logging.exception("Unhandled error while serving request")
        return jsonify({"success": False, "msg": "Internal server error"}), 500

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        return jsonify({"success": True, "msg": "Hello from backend"}), 200

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    @app.route("/health/db")
    def health_db():
        """
        Database round trip: counts users. Failures fall through to the
        generic 500 handler.
        """
        return jsonify({
            "success": True,
            "userCount": store.count_users(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=app.config["GATEWAY_PORT"], debug=False)
