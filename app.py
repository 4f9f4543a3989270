import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from routes import health_bp, auth_bp, directory_bp, admin_bp

from models import db
from flask_migrate import Migrate
from logging_config import configure_logging
from security.auth_config import AuthConfig
from security.auth_gate import AuthGate
from security.session_store import SqlSessionStore

logger = logging.getLogger(__name__)


def create_app(config_object=Config, overrides=None, session_store=None, clock=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(directory_bp)
    app.register_blueprint(admin_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Admin session gate
    gate_kwargs = {"clock": clock} if clock is not None else {}
    gate = AuthGate(
        AuthConfig.from_mapping(app.config),
        session_store if session_store is not None else SqlSessionStore(),
        **gate_kwargs,
    )
    gate.init_app(app)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "same-origin"
        return resp

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify(error=exc.description or exc.name), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        db.session.rollback()
        logger.exception("Unhandled error")
        return jsonify(error="Server error"), 500

    register_cli(app)

    return app

#-------------------------
import click
from security.password import hash_password

def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables (use `flask db` for migrations)."""
        db.create_all()
        print("Database tables created")

    @app.cli.command("hash-password")
    @click.argument("password")
    @click.option("--rounds", type=click.IntRange(4, 31), default=None,
                  help="bcrypt cost factor (defaults to PASSWORD_HASH_ROUNDS)")
    def hash_password_command(password, rounds):
        """Print a bcrypt hash for ADMIN_PASSWORD_HASH."""
        if rounds is None:
            rounds = app.config.get("PASSWORD_HASH_ROUNDS", 12)
        try:
            print(hash_password(password, rounds=rounds))
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="PASSWORD")

    @app.cli.command("purge-sessions")
    def purge_sessions():
        """Delete stored admin sessions idle longer than SESSION_LIFETIME."""
        gate = app.extensions["auth_gate"]
        count = gate.store.purge_expired(gate.config.session_lifetime)
        print(f"Purged {count} expired session(s)")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
