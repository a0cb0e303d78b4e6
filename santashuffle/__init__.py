from __future__ import annotations

import os
from typing import Any, Mapping

import click
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError
from sqlalchemy.exc import SQLAlchemyError

from .errors import InternalError, SantaError
from .extensions import csrf, db, login_manager, migrate
from .policies import AuthorizationBoundary, boundary_from_config


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def create_app(
    test_config: Mapping[str, Any] | None = None,
    auth_boundary: AuthorizationBoundary | None = None,
) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///santashuffle.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # The participant seeded by `flask seed-admin` when no name is given
    app.config["SANTA_ADMIN_NAME"] = os.environ.get("SANTA_ADMIN_NAME", "admin").strip()
    # Only read by the shared_secret boundary
    app.config["SANTA_ADMIN_SECRET"] = os.environ.get("SANTA_ADMIN_SECRET", "")
    app.config["SANTA_AUTH_BOUNDARY"] = os.environ.get("SANTA_AUTH_BOUNDARY", "session").strip()
    app.config["SANTA_ALLOW_WISHLIST_EDITS_AFTER_SHUFFLE"] = _env_flag(
        "SANTA_ALLOW_WISHLIST_EDITS_AFTER_SHUFFLE", True
    )
    app.config["SANTA_MIN_PARTICIPANTS"] = int(os.environ.get("SANTA_MIN_PARTICIPANTS", "3"))
    app.config["SANTA_LOG_LEVEL"] = os.environ.get("SANTA_LOG_LEVEL", "INFO").upper()

    if test_config:
        app.config.update(test_config)

    # Module loggers are children of app.logger ("santashuffle").
    app.logger.setLevel(app.config["SANTA_LOG_LEVEL"])

    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    app.extensions["santa_auth"] = auth_boundary or boundary_from_config(app.config["SANTA_AUTH_BOUNDARY"])

    from .views.api import api_bp
    from .views.auth import auth_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)

    _register_error_handlers(app)
    _register_commands(app)

    app.logger.info(
        "santashuffle ready (auth boundary: %s)", type(app.extensions["santa_auth"]).__name__
    )
    return app


def _register_error_handlers(app: Flask) -> None:
    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify(error="unauthorized", message="Login required."), 401

    @app.errorhandler(SantaError)
    def handle_santa_error(e: SantaError):
        if isinstance(e, InternalError):
            app.logger.error("Internal error: %s", e.message)
        else:
            app.logger.warning("%s rejected: %s", e.kind, e.message)
        return jsonify(e.to_dict()), int(e.status_code)

    # Reads outside unit_of_work surface raw driver errors.
    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        db.session.rollback()
        app.logger.error("Database error", exc_info=e)
        return jsonify(InternalError("Database error.").to_dict()), 500

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e: CSRFError):
        return jsonify(error="csrf", message=e.description, details={}), 400


def _register_commands(app: Flask) -> None:
    from .repositories import AppStateRepository
    from .services.registry import ensure_admin

    @app.cli.command("init-db")
    def init_db():
        """Create tables and the app state row."""
        db.create_all()
        AppStateRepository().get(for_update=True)
        db.session.commit()
        click.echo("Database initialised.")

    @app.cli.command("seed-admin")
    @click.argument("username", required=False)
    @click.password_option("--credential", prompt="Admin password")
    def seed_admin(username, credential):
        """Create or promote the single admin user."""
        name = username or app.config["SANTA_ADMIN_NAME"]
        try:
            admin = ensure_admin(name, credential)
        except SantaError as e:
            raise click.ClickException(e.message) from e
        click.echo(f"Admin is now {admin.username} (id={admin.id}).")
