from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask.views import MethodView
from flask_login import current_user, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ..errors import ValidationError
from ..policies import LoginRequiredMixin
from ..security import verify_credential
from ..services.registry import find_by_username

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def credential_from(payload: dict) -> str:
    # Older clients post the credential as "password".
    value = payload.get("credential")
    if value is None:
        value = payload.get("password")
    if value is not None and not isinstance(value, str):
        raise ValidationError("credential must be a string.")
    return value or ""


def _user_dict(user) -> dict:
    return {"id": user.id, "username": user.username, "role": user.role}


class LoginView(MethodView):
    def post(self):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        username = payload.get("username")
        username = username.strip() if isinstance(username, str) else ""
        try:
            credential = credential_from(payload)
        except ValidationError:
            credential = ""

        user = find_by_username(username) if username else None
        if user is None or not verify_credential(credential, user.credential_hash):
            logger.warning("Failed login for %r", username)
            return jsonify(error="unauthorized", message="Invalid username or password"), 401

        login_user(user)
        return jsonify(_user_dict(user))


class LogoutView(MethodView):
    def post(self):
        if current_user.is_authenticated:
            logout_user()
        return jsonify(success=True)


class CurrentUserView(LoginRequiredMixin):
    def get(self):
        return jsonify(_user_dict(current_user))


class CsrfTokenView(MethodView):
    """Clients send this back in the X-CSRFToken header on every write."""

    def get(self):
        return jsonify(csrfToken=generate_csrf())


auth_bp.add_url_rule("/login", view_func=LoginView.as_view("login"), methods=["POST"])
auth_bp.add_url_rule("/logout", view_func=LogoutView.as_view("logout"), methods=["POST"])
auth_bp.add_url_rule("/user", view_func=CurrentUserView.as_view("current_user"), methods=["GET"])
auth_bp.add_url_rule("/csrf-token", view_func=CsrfTokenView.as_view("csrf_token"), methods=["GET"])
