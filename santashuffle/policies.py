from __future__ import annotations

from flask import current_app, request
from flask.views import MethodView
from flask_login import current_user

from .errors import AuthorizationError
from .extensions import login_manager
from .security import secrets_match


class AuthorizationBoundary:
    """
    Decides whether a request may run admin-only operations.

    The app holds exactly one boundary (``app.extensions["santa_auth"]``);
    pass your own to ``create_app(auth_boundary=...)`` to change how admins
    are recognised without touching the services.
    """

    name = "abstract"

    def is_admin(self, req) -> bool:
        raise NotImplementedError


class SessionRoleBoundary(AuthorizationBoundary):
    """Admin is the logged-in participant whose role is admin."""

    name = "session"

    def is_admin(self, req) -> bool:
        return bool(current_user.is_authenticated and current_user.is_admin)


class SharedSecretBoundary(AuthorizationBoundary):
    """Admin is whoever sends the configured secret in the X-Admin-Secret header."""

    name = "shared_secret"
    header = "X-Admin-Secret"

    def __init__(self, secret: str | None = None) -> None:
        self._secret = secret

    def is_admin(self, req) -> bool:
        secret = self._secret if self._secret is not None else current_app.config.get("SANTA_ADMIN_SECRET")
        return secrets_match(req.headers.get(self.header), secret)


BOUNDARIES = {
    SessionRoleBoundary.name: SessionRoleBoundary,
    SharedSecretBoundary.name: SharedSecretBoundary,
}


def boundary_from_config(name: str) -> AuthorizationBoundary:
    try:
        return BOUNDARIES[name]()
    except KeyError:
        raise ValueError(f"Unknown SANTA_AUTH_BOUNDARY {name!r}; expected one of {sorted(BOUNDARIES)}") from None


def is_admin_request() -> bool:
    return current_app.extensions["santa_auth"].is_admin(request)


def require_admin() -> None:
    if not is_admin_request():
        raise AuthorizationError("Admin access required.")


# --------- Class-based view Mixins ---------

class LoginRequiredMixin(MethodView):
    def dispatch_request(self, *args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        return super().dispatch_request(*args, **kwargs)


class AdminRequiredMixin(MethodView):
    def dispatch_request(self, *args, **kwargs):
        require_admin()
        return super().dispatch_request(*args, **kwargs)
