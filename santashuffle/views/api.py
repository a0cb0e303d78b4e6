from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask.views import MethodView
from flask_login import current_user

from ..errors import ValidationError
from ..policies import AdminRequiredMixin, LoginRequiredMixin
from ..services import assignments, lookup, registry, wishlists
from ..services.state import get_state
from .auth import credential_from

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def _optional_text(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string.")
    return value


class AppStateView(MethodView):
    def get(self):
        return jsonify(get_state().to_dict())


class ParticipantsView(MethodView):
    def get(self):
        return jsonify([p.to_dict() for p in registry.list_participants()])


class CreateParticipantView(AdminRequiredMixin):
    def post(self):
        payload = _json_body()
        username = _optional_text(payload, "username") or ""
        p = registry.create_participant(username, credential_from(payload))
        return jsonify(p.to_dict()), 201


class DeleteParticipantView(AdminRequiredMixin):
    def delete(self, participant_id: int):
        registry.delete_participant(participant_id)
        return jsonify(success=True)


class MyWishlistView(LoginRequiredMixin):
    def get(self):
        entry = wishlists.get_wishlist(current_user.id)
        return jsonify(entry.to_dict() if entry else None)

    def post(self):
        payload = _json_body()
        entry = wishlists.upsert_wishlist(
            current_user.id,
            _optional_text(payload, "item1"),
            _optional_text(payload, "item2"),
            _optional_text(payload, "item3"),
        )
        user = registry.get_participant(current_user.id)
        return jsonify(wishlist=entry.to_dict(), user=user.to_dict())


class MyAssignmentView(LoginRequiredMixin):
    def get(self):
        details = lookup.get_assignment_for_giver(current_user.id)
        return jsonify(details.to_dict() if details else None)


class ShuffleView(AdminRequiredMixin):
    def post(self):
        pairs = assignments.shuffle()
        return jsonify(message="Shuffle completed successfully", assignments=len(pairs))


class ResetView(AdminRequiredMixin):
    def post(self):
        assignments.reset()
        return jsonify(message="Reset completed")


# Register routes
api_bp.add_url_rule("/app-state", view_func=AppStateView.as_view("app_state"), methods=["GET"])
api_bp.add_url_rule("/participants", view_func=ParticipantsView.as_view("participants"), methods=["GET"])
api_bp.add_url_rule(
    "/participants",
    view_func=CreateParticipantView.as_view("create_participant"),
    methods=["POST"],
)
api_bp.add_url_rule(
    "/participants/<int:participant_id>",
    view_func=DeleteParticipantView.as_view("delete_participant"),
    methods=["DELETE"],
)
api_bp.add_url_rule("/my-wishlist", view_func=MyWishlistView.as_view("my_wishlist"), methods=["GET", "POST"])
api_bp.add_url_rule("/my-assignment", view_func=MyAssignmentView.as_view("my_assignment"), methods=["GET"])

api_bp.add_url_rule("/shuffle", view_func=ShuffleView.as_view("shuffle"), methods=["POST"])
api_bp.add_url_rule("/reset", view_func=ResetView.as_view("reset"), methods=["POST"])
