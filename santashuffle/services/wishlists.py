from __future__ import annotations

import logging

from flask import current_app

from ..errors import InvalidStateError, NotFoundError, ValidationError
from ..locking import unit_of_work
from ..models import WishlistEntry
from ..repositories import ParticipantRepository, WishlistRepository
from .state import is_shuffled

logger = logging.getLogger(__name__)


def _clean(item: str | None) -> str | None:
    item = (item or "").strip()
    return item or None


def edits_allowed_after_shuffle() -> bool:
    return bool(current_app.config.get("SANTA_ALLOW_WISHLIST_EDITS_AFTER_SHUFFLE", True))


def upsert_wishlist(
    participant_id: int,
    item1: str | None = None,
    item2: str | None = None,
    item3: str | None = None,
) -> WishlistEntry:
    """
    Replace the participant's wishlist and mark it completed.

    All three slots are overwritten: anything not submitted this time is
    dropped. Saving again with the same items is harmless.
    """
    items = [_clean(item1), _clean(item2), _clean(item3)]
    if not any(items):
        raise ValidationError("At least one wishlist item is required.")

    if not edits_allowed_after_shuffle() and is_shuffled():
        raise InvalidStateError("Wishlists are locked because assignments have been made.")

    with unit_of_work():
        p = ParticipantRepository().get(participant_id)
        if p is None:
            raise NotFoundError("No such participant.", details={"id": participant_id})

        entry = WishlistRepository().replace(participant_id, items)
        p.wishlist_completed = True

    logger.info("Saved wishlist for participant id=%s (%d items)", participant_id, len(entry.items))
    return entry


def get_wishlist(participant_id: int) -> WishlistEntry | None:
    return WishlistRepository().for_participant(participant_id)
