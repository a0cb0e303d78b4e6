from __future__ import annotations

from dataclasses import dataclass

from ..models import WishlistEntry
from ..repositories import AssignmentRepository
from .state import get_state


@dataclass(frozen=True)
class AssignmentDetails:
    giver_id: int
    receiver_id: int
    receiver_username: str
    receiver_wishlist: WishlistEntry | None

    def to_dict(self) -> dict:
        return {
            "giverId": self.giver_id,
            "receiverId": self.receiver_id,
            "receiver": {
                "id": self.receiver_id,
                "username": self.receiver_username,
                "wishlist": self.receiver_wishlist.to_dict() if self.receiver_wishlist else None,
            },
        }


def get_assignment_for_giver(giver_id: int) -> AssignmentDetails | None:
    """Who `giver_id` gives to, with that person's wishlist. None until shuffled."""
    if not get_state().shuffle_completed:
        return None

    row = AssignmentRepository().for_giver(giver_id)
    if row is None or row.receiver is None:
        return None

    receiver = row.receiver
    return AssignmentDetails(
        giver_id=row.giver_id,
        receiver_id=receiver.id,
        receiver_username=receiver.username,
        receiver_wishlist=receiver.wishlist,
    )
