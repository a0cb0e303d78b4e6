from __future__ import annotations

import logging
import random
from typing import Sequence

from flask import current_app

from ..errors import InvalidStateError
from ..locking import admin_transaction
from ..repositories import AssignmentRepository, ParticipantRepository
from .state import mark_open, mark_shuffled

logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 3


def sattolo_cycle(ids: Sequence[int], rng: random.Random | None = None) -> list[tuple[int, int]]:
    """
    Pair every id with a receiver so the pairs form one cycle through all ids.

    Sattolo's variant of Fisher-Yates: at step i the swap partner is drawn
    from [0, i-1], never i itself, so every element moves and the resulting
    permutation is a single n-cycle. That makes it a derangement (nobody draws
    themselves), but only the (n-1)! cyclic derangements can come out; for
    n = 4, two separate swaps like {1->2, 2->1, 3->4, 4->3} never happen.
    This is intended: it is not a uniform sample over all derangements.

    Returns (giver_id, receiver_id) pairs in the order of `ids`.
    """
    if rng is None:
        rng = random.SystemRandom()
    givers = list(ids)
    receivers = givers[:]
    for i in range(len(receivers) - 1, 0, -1):
        j = rng.randrange(i)
        receivers[i], receivers[j] = receivers[j], receivers[i]
    return list(zip(givers, receivers))


def min_participants() -> int:
    configured = int(current_app.config.get("SANTA_MIN_PARTICIPANTS", MIN_PARTICIPANTS))
    return max(configured, MIN_PARTICIPANTS)


def shuffle(rng: random.Random | None = None) -> list[tuple[int, int]]:
    """
    Generate and persist the assignments for the current roster.

    Old rows are replaced and the state flips to Shuffled in the same
    transaction, so readers see either the previous state or the full new
    set. Returns the persisted (giver_id, receiver_id) pairs.
    """
    with admin_transaction() as state:
        if state.shuffle_completed:
            raise InvalidStateError("Shuffle has already been completed. Reset first.")

        roster = ParticipantRepository().roster()
        minimum = min_participants()
        if len(roster) < minimum:
            raise InvalidStateError(
                f"Need at least {minimum} participants to shuffle.",
                details={"participants": len(roster), "required": minimum},
            )

        pending = [p.username for p in roster if not p.wishlist_completed]
        if pending:
            raise InvalidStateError(
                "Not all participants have completed their wishlists.",
                details={"pending": pending},
            )

        pairs = sattolo_cycle([p.id for p in roster], rng)
        AssignmentRepository().replace_all(pairs)
        mark_shuffled(state)

    # Never log who gives to whom.
    logger.info("Shuffle completed for %d participants", len(pairs))
    return pairs


def reset() -> None:
    """Drop all assignments and reopen the roster. Safe to call when already open."""
    with admin_transaction() as state:
        removed = AssignmentRepository().clear()
        was_shuffled = state.shuffle_completed
        mark_open(state)

    if was_shuffled or removed:
        logger.info("Reset: removed %d assignments, state is open", removed)
    else:
        logger.debug("Reset requested while already open; nothing to do")
