from __future__ import annotations

from ..errors import InvalidStateError
from ..models import AppState, utcnow
from ..repositories import AppStateRepository

OPEN = "open"
SHUFFLED = "shuffled"


def get_state() -> AppState:
    return AppStateRepository().get()


def phase(state: AppState | None = None) -> str:
    state = state if state is not None else get_state()
    return SHUFFLED if state.shuffle_completed else OPEN


def is_shuffled() -> bool:
    return get_state().shuffle_completed


def require_open(action: str, state: AppState | None = None) -> None:
    """Raise InvalidStateError unless the lifecycle is Open."""
    if phase(state) != OPEN:
        raise InvalidStateError(
            f"Cannot {action} after shuffle. Reset first.",
            details={"state": SHUFFLED},
        )


# Transitions are only called by the assignment engine, inside an admin transaction.

def mark_shuffled(state: AppState) -> None:
    state.shuffle_completed = True
    state.shuffled_at = utcnow()


def mark_open(state: AppState) -> None:
    state.shuffle_completed = False
    state.shuffled_at = None
