from __future__ import annotations

import logging

from ..errors import ConflictError, NotFoundError, ValidationError
from ..locking import admin_transaction
from ..models import ROLE_ADMIN, ROLE_PARTICIPANT, Participant
from ..repositories import AssignmentRepository, ParticipantRepository
from ..security import hash_credential
from .state import require_open

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_CREDENTIAL_LENGTH = 4


def _validate_new_user(username: str, credential: str) -> str:
    if not isinstance(username, str) or not isinstance(credential, str):
        raise ValidationError("Username and password must be strings.")
    username = username.strip()
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters.")
    if len(credential) < MIN_CREDENTIAL_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_CREDENTIAL_LENGTH} characters.")
    return username


def create_participant(username: str, credential: str) -> Participant:
    username = _validate_new_user(username, credential)
    participants = ParticipantRepository()

    with admin_transaction() as state:
        if participants.by_username(username) is not None:
            raise ConflictError("Username already exists.", details={"username": username})
        require_open("add participants", state)

        p = participants.add(
            Participant(
                username=username,
                credential_hash=hash_credential(credential),
                role=ROLE_PARTICIPANT,
                wishlist_completed=False,
            )
        )

    logger.info("Created participant %s (id=%s)", p.username, p.id)
    return p


def delete_participant(participant_id: int) -> None:
    participants = ParticipantRepository()

    with admin_transaction() as state:
        require_open("delete participants", state)

        p = participants.get(participant_id)
        if p is None:
            raise NotFoundError("No such participant.", details={"id": participant_id})
        if p.is_admin:
            raise ValidationError("Admin user cannot be deleted.")

        username = p.username
        # Only possible if the rows outlived a reset; clear them with the participant.
        AssignmentRepository().delete_involving(p.id)
        participants.delete(p)

    logger.info("Deleted participant %s (id=%s)", username, participant_id)


def list_participants() -> list[Participant]:
    return ParticipantRepository().roster()


def get_participant(participant_id: int) -> Participant:
    p = ParticipantRepository().get(participant_id)
    if p is None:
        raise NotFoundError("No such participant.", details={"id": participant_id})
    return p


def find_by_username(username: str) -> Participant | None:
    if not isinstance(username, str):
        return None
    return ParticipantRepository().by_username(username.strip())


def ensure_admin(username: str, credential: str) -> Participant:
    """
    Make `username` the one admin, creating it if needed.

    An existing participant with that name is promoted and gets the new
    credential; any other admin is demoted to a regular participant.
    """
    username = _validate_new_user(username, credential)
    participants = ParticipantRepository()

    with admin_transaction() as state:
        admin = participants.by_username(username)
        if admin is None:
            admin = participants.add(
                Participant(username=username, credential_hash=hash_credential(credential), role=ROLE_ADMIN)
            )
            logger.info("Seeded admin user %s", username)
        else:
            if not admin.is_admin:
                require_open("promote a participant to admin", state)
                admin.role = ROLE_ADMIN
                logger.info("Promoted %s to admin", username)
            admin.credential_hash = hash_credential(credential)

        for other in participants.admins():
            if other.id != admin.id:
                require_open("demote an admin", state)
                other.role = ROLE_PARTICIPANT
                logger.warning("Demoted extra admin %s", other.username)

    return admin
