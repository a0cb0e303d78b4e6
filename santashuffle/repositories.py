"""Storage access for the santa services.

Services never touch ``db.session`` queries directly; they go through these
repositories so the engine stays independent of how rows are stored. Each
repository wraps a SQLAlchemy session (the Flask-SQLAlchemy scoped session by
default). Repositories flush but never commit: the caller owns the
transaction.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite

from .extensions import db
from .models import ROLE_ADMIN, ROLE_PARTICIPANT, AppState, Assignment, Participant, WishlistEntry


class _Repository:
    def __init__(self, session=None) -> None:
        self.session = session if session is not None else db.session


class ParticipantRepository(_Repository):
    def get(self, participant_id: int) -> Participant | None:
        return self.session.get(Participant, participant_id)

    def by_username(self, username: str) -> Participant | None:
        return self.session.scalars(
            select(Participant).where(Participant.username == username)
        ).first()

    def roster(self) -> list[Participant]:
        """Non-admin participants in creation order."""
        return list(
            self.session.scalars(
                select(Participant)
                .where(Participant.role == ROLE_PARTICIPANT)
                .order_by(Participant.id.asc())
            )
        )

    def admins(self) -> list[Participant]:
        return list(
            self.session.scalars(
                select(Participant).where(Participant.role == ROLE_ADMIN).order_by(Participant.id.asc())
            )
        )

    def add(self, participant: Participant) -> Participant:
        self.session.add(participant)
        self.session.flush()
        return participant

    def delete(self, participant: Participant) -> None:
        self.session.delete(participant)
        self.session.flush()


class WishlistRepository(_Repository):
    def for_participant(self, participant_id: int) -> WishlistEntry | None:
        return self.session.scalars(
            select(WishlistEntry).where(WishlistEntry.participant_id == participant_id)
        ).first()

    def replace(self, participant_id: int, items: Sequence[str | None]) -> WishlistEntry:
        """Overwrite all three slots; slots not given become NULL."""
        item1, item2, item3 = (list(items) + [None, None, None])[:3]
        entry = self.for_participant(participant_id)
        if entry is None:
            entry = WishlistEntry(participant_id=participant_id)
            self.session.add(entry)
        entry.item1 = item1
        entry.item2 = item2
        entry.item3 = item3
        self.session.flush()
        return entry


class AssignmentRepository(_Repository):
    def for_giver(self, giver_id: int) -> Assignment | None:
        return self.session.scalars(select(Assignment).where(Assignment.giver_id == giver_id)).first()

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(Assignment)) or 0

    def clear(self) -> int:
        result = self.session.execute(delete(Assignment))
        return result.rowcount or 0

    def replace_all(self, pairs: Iterable[tuple[int, int]]) -> list[Assignment]:
        self.clear()
        rows = [Assignment(giver_id=g, receiver_id=r) for g, r in pairs]
        self.session.add_all(rows)
        self.session.flush()
        return rows

    def delete_involving(self, participant_id: int) -> None:
        self.session.execute(
            delete(Assignment).where(
                or_(Assignment.giver_id == participant_id, Assignment.receiver_id == participant_id)
            )
        )


class AppStateRepository(_Repository):
    def get(self, for_update: bool = False) -> AppState:
        """Return the singleton row.

        With ``for_update`` the row is locked until the surrounding transaction
        ends, which serializes admin writers across processes, and a missing
        row is created. Plain reads of a fresh database get an unsaved
        ``Open`` state instead.
        """
        stmt = select(AppState).where(AppState.id == AppState.SINGLETON_ID)
        if for_update:
            stmt = stmt.with_for_update()
        state = self.session.scalars(stmt).first()
        if state is not None:
            return state
        if not for_update:
            return AppState(id=AppState.SINGLETON_ID, shuffle_completed=False)
        # Another process may insert the row between our select and insert.
        self.ensure_row()
        return self.session.scalars(stmt.execution_options(populate_existing=True)).one()

    def ensure_row(self) -> None:
        """Insert the singleton row unless it already exists."""
        values = {"id": AppState.SINGLETON_ID, "shuffle_completed": False}
        dialect = self.session.get_bind(mapper=AppState).dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(AppState).values(**values).on_conflict_do_nothing(index_elements=["id"])
        elif dialect == "sqlite":
            stmt = sqlite.insert(AppState).values(**values).on_conflict_do_nothing(index_elements=["id"])
        else:
            if self.session.get(AppState, AppState.SINGLETON_ID) is not None:
                return
            stmt = insert(AppState).values(**values)
        self.session.execute(stmt)
