from __future__ import annotations

from datetime import datetime, timezone

from flask_login import UserMixin

from .extensions import db, login_manager

ROLE_ADMIN = "admin"
ROLE_PARTICIPANT = "participant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Participant(UserMixin, db.Model):
    __tablename__ = "participants"

    id = db.Column(db.Integer, primary_key=True)
    # Case-sensitive: "alice" and "Alice" are different people.
    username = db.Column(db.String(64), unique=True, nullable=False)

    # argon2 hash of the credential; never serialized
    credential_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=ROLE_PARTICIPANT)
    wishlist_completed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    wishlist = db.relationship(
        "WishlistEntry",
        back_populates="participant",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint(f"role IN ('{ROLE_ADMIN}', '{ROLE_PARTICIPANT}')", name="role_known"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "wishlistCompleted": self.wishlist_completed,
            "wishlist": self.wishlist.to_dict() if self.wishlist else None,
        }


class WishlistEntry(db.Model):
    __tablename__ = "wishlist_items"

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(
        db.Integer,
        db.ForeignKey("participants.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    item1 = db.Column(db.Text, nullable=True)
    item2 = db.Column(db.Text, nullable=True)
    item3 = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    participant = db.relationship("Participant", back_populates="wishlist")

    @property
    def items(self) -> list[str]:
        return [i for i in (self.item1, self.item2, self.item3) if i]

    def to_dict(self) -> dict:
        return {
            "participantId": self.participant_id,
            "item1": self.item1,
            "item2": self.item2,
            "item3": self.item3,
        }


class Assignment(db.Model):
    """
    Directed pair: giver_id gives a gift to receiver_id.
    The full set of rows is always one cycle over the roster, or empty.
    """
    __tablename__ = "assignments"

    id = db.Column(db.Integer, primary_key=True)
    giver_id = db.Column(
        db.Integer,
        db.ForeignKey("participants.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    receiver_id = db.Column(db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)

    giver = db.relationship("Participant", foreign_keys=[giver_id])
    receiver = db.relationship("Participant", foreign_keys=[receiver_id])

    __table_args__ = (
        db.CheckConstraint("giver_id <> receiver_id", name="no_self_assignment"),
    )


class AppState(db.Model):
    __tablename__ = "app_state"

    SINGLETON_ID = 1

    id = db.Column(db.Integer, primary_key=True)
    shuffle_completed = db.Column(db.Boolean, default=False, nullable=False)
    shuffled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "shuffleCompleted": self.shuffle_completed,
            "shuffledAt": self.shuffled_at.isoformat() if self.shuffled_at else None,
        }


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(Participant, int(user_id))
