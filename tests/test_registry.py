import pytest
from sqlalchemy import func, select

from santashuffle.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from santashuffle.extensions import db
from santashuffle.models import ROLE_ADMIN, ROLE_PARTICIPANT, Assignment, Participant, WishlistEntry
from santashuffle.security import verify_credential
from santashuffle.services import assignments, registry, wishlists


def count(model):
    return db.session.scalar(select(func.count()).select_from(model))


def test_create_participant_defaults(ctx):
    p = registry.create_participant("alice", "hunter22")

    assert p.role == ROLE_PARTICIPANT
    assert p.wishlist_completed is False
    assert p.wishlist is None
    assert p.credential_hash != "hunter22"
    assert verify_credential("hunter22", p.credential_hash)


def test_create_strips_username(ctx):
    p = registry.create_participant("  bob  ", "hunter22")
    assert p.username == "bob"


def test_duplicate_username_is_a_conflict(ctx):
    registry.create_participant("alice", "hunter22")
    with pytest.raises(ConflictError):
        registry.create_participant("alice", "other-pass")
    assert count(Participant) == 1


def test_usernames_are_case_sensitive(ctx):
    registry.create_participant("alice", "hunter22")
    p = registry.create_participant("Alice", "hunter22")
    assert p.username == "Alice"
    assert count(Participant) == 2


@pytest.mark.parametrize(
    "username, credential",
    [("", "hunter22"), ("al", "hunter22"), ("   ", "hunter22"), ("alice", "abc"), ("alice", "")],
)
def test_create_validates_input(ctx, username, credential):
    with pytest.raises(ValidationError):
        registry.create_participant(username, credential)


def test_create_refused_after_shuffle(ctx, make_roster):
    make_roster(3)
    assignments.shuffle()

    with pytest.raises(InvalidStateError):
        registry.create_participant("latecomer", "hunter22")
    assert registry.find_by_username("latecomer") is None


def test_delete_refused_after_shuffle(ctx, make_roster):
    ids = make_roster(3)
    assignments.shuffle()

    with pytest.raises(InvalidStateError):
        registry.delete_participant(ids[0])
    assert count(Participant) == 3


def test_admin_cannot_be_deleted(ctx, admin_id):
    with pytest.raises(ValidationError):
        registry.delete_participant(admin_id)
    assert registry.get_participant(admin_id).role == ROLE_ADMIN


def test_delete_unknown_participant(ctx):
    with pytest.raises(NotFoundError):
        registry.delete_participant(999)


def test_delete_cascades_wishlist(ctx):
    p = registry.create_participant("carol", "hunter22")
    wishlists.upsert_wishlist(p.id, "scarf", "mittens")
    assert count(WishlistEntry) == 1

    registry.delete_participant(p.id)

    assert count(WishlistEntry) == 0
    assert registry.find_by_username("carol") is None


def test_delete_clears_stray_assignment_rows(ctx, make_roster):
    first, second, third = make_roster(3)
    # Rows left behind without a shuffle, e.g. by a manual database edit.
    db.session.add_all([Assignment(giver_id=first, receiver_id=second), Assignment(giver_id=third, receiver_id=first)])
    db.session.commit()

    registry.delete_participant(first)

    assert count(Assignment) == 0


def test_list_participants_excludes_admin_in_creation_order(ctx, admin_id):
    registry.create_participant("zed", "hunter22")
    registry.create_participant("amy", "hunter22")
    registry.create_participant("max", "hunter22")

    roster = registry.list_participants()

    assert [p.username for p in roster] == ["zed", "amy", "max"]
    assert admin_id not in [p.id for p in roster]


def test_list_participants_carries_wishlist(ctx):
    p = registry.create_participant("dora", "hunter22")
    wishlists.upsert_wishlist(p.id, "book")
    registry.create_participant("eve", "hunter22")

    dora, eve = registry.list_participants()
    assert dora.wishlist_completed is True
    assert dora.wishlist.item1 == "book"
    assert eve.wishlist_completed is False
    assert eve.wishlist is None


def test_get_participant_unknown(ctx):
    with pytest.raises(NotFoundError):
        registry.get_participant(12345)


def test_ensure_admin_creates_admin(ctx):
    admin = registry.ensure_admin("santa", "north-pole")
    assert admin.role == ROLE_ADMIN
    assert verify_credential("north-pole", admin.credential_hash)
    assert registry.list_participants() == []


def test_ensure_admin_promotes_and_demotes(ctx):
    old = registry.ensure_admin("santa", "north-pole")
    p = registry.create_participant("rudolph", "red-nose")

    new = registry.ensure_admin("rudolph", "sleigh-bell")

    assert new.id == p.id
    assert new.role == ROLE_ADMIN
    assert verify_credential("sleigh-bell", new.credential_hash)
    assert registry.get_participant(old.id).role == ROLE_PARTICIPANT
    assert [a.username for a in registry.list_participants()] == ["santa"]


def test_ensure_admin_rotates_credential_of_existing_admin(ctx):
    registry.ensure_admin("santa", "north-pole")
    admin = registry.ensure_admin("santa", "south-pole")
    assert verify_credential("south-pole", admin.credential_hash)
    assert count(Participant) == 1


def test_ensure_admin_cannot_promote_during_shuffle(ctx, make_roster):
    make_roster(3)
    assignments.shuffle()

    with pytest.raises(InvalidStateError):
        registry.ensure_admin("elf1", "sleigh-bell")
    assert registry.find_by_username("elf1").role == ROLE_PARTICIPANT
