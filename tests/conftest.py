from __future__ import annotations

from contextlib import ExitStack

import pytest

from santashuffle import create_app
from santashuffle.extensions import db
from santashuffle.services import registry, wishlists

ADMIN_NAME = "admin"
ADMIN_CREDENTIAL = "north-pole"
PARTICIPANT_CREDENTIAL = "secret"

BASE_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test-secret",
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "WTF_CSRF_ENABLED": False,
    "SANTA_AUTH_BOUNDARY": "session",
    "SANTA_ADMIN_SECRET": "",
    "SANTA_ALLOW_WISHLIST_EDITS_AFTER_SHUFFLE": True,
    "SANTA_MIN_PARTICIPANTS": 3,
    "SANTA_LOG_LEVEL": "DEBUG",
}


@pytest.fixture
def make_app():
    """Build apps with fresh databases; tables are dropped at teardown."""
    with ExitStack() as stack:
        def _make(auth_boundary=None, **overrides):
            app = create_app({**BASE_CONFIG, **overrides}, auth_boundary=auth_boundary)
            with app.app_context():
                db.create_all()

            def _cleanup():
                with app.app_context():
                    db.drop_all()

            stack.callback(_cleanup)
            return app

        yield _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """Run the test body inside an application context (service-level tests)."""
    with app.app_context():
        yield app


@pytest.fixture
def admin_id(app):
    with app.app_context():
        return registry.ensure_admin(ADMIN_NAME, ADMIN_CREDENTIAL).id


@pytest.fixture
def make_roster(app):
    """Create `n` participants named prefix1..prefixN and return their ids."""
    def _make(n: int, complete: bool = True, prefix: str = "elf") -> list[int]:
        ids = []
        with app.app_context():
            for i in range(1, n + 1):
                p = registry.create_participant(f"{prefix}{i}", PARTICIPANT_CREDENTIAL)
                if complete:
                    wishlists.upsert_wishlist(p.id, f"gift for {prefix}{i}")
                ids.append(p.id)
        return ids

    return _make


def login(client, username: str, credential: str = PARTICIPANT_CREDENTIAL):
    resp = client.post("/api/login", json={"username": username, "credential": credential})
    assert resp.status_code == 200, resp.get_json()
    return resp
