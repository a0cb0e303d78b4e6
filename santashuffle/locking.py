from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import InternalError
from .extensions import db
from .models import AppState
from .repositories import AppStateRepository

logger = logging.getLogger(__name__)

# One admin-mutating operation in flight per process. The row lock taken in
# admin_transaction extends that to every worker sharing the database.
_admin_lock = threading.RLock()


@contextmanager
def unit_of_work() -> Iterator[Session]:
    """
    Commit when the block finishes, roll back on any exception.

    Domain errors propagate as they are; database errors are logged and
    surface as InternalError.
    """
    session = db.session
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Transaction failed; rolled back")
        raise InternalError("Database error.") from e
    except BaseException:
        session.rollback()
        raise


@contextmanager
def admin_transaction() -> Iterator[AppState]:
    """
    Serialize create/delete/shuffle/reset and make each one all-or-nothing.

    Yields the AppState row, locked for the rest of the transaction.
    """
    with _admin_lock:
        with unit_of_work() as session:
            yield AppStateRepository(session).get(for_update=True)
