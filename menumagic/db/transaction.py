import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menumagic.core.errors import PersistenceFailed

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, *, action: str) -> Iterator[Session]:
    """Commit everything written inside the block, or nothing.

    Database errors are logged and surfaced as ``PersistenceFailed``; any
    other exception is re-raised unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s failed: %s", action, exc)
        raise PersistenceFailed(f"Failed to {action}") from exc
    except Exception:
        db.rollback()
        raise
