"""
Transaction boundary for multi-step mutations.

Usage:
    with unit_of_work("resolve_prop") as session:
        ...reads and writes through session...

The block commits when it exits cleanly. Any exception rolls the whole
block back before propagating; store-level SQLAlchemy errors are re-raised
as TransactionFailure so callers see a single error kind for aborts.
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from proppool import db
from proppool.utils.exceptions import TransactionFailure

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(operation="transaction"):
    session = db.session
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{operation} rolled back after database error: {e}")
        raise TransactionFailure(f"{operation} failed: {e.__class__.__name__}") from e
    except Exception:
        session.rollback()
        raise
