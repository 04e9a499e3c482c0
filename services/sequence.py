"""
Document numbering - human-readable identifiers such as INV-2024-000123.

Each (prefix, year) pair owns a row in the counters table. Issuing a number
increments that row with a single UPDATE inside the caller's transaction, so
the row lock serializes concurrent creates and no two documents can receive
the same number.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database.models import Counter, utcnow

logger = logging.getLogger(__name__)

INVOICE_PREFIX = 'INV'
ESTIMATION_PREFIX = 'EST'
SEQUENCE_WIDTH = 6


def format_sequence_number(prefix: str, year: int, value: int) -> str:
    return f"{prefix}-{year}-{str(value).zfill(SEQUENCE_WIDTH)}"


def _increment(session: Session, prefix: str, year: int) -> bool:
    result = session.execute(
        update(Counter)
        .where(Counter.name == prefix, Counter.year == year)
        .values(value=Counter.value + 1)
    )
    return result.rowcount == 1


def next_value(session: Session, prefix: str, year: int) -> int:
    """Atomically increment and return the counter for prefix/year."""
    if not _increment(session, prefix, year):
        # First document of the year: create the row, tolerating a concurrent creator
        try:
            with session.begin_nested():
                session.add(Counter(name=prefix, year=year, value=1))
            return 1
        except IntegrityError:
            logger.debug(f"Counter {prefix}/{year} created concurrently, retrying increment")
            _increment(session, prefix, year)

    return session.query(Counter.value).filter(
        Counter.name == prefix, Counter.year == year
    ).scalar()


def generate_number(session: Session, prefix: str, now: Optional[datetime] = None) -> str:
    """
    Issue the next document number for prefix in the current year.

    Args:
        session: Active session; the counter update joins its transaction
        prefix: INV or EST
        now: Clock override for tests

    Returns:
        Formatted number, e.g. INV-2024-000007
    """
    year = (now or utcnow()).year
    value = next_value(session, prefix, year)
    number = format_sequence_number(prefix, year, value)
    logger.debug(f"Issued document number {number}")
    return number
