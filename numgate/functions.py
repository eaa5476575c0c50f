"""
Numeric log operations: append, bounded read, and a read-then-append action.

These are the server-side bodies of the RPC routes. They take their
collaborators explicitly so tests can call them without HTTP.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from numgate.db import DbClient, UserRecord

logger = logging.getLogger(__name__)

ACTION_READ_COUNT = 10


@dataclass
class ListNumbersResult:
    numbers: list[float]
    viewer: Optional[UserRecord] = None


def add_number(db: DbClient, value: float) -> None:
    """Append ``value`` to the end of the log."""
    record = db.add_number(value)
    logger.info("Added new number with id %s", record.id)


def list_numbers(
    db: DbClient, count: int, viewer: Optional[UserRecord] = None
) -> ListNumbersResult:
    """
    Return the ``count`` most recent numbers, oldest first.

    Args:
        db: The store to read from.
        count: How many entries to return; 0 returns an empty list.
        viewer: The authenticated caller, echoed back in the result.
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    numbers = [record.value for record in db.list_recent_numbers(count)]
    return ListNumbersResult(numbers=numbers, viewer=viewer)


def my_action(
    db: DbClient, first: float, second: Any, viewer: Optional[UserRecord] = None
) -> None:
    # Not atomic: another writer may append between the read and the write.
    result = list_numbers(db, ACTION_READ_COUNT, viewer)
    logger.info("myAction read %s (second=%r)", result.numbers, second)
    add_number(db, first)
