"""Caller-level retry for optimistic-lock conflicts.

The reconcile engine surfaces ``ConflictError`` when the role changed
between its read and its update. Re-running the whole reconcile re-reads
the role, so wrapping the call here is enough to converge.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from rolesync.config import CONFLICT_BACKOFF_SECONDS, DEFAULT_CONFLICT_RETRIES
from rolesync.errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_conflict(
    fn: Callable[[], T],
    attempts: int = DEFAULT_CONFLICT_RETRIES,
    backoff: float = CONFLICT_BACKOFF_SECONDS,
) -> T:
    """Call ``fn``, calling it again on ``ConflictError`` up to ``attempts`` times."""
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    for attempt in range(1, attempts):
        try:
            return fn()
        except ConflictError as e:
            logger.warning(f"{e}; retrying ({attempt}/{attempts})")
            time.sleep(backoff * attempt)
    return fn()
