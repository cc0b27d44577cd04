"""
Score reconciliation.

Stored points and completed courses are maintained by different code paths
and can drift. The displayed score is whichever is higher; when completions
are ahead, storage is healed with a detached best-effort write.
"""

from __future__ import annotations

import asyncio
import logging

from . import repository

POINTS_PER_COURSE = 100

logger = logging.getLogger(__name__)

# Strong references to in-flight corrective writes; asyncio only keeps weak ones.
_pending: set[asyncio.Task] = set()


def completion_points(completed_courses: int) -> int:
    return max(0, int(completed_courses or 0)) * POINTS_PER_COURSE


def effective_points(stored_points: int, completed_courses: int) -> int:
    return max(int(stored_points or 0), completion_points(completed_courses))


def is_stale(stored_points: int, completed_courses: int) -> bool:
    return effective_points(stored_points, completed_courses) > int(stored_points or 0)


async def _persist_correction(user_id: str, points: int) -> None:
    """
    Task body for a corrective write.

    This should never raise to anyone; failures are logged and dropped. A
    later request recomputes the same value and retries.
    """
    try:
        changed = await repository.raise_stored_points(user_id, points)
        if changed:
            logger.info("points_reconciled user_id=%s points=%s", user_id, points)
    except Exception:
        logger.exception("points_reconcile_failed user_id=%s points=%s", user_id, points)


def reconcile_if_stale(record: repository.ScoreRecord, completed_courses: int) -> int:
    """
    Return the effective points for `record`, scheduling a write-back when they
    supersede what is stored. Must be called from a running event loop.
    """
    points = effective_points(record.points, completed_courses)
    if is_stale(record.points, completed_courses):
        task = asyncio.create_task(_persist_correction(record.user_id, points))
        _pending.add(task)
        task.add_done_callback(_pending.discard)
    return points


def pending_count() -> int:
    return len(_pending)


async def drain_pending() -> None:
    """
    Wait for in-flight corrective writes. They are not cancelled.
    """
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
