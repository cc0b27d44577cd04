"""
Daily activity streaks.

A streak counts consecutive UTC days with at least one activity (login,
finished lesson, ...). Only the first activity of a day changes anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from fastapi import HTTPException

from . import repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakState:
    current_streak: int
    longest_streak: int
    last_active_date: date | None


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def next_streak(state: StreakState, today: date) -> StreakState | None:
    """
    Streak after an activity on `today`, or None if today was already counted.
    """
    last = state.last_active_date
    if last is not None and last >= today:
        return None

    if last is not None and last == today - timedelta(days=1):
        current = state.current_streak + 1
    else:
        current = 1

    return StreakState(
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_active_date=today,
    )


def _state_from_row(row: dict) -> StreakState:
    last = row.get("last_active_date")
    if isinstance(last, datetime):
        last = last.astimezone(timezone.utc).date() if last.tzinfo else last.date()
    return StreakState(
        current_streak=int(row.get("current_streak") or 0),
        longest_streak=int(row.get("longest_streak") or 0),
        last_active_date=last,
    )


async def record_activity(user_id: str, *, today: date | None = None) -> dict:
    row = await repository.get_streak(user_id)
    if row is None:
        raise HTTPException(status_code=404, detail="User not found.")

    state = _state_from_row(row)
    updated = next_streak(state, today or utc_today())
    if updated is not None:
        await repository.update_streak(
            user_id,
            current_streak=updated.current_streak,
            longest_streak=updated.longest_streak,
            last_active_date=updated.last_active_date,
        )
        logger.info(
            "streak_updated user_id=%s current=%s longest=%s",
            user_id,
            updated.current_streak,
            updated.longest_streak,
        )

    result = updated or state
    return {
        "currentStreak": result.current_streak,
        "longestStreak": result.longest_streak,
        "lastActiveDate": result.last_active_date,
        "changed": updated is not None,
    }
