"""
Leaderboard score sources (raw SQL).

Two independent reads feed the ranking:
- `users`: stored score state (points, level, streak) plus display fields
- `enrollments`: completion events, counted per user

Neither source is treated as authoritative; `scoring.py` reconciles them.
The only write here is the corrective `raise_stored_points`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import asyncpg

from core import db

ELIGIBLE_ROLES = ("learner", "student")
ACTIVE_STATUS = "active"

# Stored-column ordering for the bounded pool window, keyed by ranking type.
# Only narrows which 500 rows are pulled; final order is computed in Python.
_POOL_ORDER_BY = {
    "points": "u.points DESC NULLS LAST, u.id ASC",
    "level": "u.level DESC NULLS LAST, u.points DESC NULLS LAST, u.id ASC",
    "streak": "u.current_streak DESC NULLS LAST, u.longest_streak DESC NULLS LAST, u.id ASC",
}

_ACCOUNT_COLUMNS = """
    u.id::text AS user_id,
    u.email,
    u.first_name,
    u.last_name,
    u.avatar,
    u.role,
    u.status,
    u.points,
    u.level,
    u.current_streak,
    u.longest_streak
"""


class ScoreSourceError(RuntimeError):
    pass


@dataclass(frozen=True)
class ScoreRecord:
    user_id: str
    email: str | None
    first_name: str | None
    last_name: str | None
    avatar: str | None
    role: str | None
    status: str | None
    points: int
    level: int
    current_streak: int
    longest_streak: int


def _to_score_record(row: dict[str, Any]) -> ScoreRecord:
    return ScoreRecord(
        user_id=str(row["user_id"]),
        email=row.get("email"),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        avatar=row.get("avatar"),
        role=row.get("role"),
        status=row.get("status"),
        points=int(row.get("points") or 0),
        level=int(row.get("level") or 1),
        current_streak=int(row.get("current_streak") or 0),
        longest_streak=int(row.get("longest_streak") or 0),
    )


async def load_candidate_pool(ranking_type: str, *, ceiling: int = 500) -> list[ScoreRecord]:
    """
    Eligible accounts (learner/student, active), at most `ceiling`, pre-sorted
    by the stored columns relevant to `ranking_type`.
    """
    order_by = _POOL_ORDER_BY.get(ranking_type, _POOL_ORDER_BY["points"])
    try:
        rows = await db.fetch_all(
            f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM users u
            WHERE u.role = ANY($1::text[])
              AND u.status = $2
            ORDER BY {order_by}
            LIMIT $3
            """,
            list(ELIGIBLE_ROLES),
            ACTIVE_STATUS,
            ceiling,
        )
    except (asyncpg.PostgresError, OSError) as exc:
        raise ScoreSourceError("Failed to load candidate pool.") from exc
    return [_to_score_record(row) for row in rows]


async def load_accounts(user_ids: list[str]) -> list[ScoreRecord]:
    """
    Eligible accounts for specific ids. Used to patch users with completions
    into a pool that missed them.
    """
    account_ids = [a for a in (db.parse_uuid(u) for u in user_ids) if a is not None]
    if not account_ids:
        return []
    try:
        rows = await db.fetch_all(
            f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM users u
            WHERE u.id = ANY($1::text[]::uuid[])
              AND u.role = ANY($2::text[])
              AND u.status = $3
            """,
            account_ids,
            list(ELIGIBLE_ROLES),
            ACTIVE_STATUS,
        )
    except (asyncpg.PostgresError, OSError) as exc:
        raise ScoreSourceError("Failed to load accounts.") from exc
    return [_to_score_record(row) for row in rows]


async def load_completion_counts() -> dict[str, int]:
    """
    userId -> number of distinct completed courses.

    An enrollment counts as completed when status is 'completed' OR progress
    reached 100, so a completion recorded by either path is never missed.
    """
    try:
        rows = await db.fetch_all(
            """
            SELECT e.user_id::text AS user_id, count(DISTINCT e.course_id)::int AS completed
            FROM enrollments e
            WHERE e.status = 'completed'
               OR e.progress = 100
            GROUP BY e.user_id
            """
        )
    except (asyncpg.PostgresError, OSError) as exc:
        raise ScoreSourceError("Failed to load completion counts.") from exc
    return {str(row["user_id"]): int(row["completed"] or 0) for row in rows}


async def get_score_record(user_id: str) -> ScoreRecord | None:
    """
    The account's own score state, regardless of role or status. Ids that
    are not uuids cannot name an account and read as missing.
    """
    account_id = db.parse_uuid(user_id)
    if account_id is None:
        return None
    try:
        row = await db.fetch_one(
            f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM users u
            WHERE u.id = $1::text::uuid
            """,
            account_id,
        )
    except (asyncpg.PostgresError, OSError) as exc:
        raise ScoreSourceError("Failed to load score record.") from exc
    return _to_score_record(row) if row is not None else None


async def raise_stored_points(user_id: str, points: int) -> bool:
    """
    Bring stored points up to `points`. Never lowers them, so concurrent or
    repeated corrections converge on the same value.

    Returns True when a row was changed.
    """
    account_id = db.parse_uuid(user_id)
    if account_id is None:
        return False
    status_tag = await db.execute(
        """
        UPDATE users
        SET points = GREATEST(COALESCE(points, 0), $2),
            updated_at = now()
        WHERE id = $1::text::uuid
          AND COALESCE(points, 0) < $2
        """,
        account_id,
        points,
    )
    return db.affected_rows(status_tag) > 0
