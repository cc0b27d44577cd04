"""
Streak persistence (raw SQL on `users`).
"""

from __future__ import annotations

from datetime import date

from core import db


async def get_streak(user_id: str) -> dict | None:
    account_id = db.parse_uuid(user_id)
    if account_id is None:
        return None
    return await db.fetch_one(
        """
        SELECT id::text AS user_id, current_streak, longest_streak, last_active_date
        FROM users
        WHERE id = $1::text::uuid
        """,
        account_id,
    )


async def update_streak(
    user_id: str,
    *,
    current_streak: int,
    longest_streak: int,
    last_active_date: date,
) -> None:
    account_id = db.parse_uuid(user_id)
    if account_id is None:
        return None
    await db.execute(
        """
        UPDATE users
        SET current_streak = $2,
            longest_streak = GREATEST(COALESCE(longest_streak, 0), $3),
            last_active_date = $4,
            updated_at = now()
        WHERE id = $1::text::uuid
        """,
        account_id,
        current_streak,
        longest_streak,
        last_active_date,
    )
