"""
Shared fixtures.

`FakeScoreStore` stands in for the `users` / `enrollments` tables and is
patched over `leaderboard.repository`, so services run unchanged against it.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from leaderboard import repository, scoring
from leaderboard.repository import ScoreRecord


def make_record(
    user_id: str,
    *,
    points: int = 0,
    level: int = 1,
    current_streak: int = 0,
    longest_streak: int = 0,
    role: str = "learner",
    status: str = "active",
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    avatar: str | None = None,
) -> ScoreRecord:
    return ScoreRecord(
        user_id=user_id,
        email=email if email is not None else f"{user_id}@example.com",
        first_name=first_name,
        last_name=last_name,
        avatar=avatar,
        role=role,
        status=status,
        points=points,
        level=level,
        current_streak=current_streak,
        longest_streak=longest_streak,
    )


class FakeScoreStore:
    def __init__(self) -> None:
        self.users: dict[str, ScoreRecord] = {}
        # (user_id, course_id, status, progress)
        self.enrollments: list[tuple[str, str, str, int]] = []
        self.writes: list[tuple[str, int]] = []
        self.fail_reads = False
        self.fail_writes = False
        self.pool_calls: list[tuple[str, int]] = []

    def add(self, record: ScoreRecord) -> ScoreRecord:
        self.users[record.user_id] = record
        return record

    def complete(self, user_id: str, count: int, *, via_progress: bool = False) -> None:
        for i in range(count):
            if via_progress:
                self.enrollments.append((user_id, f"course-{i}", "in_progress", 100))
            else:
                self.enrollments.append((user_id, f"course-{i}", "completed", 40))

    def _eligible(self, record: ScoreRecord) -> bool:
        return record.role in repository.ELIGIBLE_ROLES and record.status == repository.ACTIVE_STATUS

    def _check_reads(self) -> None:
        if self.fail_reads:
            raise repository.ScoreSourceError("database unavailable")

    async def load_candidate_pool(self, ranking_type: str, *, ceiling: int = 500) -> list[ScoreRecord]:
        self._check_reads()
        self.pool_calls.append((ranking_type, ceiling))
        keys = {
            "points": lambda r: (-r.points, r.user_id),
            "level": lambda r: (-r.level, -r.points, r.user_id),
            "streak": lambda r: (-r.current_streak, -r.longest_streak, r.user_id),
        }
        eligible = [r for r in self.users.values() if self._eligible(r)]
        return sorted(eligible, key=keys.get(ranking_type, keys["points"]))[:ceiling]

    async def load_accounts(self, user_ids: list[str]) -> list[ScoreRecord]:
        self._check_reads()
        return [self.users[u] for u in user_ids if u in self.users and self._eligible(self.users[u])]

    async def load_completion_counts(self) -> dict[str, int]:
        self._check_reads()
        courses: dict[str, set[str]] = {}
        for user_id, course_id, status, progress in self.enrollments:
            if status == "completed" or progress == 100:
                courses.setdefault(user_id, set()).add(course_id)
        return {user_id: len(ids) for user_id, ids in courses.items()}

    async def get_score_record(self, user_id: str) -> ScoreRecord | None:
        self._check_reads()
        return self.users.get(user_id)

    async def raise_stored_points(self, user_id: str, points: int) -> bool:
        if self.fail_writes:
            raise OSError("connection reset")
        record = self.users.get(user_id)
        if record is None or record.points >= points:
            return False
        self.users[user_id] = replace(record, points=points)
        self.writes.append((user_id, points))
        return True


@pytest.fixture
def store(monkeypatch) -> FakeScoreStore:
    fake = FakeScoreStore()
    for name in (
        "load_candidate_pool",
        "load_accounts",
        "load_completion_counts",
        "get_score_record",
        "raise_stored_points",
    ):
        monkeypatch.setattr(repository, name, getattr(fake, name))
    return fake


@pytest.fixture(autouse=True)
def _isolate_pending_corrections():
    yield
    # Tasks from a finished test's event loop must not leak into the next one.
    scoring._pending.clear()


@pytest.fixture(autouse=True)
def _leaderboard_env(monkeypatch):
    monkeypatch.delenv("LEADERBOARD_POOL_CEILING", raising=False)
    monkeypatch.delenv("LEADERBOARD_DEFAULT_LIMIT", raising=False)
    monkeypatch.setenv("JWT_SECRET", "test-secret-with-at-least-32-bytes-of-key")
    monkeypatch.delenv("JWT_ALG", raising=False)
    monkeypatch.delenv("ACCESS_TOKEN_EXPIRE_MIN", raising=False)
