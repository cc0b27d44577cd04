"""
Ranking engine: merge the candidate pool, project entries, order, rank.

Every ranking type is a chain of descending numeric keys followed by the
ascending user id, so the order is total and reproducible.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum

from . import scoring
from .repository import ScoreRecord

DEFAULT_LIMIT = 100
MAX_LIMIT = 500

ASC = 1
DESC = -1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class RankingType(str, Enum):
    POINTS = "points"
    LEVEL = "level"
    STREAK = "streak"

    @classmethod
    def parse(cls, raw: object) -> RankingType:
        value = str(raw or "").strip().lower()
        for member in cls:
            if member.value == value:
                return member
        return cls.POINTS


# (field, direction) chains; user_id ASC is appended to all of them.
ORDERINGS: dict[RankingType, tuple[tuple[str, int], ...]] = {
    RankingType.POINTS: (("points", DESC), ("current_streak", DESC), ("longest_streak", DESC)),
    RankingType.LEVEL: (("level", DESC), ("points", DESC), ("current_streak", DESC)),
    RankingType.STREAK: (("current_streak", DESC), ("longest_streak", DESC), ("points", DESC)),
}


@dataclass(frozen=True)
class Candidate:
    user_id: str
    display_name: str
    avatar: str | None
    points: int
    level: int
    current_streak: int
    longest_streak: int


@dataclass(frozen=True)
class RankedCandidate:
    rank: int
    candidate: Candidate


def clamp_limit(raw: object, *, default: int = DEFAULT_LIMIT) -> int:
    """
    Coerce a user-supplied page size into [1, MAX_LIMIT].

    Strings are read up to their first non-digit ("12.5" -> 12, "40rows" -> 40);
    anything without a leading integer becomes the default.
    """
    if isinstance(raw, bool) or raw is None:
        value = default
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        value = int(raw) if math.isfinite(raw) else default
    else:
        match = _LEADING_INT.match(str(raw))
        value = int(match.group(1)) if match else default
    return max(1, min(value, MAX_LIMIT))


def display_name(record: ScoreRecord) -> str:
    first = (record.first_name or "").strip()
    last = (record.last_name or "").strip()
    if first and last:
        return f"{first} {last}"
    local_part = (record.email or "").split("@", 1)[0].strip()
    return local_part or "User"


def merge_pool(pool: list[ScoreRecord], extra: list[ScoreRecord]) -> list[ScoreRecord]:
    """
    Pool followed by any extra records it did not already contain (by user id).
    """
    merged: list[ScoreRecord] = []
    seen: set[str] = set()
    for record in [*pool, *extra]:
        if record.user_id in seen:
            continue
        seen.add(record.user_id)
        merged.append(record)
    return merged


def missing_completers(pool: list[ScoreRecord], completion_counts: dict[str, int]) -> list[str]:
    have = {record.user_id for record in pool}
    return sorted(user_id for user_id, count in completion_counts.items() if count > 0 and user_id not in have)


def project(record: ScoreRecord, completed_courses: int) -> Candidate:
    return Candidate(
        user_id=record.user_id,
        display_name=display_name(record),
        avatar=record.avatar,
        points=scoring.effective_points(record.points, completed_courses),
        level=record.level,
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
    )


def sort_key(ranking_type: RankingType):
    chain = ORDERINGS[ranking_type]

    def key(candidate: Candidate) -> tuple:
        values = tuple(direction * getattr(candidate, field) for field, direction in chain)
        return values + (candidate.user_id,)

    return key


def order(candidates: list[Candidate], ranking_type: RankingType) -> list[Candidate]:
    return sorted(candidates, key=sort_key(ranking_type))


def assign_ranks(ordered: list[Candidate]) -> list[RankedCandidate]:
    # Position-based: ties were already broken by the sort key.
    return [RankedCandidate(rank=position, candidate=c) for position, c in enumerate(ordered, start=1)]


def rank(
    records: list[ScoreRecord],
    completion_counts: dict[str, int],
    ranking_type: RankingType,
) -> list[Candidate]:
    """
    Project and fully order the whole pool. Pagination happens afterwards so
    ranks always reflect position in the complete order.
    """
    candidates = [project(r, completion_counts.get(r.user_id, 0)) for r in records]
    return order(candidates, ranking_type)


def page(ordered: list[Candidate], limit: int) -> list[RankedCandidate]:
    return assign_ranks(ordered)[:limit]
