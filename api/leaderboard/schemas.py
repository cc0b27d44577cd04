"""
Leaderboard API schemas (response models). Wire names are camelCase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LeaderboardEntry(_CamelModel):
    user_id: str
    display_name: str
    avatar: str | None = None
    # Effective points: max(stored, completed courses * 100).
    points: int
    level: int
    current_streak: int
    longest_streak: int
    rank: int


class CurrentUserStanding(_CamelModel):
    rank: int
    points: int
    level: int
    current_streak: int
    longest_streak: int


class LeaderboardResponse(_CamelModel):
    leaderboard: list[LeaderboardEntry]
    current_user: CurrentUserStanding | None = None
    type: str


class StandingResponse(_CamelModel):
    current_user: CurrentUserStanding | None = None
    type: str
