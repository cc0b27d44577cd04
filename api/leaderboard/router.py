"""
Leaderboard API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter()


# `type` and `limit` stay loosely typed: bad values fall back instead of 422.
@router.get("/leaderboard", response_model=schemas.LeaderboardResponse)
async def get_leaderboard(
    type: str = Query(default="points"),
    limit: str | None = Query(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.LeaderboardResponse:
    return await service.get_leaderboard(
        user_id=str(current_user["id"]),
        ranking_type=type,
        limit=limit,
    )


@router.get("/leaderboard/me", response_model=schemas.StandingResponse)
async def get_my_standing(
    type: str = Query(default="points"),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.StandingResponse:
    return await service.get_standing(user_id=str(current_user["id"]), ranking_type=type)
