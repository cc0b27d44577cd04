"""
Activity API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter()


@router.post("/activity")
async def record_activity(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    """
    Count today towards the caller's streak. Repeated calls on the same day are no-ops.
    """
    return await service.record_activity(str(current_user["id"]))
