"""
Viewer positioning: where the requesting user sits in the full order.
"""

from __future__ import annotations

from .ranking import Candidate


def locate(ordered: list[Candidate], user_id: str) -> int:
    """
    1-based position of `user_id` in the full (unpaginated) order.

    Users outside the pool get `len(ordered) + 1`, just past the last entry,
    so callers always have a number to show.
    """
    for position, candidate in enumerate(ordered, start=1):
        if candidate.user_id == user_id:
            return position
    return len(ordered) + 1
