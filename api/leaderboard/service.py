"""
Leaderboard orchestration.

Flow (per request, nothing cached between requests):
1) Read the bounded candidate pool, completion counts and the viewer's own
   record concurrently
2) Patch in users who have completions but fell outside the pool window
3) Reconcile stored points (detached write-back for stale users)
4) Order the whole pool, assign positional ranks, slice the page
5) Locate the viewer in the full order
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass

from fastapi import HTTPException

from . import positioning, ranking, repository, schemas, scoring
from .ranking import RankingType

DEFAULT_POOL_CEILING = 500

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def pool_ceiling() -> int:
    # Env can only shrink the window, never widen it past 500.
    return max(1, min(_env_int("LEADERBOARD_POOL_CEILING", DEFAULT_POOL_CEILING), DEFAULT_POOL_CEILING))


def default_limit() -> int:
    return ranking.clamp_limit(_env_int("LEADERBOARD_DEFAULT_LIMIT", ranking.DEFAULT_LIMIT))


@dataclass(frozen=True)
class RankedPool:
    ordered: list[ranking.Candidate]
    viewer: schemas.CurrentUserStanding | None


async def _gather_or_cancel(*coros):
    """
    Run reads concurrently. If one fails, cancel the rest and wait for them
    before re-raising, so no query outlives the request.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _read_sources(
    ranking_type: RankingType,
    user_id: str,
) -> tuple[list[repository.ScoreRecord], dict[str, int], repository.ScoreRecord | None]:
    try:
        pool, completion_counts, viewer_record = await _gather_or_cancel(
            repository.load_candidate_pool(ranking_type.value, ceiling=pool_ceiling()),
            repository.load_completion_counts(),
            repository.get_score_record(user_id),
        )
        extra = await repository.load_accounts(ranking.missing_completers(pool, completion_counts))
    except repository.ScoreSourceError as exc:
        logger.exception("leaderboard_read_failed type=%s user_id=%s", ranking_type.value, user_id)
        raise HTTPException(status_code=500, detail="Failed to load leaderboard.") from exc

    if extra:
        logger.debug("leaderboard_pool_patched type=%s added=%s", ranking_type.value, len(extra))
    return ranking.merge_pool(pool, extra), completion_counts, viewer_record


def _viewer_standing(
    record: repository.ScoreRecord | None,
    ordered: list[ranking.Candidate],
    completion_counts: dict[str, int],
    *,
    already_reconciled: bool,
) -> schemas.CurrentUserStanding | None:
    if record is None:
        return None

    completed = completion_counts.get(record.user_id, 0)
    if already_reconciled:
        points = scoring.effective_points(record.points, completed)
    else:
        points = scoring.reconcile_if_stale(record, completed)

    return schemas.CurrentUserStanding(
        rank=positioning.locate(ordered, record.user_id),
        points=points,
        level=record.level,
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
    )


async def _rank_pool(ranking_type: RankingType, *, user_id: str) -> RankedPool:
    records, completion_counts, viewer_record = await _read_sources(ranking_type, user_id)

    for record in records:
        scoring.reconcile_if_stale(record, completion_counts.get(record.user_id, 0))

    ordered = ranking.rank(records, completion_counts, ranking_type)
    viewer = _viewer_standing(
        viewer_record,
        ordered,
        completion_counts,
        already_reconciled=viewer_record is not None and any(r.user_id == viewer_record.user_id for r in records),
    )
    return RankedPool(ordered=ordered, viewer=viewer)


def _to_entry(item: ranking.RankedCandidate) -> schemas.LeaderboardEntry:
    candidate = item.candidate
    return schemas.LeaderboardEntry(
        user_id=candidate.user_id,
        display_name=candidate.display_name,
        avatar=candidate.avatar,
        points=candidate.points,
        level=candidate.level,
        current_streak=candidate.current_streak,
        longest_streak=candidate.longest_streak,
        rank=item.rank,
    )


async def get_leaderboard(
    *,
    user_id: str,
    ranking_type: object = RankingType.POINTS.value,
    limit: object = None,
) -> schemas.LeaderboardResponse:
    kind = RankingType.parse(ranking_type)
    page_size = ranking.clamp_limit(limit, default=default_limit())

    ranked = await _rank_pool(kind, user_id=user_id)
    entries = [_to_entry(item) for item in ranking.page(ranked.ordered, page_size)]

    logger.info(
        "leaderboard_served type=%s pool=%s returned=%s user_id=%s",
        kind.value,
        len(ranked.ordered),
        len(entries),
        user_id,
    )
    return schemas.LeaderboardResponse(
        leaderboard=entries,
        current_user=ranked.viewer,
        type=kind.value,
    )


async def get_standing(*, user_id: str, ranking_type: object = RankingType.POINTS.value) -> schemas.StandingResponse:
    kind = RankingType.parse(ranking_type)
    ranked = await _rank_pool(kind, user_id=user_id)
    return schemas.StandingResponse(current_user=ranked.viewer, type=kind.value)
