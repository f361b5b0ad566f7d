"""Standings built from stored score events.

All scoring goes through :mod:`app.scoring`; the helpers here only select the
events for an aggregation scope (a tournament or a calendar year) and order
the resulting scores for display.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Game, Player, ScoreEvent as ScoreEventRow
from ..schemas import PlayerInfoOut, StandingOut, encode_binary
from ..scoring import InitialRemainder, PlayerScore, ScoreEvent, score_tournament
from ..time_utils import year_bounds
from .validation import parse_score_events

logger = logging.getLogger(__name__)


async def tournament_events(
    session: AsyncSession, tournament_id: str
) -> list[ScoreEvent]:
    """Return every score event recorded for ``tournament_id``."""

    rows = (
        await session.execute(
            select(ScoreEventRow.player_id, ScoreEventRow.type)
            .join(Game, Game.id == ScoreEventRow.game_id)
            .where(Game.tournament_id == tournament_id)
            .order_by(ScoreEventRow.created_at, ScoreEventRow.id)
        )
    ).all()
    return parse_score_events(rows)


async def yearly_events(session: AsyncSession, year: int) -> list[ScoreEvent]:
    """Return every score event from games created during ``year``."""

    start, end = year_bounds(year)
    stmt = (
        select(ScoreEventRow.player_id, ScoreEventRow.type)
        .join(Game, Game.id == ScoreEventRow.game_id)
        .where(Game.created_at >= start)
    )
    if end is not None:
        stmt = stmt.where(Game.created_at < end)
    rows = (
        await session.execute(stmt.order_by(ScoreEventRow.created_at, ScoreEventRow.id))
    ).all()
    return parse_score_events(rows)


def distinct_player_ids(events: Iterable[ScoreEvent]) -> list[str]:
    """Player ids in order of first appearance."""

    seen: dict[str, None] = {}
    for event in events:
        seen.setdefault(event.player_id, None)
    return list(seen.keys())


def standings(
    events: Iterable[ScoreEvent],
    player_ids: Iterable[str] | None = None,
    initial_remainders: Mapping[str, InitialRemainder] | None = None,
) -> dict[str, PlayerScore]:
    """Score a scope. Without ``player_ids`` every player with events is included."""

    events = list(events)
    if player_ids is None:
        player_ids = distinct_player_ids(events)
    return score_tournament(events, player_ids, initial_remainders)


def _rank_key(item: tuple[str, PlayerScore]) -> tuple:
    player_id, score = item
    return (-score.net_score, -score.plus_clusters, score.minus_clusters, player_id)


def ranked(scores: Mapping[str, PlayerScore]) -> list[tuple[int, str, PlayerScore]]:
    """Order scores for a leaderboard and assign competition ranks.

    Players are ordered by net score, then plus clusters, then fewest minus
    clusters. Players sharing a net score share a rank (``1, 1, 3``).
    """

    ordered = sorted(scores.items(), key=_rank_key)
    result: list[tuple[int, str, PlayerScore]] = []
    previous_net: int | None = None
    rank = 0
    for position, (player_id, score) in enumerate(ordered, start=1):
        if score.net_score != previous_net:
            rank = position
            previous_net = score.net_score
        result.append((rank, player_id, score))
    return result


async def load_players(
    session: AsyncSession, player_ids: Iterable[str]
) -> dict[str, Player]:
    """Fetch players by id, including soft-deleted ones."""

    ids = list(player_ids)
    if not ids:
        return {}
    rows = (
        await session.execute(select(Player).where(Player.id.in_(ids)))
    ).scalars().all()
    missing = set(ids) - {p.id for p in rows}
    if missing:
        logger.warning("Scores reference unknown players: %s", ", ".join(sorted(missing)))
    return {p.id: p for p in rows}


async def tournament_standings(
    session: AsyncSession, tournament_id: str
) -> dict[str, PlayerScore]:
    events = await tournament_events(session, tournament_id)
    return standings(events)


async def yearly_standings(session: AsyncSession, year: int) -> dict[str, PlayerScore]:
    events = await yearly_events(session, year)
    return standings(events)


async def preview_standings(
    session: AsyncSession,
    tournament_id: str,
    pending: Sequence[ScoreEvent],
) -> dict[str, PlayerScore]:
    """Score unsaved events on top of a tournament's current remainders.

    Clusters already completed in the tournament are added back so the
    result matches a full recomputation with ``pending`` appended.
    """

    current = await tournament_standings(session, tournament_id)
    player_ids = list(current.keys())
    for pid in distinct_player_ids(pending):
        if pid not in current:
            player_ids.append(pid)

    carried = {pid: score.carry_over() for pid, score in current.items()}
    window = score_tournament(pending, player_ids, carried)

    combined: dict[str, PlayerScore] = {}
    for pid in player_ids:
        before = current.get(pid, PlayerScore())
        after = window[pid]
        plus_clusters = before.plus_clusters + after.plus_clusters
        minus_clusters = before.minus_clusters + after.minus_clusters
        combined[pid] = PlayerScore(
            plus_clusters=plus_clusters,
            minus_clusters=minus_clusters,
            plus_remainder=after.plus_remainder,
            minus_remainder=after.minus_remainder,
            net_score=plus_clusters - minus_clusters,
        )
    return combined


def player_info(player: Player | None) -> PlayerInfoOut | None:
    if player is None:
        return None
    return PlayerInfoOut(
        id=player.id,
        name=player.name,
        nickname=player.nickname,
        avatar=encode_binary(player.avatar_data),
        deleted=player.deleted_at is not None,
    )


async def standings_out(
    session: AsyncSession, scores: Mapping[str, PlayerScore]
) -> list[StandingOut]:
    """Ranked standings with player details attached for the presentation layer."""

    players = await load_players(session, scores.keys())
    return [
        StandingOut(
            playerId=player_id,
            rank=rank,
            player=player_info(players.get(player_id)),
            **score.as_dict(),
        )
        for rank, player_id, score in ranked(scores)
    ]
