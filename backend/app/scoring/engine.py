"""Cluster scoring engine for the card tournament.

Plus (``I``) and minus (``X``) marks are tallied independently and never
cancel each other. Four identical marks form a cluster worth ``+1`` or
``-1``; leftover marks (0-3) are carried as remainders and never count
towards the net score on their own.

Every function here is pure: results are rebuilt from the supplied events on
each call and nothing is cached or mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

CLUSTER_SIZE = 4


class EventType(str, Enum):
    PLUS = "I"
    MINUS = "X"


@dataclass(frozen=True)
class ScoreEvent:
    player_id: str
    type: EventType


@dataclass(frozen=True)
class InitialRemainder:
    """Unresolved marks carried over from a previous scoring window."""

    plus: int = 0
    minus: int = 0


@dataclass(frozen=True)
class PlayerScore:
    plus_clusters: int = 0
    minus_clusters: int = 0
    plus_remainder: int = 0
    minus_remainder: int = 0
    net_score: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "plusClusters": self.plus_clusters,
            "minusClusters": self.minus_clusters,
            "plusRemainder": self.plus_remainder,
            "minusRemainder": self.minus_remainder,
            "netScore": self.net_score,
        }

    def carry_over(self) -> InitialRemainder:
        """Return the remainders to seed the next scoring window with."""

        return InitialRemainder(plus=self.plus_remainder, minus=self.minus_remainder)


def score_player(
    events: Iterable[ScoreEvent],
    initial_remainder: InitialRemainder | None = None,
) -> PlayerScore:
    """Fold a single player's events into a :class:`PlayerScore`.

    ``events`` must already be restricted to one player. ``initial_remainder``
    seeds the counts before any event is applied.
    """

    plus = initial_remainder.plus if initial_remainder else 0
    minus = initial_remainder.minus if initial_remainder else 0

    for event in events:
        if event.type is EventType.PLUS:
            plus += 1
        elif event.type is EventType.MINUS:
            minus += 1

    plus_clusters, plus_remainder = divmod(plus, CLUSTER_SIZE)
    minus_clusters, minus_remainder = divmod(minus, CLUSTER_SIZE)
    return PlayerScore(
        plus_clusters=plus_clusters,
        minus_clusters=minus_clusters,
        plus_remainder=plus_remainder,
        minus_remainder=minus_remainder,
        net_score=plus_clusters - minus_clusters,
    )


def group_by_player(events: Iterable[ScoreEvent]) -> dict[str, list[ScoreEvent]]:
    """Partition ``events`` by player, keeping each player's relative order."""

    grouped: dict[str, list[ScoreEvent]] = {}
    for event in events:
        grouped.setdefault(event.player_id, []).append(event)
    return grouped


def score_tournament(
    events: Iterable[ScoreEvent],
    player_ids: Iterable[str],
    initial_remainders: Mapping[str, InitialRemainder] | None = None,
) -> dict[str, PlayerScore]:
    """Score every player in ``player_ids`` over a mixed event stream.

    Each listed player gets exactly one entry, including players without
    events. Events belonging to players that are not listed are ignored.
    """

    grouped = group_by_player(events)
    remainders = initial_remainders or {}
    return {
        pid: score_player(grouped.get(pid, ()), remainders.get(pid))
        for pid in player_ids
    }
