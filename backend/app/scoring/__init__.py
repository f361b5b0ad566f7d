"""Scoring engine shared by the API and offline tooling."""

from .engine import (
    CLUSTER_SIZE,
    EventType,
    InitialRemainder,
    PlayerScore,
    ScoreEvent,
    group_by_player,
    score_player,
    score_tournament,
)

__all__ = [
    "CLUSTER_SIZE",
    "EventType",
    "InitialRemainder",
    "PlayerScore",
    "ScoreEvent",
    "group_by_player",
    "score_player",
    "score_tournament",
]
