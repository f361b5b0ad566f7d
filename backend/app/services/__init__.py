"""Internal application services."""

from .validation import (
    ValidationError,
    parse_event_type,
    parse_score_events,
    validate_game_events,
)
from .results import distinct_player_ids, ranked, standings

__all__ = [
    "ValidationError",
    "parse_event_type",
    "parse_score_events",
    "validate_game_events",
    "distinct_player_ids",
    "ranked",
    "standings",
]
