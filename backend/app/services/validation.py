from typing import Any, Iterable, List, Mapping

from ..scoring import EventType, ScoreEvent


class ValidationError(Exception):
    """Raised when submitted score events are invalid."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def parse_event_type(value: Any) -> EventType:
    """Map a stored or submitted mark symbol onto :class:`EventType`."""

    if isinstance(value, EventType):
        return value
    if isinstance(value, str):
        try:
            return EventType(value.strip().upper())
        except ValueError:
            pass
    raise ValidationError(f"Unknown score event type {value!r}; expected 'I' or 'X'.")


def _field(item: Any, *names: str) -> Any:
    for name in names:
        if isinstance(item, Mapping):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def parse_score_events(rows: Iterable[Any]) -> List[ScoreEvent]:
    """Convert storage rows or request items into engine events.

    Each row may be a mapping or an object exposing ``player_id`` (or
    ``playerId``) and ``type``.
    """

    events: List[ScoreEvent] = []
    for i, row in enumerate(rows, start=1):
        player_id = _field(row, "player_id", "playerId")
        if player_id is None or (isinstance(player_id, str) and not player_id.strip()):
            raise ValidationError(f"Event #{i} must include a player id.")
        event_type = parse_event_type(_field(row, "type"))
        events.append(ScoreEvent(player_id=str(player_id), type=event_type))
    return events


def validate_game_events(events: List[Any]) -> None:
    """Rules for a recorded game: at least one score event is required."""

    if not isinstance(events, list) or len(events) == 0:
        raise ValidationError("At least one score event is required.")
    return None
