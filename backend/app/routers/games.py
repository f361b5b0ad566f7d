import logging
import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import GAME_DELETE_WINDOW_SECONDS
from ..db import get_session
from ..models import Game, Player, ScoreEvent, Tournament
from ..schemas import (
    GameCreate,
    GameDetailOut,
    GameEventOut,
    GameOut,
    GamePreviewOut,
    GamePreviewRequest,
    MessageOut,
    decode_binary,
    encode_binary,
)
from ..exceptions import GameNotFound, ProblemDetail, TournamentNotFound, http_problem
from ..services import ValidationError, parse_score_events, validate_game_events
from ..services.results import player_info, preview_standings, standings_out
from ..time_utils import coerce_utc, utcnow_naive
from .auth import require_auth

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/games",
    tags=["games"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


def _game_out(game: Game) -> GameOut:
    return GameOut(
        id=game.id,
        tournament_id=game.tournament_id,
        comment=game.comment,
        photo=encode_binary(game.photo_data),
        created_at=coerce_utc(game.created_at),
    )


async def _require_active_tournament(session: AsyncSession, tournament_id: str) -> Tournament:
    tournament = await session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(tournament_id)
    if tournament.state != "active":
        raise http_problem(
            status_code=400,
            detail="tournament is not active",
            code="tournament_not_active",
        )
    return tournament


def _parse_events(items) -> list:
    try:
        validate_game_events(items)
        return parse_score_events(items)
    except ValidationError as exc:
        raise http_problem(
            status_code=400,
            detail=exc.detail,
            code="game_invalid_events",
        )


async def _require_known_players(session: AsyncSession, player_ids: set[str]) -> None:
    known = (
        await session.execute(select(Player.id).where(Player.id.in_(player_ids)))
    ).scalars().all()
    missing = sorted(player_ids - set(known))
    if missing:
        raise http_problem(
            status_code=400,
            detail=f"unknown players: {', '.join(missing)}",
            code="game_unknown_players",
        )


@router.post(
    "",
    response_model=GameOut,
    status_code=201,
    dependencies=[Depends(require_auth)],
)
async def create_game(
    body: GameCreate,
    session: AsyncSession = Depends(get_session),
):
    tournament = await _require_active_tournament(session, body.tournamentId)
    events = _parse_events(body.events)
    await _require_known_players(session, {e.player_id for e in events})

    now = utcnow_naive()
    game = Game(
        id=uuid.uuid4().hex,
        tournament_id=tournament.id,
        comment=(body.comment or None),
        photo_data=decode_binary(body.photo),
        created_at=now,
    )
    session.add(game)
    await session.flush()
    for offset, event in enumerate(events):
        # Distinct timestamps keep the recorded order stable when sorting.
        session.add(
            ScoreEvent(
                id=uuid.uuid4().hex,
                game_id=game.id,
                player_id=event.player_id,
                type=event.type.value,
                created_at=now + timedelta(microseconds=offset),
            )
        )
    await session.commit()
    logger.info(
        "Recorded game %s in tournament %s with %d events",
        game.id,
        tournament.id,
        len(events),
    )
    return _game_out(game)


@router.post(
    "/preview",
    response_model=GamePreviewOut,
    dependencies=[Depends(require_auth)],
)
async def preview_game(
    body: GamePreviewRequest,
    session: AsyncSession = Depends(get_session),
):
    # Preview applies the same rules as recording a game.
    tournament = await _require_active_tournament(session, body.tournamentId)
    try:
        pending = parse_score_events(body.events)
    except ValidationError as exc:
        raise http_problem(
            status_code=400,
            detail=exc.detail,
            code="game_invalid_events",
        )
    if pending:
        await _require_known_players(session, {e.player_id for e in pending})
    scores = await preview_standings(session, tournament.id, pending)
    return GamePreviewOut(
        tournamentId=tournament.id,
        scores=await standings_out(session, scores),
    )


@router.get("/{game_id}", response_model=GameDetailOut)
async def get_game(game_id: str, session: AsyncSession = Depends(get_session)):
    game = await session.get(Game, game_id)
    if not game:
        raise GameNotFound(game_id)

    rows = (
        await session.execute(
            select(ScoreEvent, Player)
            .join(Player, Player.id == ScoreEvent.player_id, isouter=True)
            .where(ScoreEvent.game_id == game_id)
            .order_by(ScoreEvent.created_at, ScoreEvent.id)
        )
    ).all()

    out = _game_out(game)
    return GameDetailOut(
        **out.model_dump(),
        events=[
            GameEventOut(
                id=ev.id,
                playerId=ev.player_id,
                type=ev.type,
                created_at=coerce_utc(ev.created_at),
                player=player_info(player),
            )
            for ev, player in rows
        ],
    )


@router.delete(
    "/{game_id}",
    response_model=MessageOut,
    dependencies=[Depends(require_auth)],
)
async def delete_game(game_id: str, session: AsyncSession = Depends(get_session)):
    game = await session.get(Game, game_id)
    if not game:
        raise GameNotFound(game_id)

    age = utcnow_naive() - game.created_at.replace(tzinfo=None)
    if age.total_seconds() > GAME_DELETE_WINDOW_SECONDS:
        raise http_problem(
            status_code=400,
            detail=(
                "game can only be deleted within "
                f"{GAME_DELETE_WINDOW_SECONDS} seconds of creation"
            ),
            code="game_delete_window_expired",
        )

    await session.execute(delete(ScoreEvent).where(ScoreEvent.game_id == game_id))
    await session.execute(delete(Game).where(Game.id == game_id))
    await session.commit()
    logger.info("Deleted game %s from tournament %s", game_id, game.tournament_id)
    return MessageOut(message="Game deleted")
