import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..db_errors import is_unique_violation
from ..models import Tournament
from ..schemas import (
    TournamentClose,
    TournamentCreate,
    TournamentOut,
    TournamentResultsOut,
)
from ..exceptions import (
    ProblemDetail,
    TournamentDateExists,
    TournamentNotFound,
    http_problem,
)
from ..services.results import standings_out, tournament_standings
from ..time_utils import coerce_utc, format_date, utcnow_naive
from .auth import require_auth

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tournaments",
    tags=["tournaments"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


def tournament_out(t: Tournament) -> TournamentOut:
    return TournamentOut(
        id=t.id,
        date=format_date(t.date),
        state=t.state,
        started_at=coerce_utc(t.started_at),
        closed_at=coerce_utc(t.closed_at),
        created_at=coerce_utc(t.created_at),
    )


async def get_tournament_or_404(session: AsyncSession, tournament_id: str) -> Tournament:
    t = await session.get(Tournament, tournament_id)
    if not t:
        raise TournamentNotFound(tournament_id)
    return t


async def get_active_tournament(session: AsyncSession) -> Tournament | None:
    return (
        await session.execute(
            select(Tournament)
            .where(Tournament.state == "active")
            .order_by(Tournament.started_at.desc())
            .limit(1)
        )
    ).scalars().first()


@router.get("", response_model=list[TournamentOut], dependencies=[Depends(require_auth)])
async def list_tournaments(session: AsyncSession = Depends(get_session)):
    rows = (
        await session.execute(
            select(Tournament).order_by(
                Tournament.date.desc(), Tournament.created_at.desc()
            )
        )
    ).scalars().all()
    return [tournament_out(t) for t in rows]


@router.post(
    "",
    response_model=TournamentOut,
    status_code=201,
    dependencies=[Depends(require_auth)],
)
async def create_tournament(
    body: TournamentCreate,
    session: AsyncSession = Depends(get_session),
):
    existing = (
        await session.execute(select(Tournament.id).where(Tournament.date == body.date))
    ).scalars().first()
    if existing:
        raise TournamentDateExists(body.date.isoformat())

    t = Tournament(
        id=uuid.uuid4().hex,
        date=body.date,
        state="draft",
        created_at=utcnow_naive(),
    )
    session.add(t)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        # Lost a race with a concurrent create for the same date.
        if is_unique_violation(exc, "date"):
            raise TournamentDateExists(body.date.isoformat())
        raise
    await session.refresh(t)
    return tournament_out(t)


@router.get(
    "/active",
    response_model=TournamentOut | None,
    dependencies=[Depends(require_auth)],
)
async def active_tournament(session: AsyncSession = Depends(get_session)):
    t = await get_active_tournament(session)
    if t is None:
        logger.info("No active tournament found")
        return None
    return tournament_out(t)


@router.get(
    "/{tournament_id}",
    response_model=TournamentOut,
    dependencies=[Depends(require_auth)],
)
async def get_tournament(
    tournament_id: str, session: AsyncSession = Depends(get_session)
):
    t = await get_tournament_or_404(session, tournament_id)
    return tournament_out(t)


@router.post(
    "/{tournament_id}/start",
    response_model=TournamentOut,
    dependencies=[Depends(require_auth)],
)
async def start_tournament(
    tournament_id: str, session: AsyncSession = Depends(get_session)
):
    t = await session.get(Tournament, tournament_id)
    if not t or t.state != "draft":
        raise http_problem(
            status_code=404,
            detail="tournament not found or not in draft state",
            code="tournament_not_draft",
        )

    active = await get_active_tournament(session)
    if active is not None:
        raise http_problem(
            status_code=400,
            detail="another tournament is already active",
            code="tournament_already_active",
        )

    t.state = "active"
    t.started_at = utcnow_naive()
    await session.commit()
    await session.refresh(t)
    logger.info("Tournament %s (%s) started", t.id, format_date(t.date))
    return tournament_out(t)


@router.post(
    "/{tournament_id}/close",
    response_model=TournamentOut,
    dependencies=[Depends(require_auth)],
)
async def close_tournament(
    tournament_id: str,
    body: TournamentClose,
    session: AsyncSession = Depends(get_session),
):
    t = await get_tournament_or_404(session, tournament_id)
    if t.state != "active":
        raise http_problem(
            status_code=404,
            detail=f"tournament found but not active (current state: {t.state})",
            code="tournament_not_active",
        )

    # Closing is irreversible, so the operator must type the tournament date.
    if body.confirmation.strip() != format_date(t.date):
        raise http_problem(
            status_code=400,
            detail="tournament date confirmation does not match",
            code="tournament_confirmation_mismatch",
        )

    t.state = "closed"
    t.closed_at = utcnow_naive()
    await session.commit()
    await session.refresh(t)
    logger.info("Tournament %s (%s) closed", t.id, format_date(t.date))
    return tournament_out(t)


@router.get("/{tournament_id}/results", response_model=TournamentResultsOut)
async def tournament_results(
    tournament_id: str, session: AsyncSession = Depends(get_session)
):
    t = await get_tournament_or_404(session, tournament_id)
    scores = await tournament_standings(session, t.id)
    return TournamentResultsOut(
        tournament=tournament_out(t),
        scores=await standings_out(session, scores),
    )
