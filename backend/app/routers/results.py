from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import MAX_YEAR, MIN_YEAR
from ..db import get_session
from ..models import Tournament
from ..schemas import PublicTournamentOut, YearlyResultsOut
from ..exceptions import ProblemDetail, http_problem
from ..services.results import standings_out, yearly_standings
from ..time_utils import format_date

# Public, unauthenticated read-only views.
router = APIRouter(
    tags=["results"],
    responses={400: {"model": ProblemDetail}},
)


def _parse_year(raw: str) -> int:
    try:
        year = int(raw)
    except (TypeError, ValueError):
        raise http_problem(
            status_code=400,
            detail="valid year is required",
            code="results_invalid_year",
        )
    if year < MIN_YEAR or year > MAX_YEAR:
        raise http_problem(
            status_code=400,
            detail=f"year must be between {MIN_YEAR} and {MAX_YEAR}",
            code="results_invalid_year",
        )
    return year


# GET /api/v0/results/yearly/2025
@router.get("/results/yearly/{year}", response_model=YearlyResultsOut)
async def yearly_results(year: str, session: AsyncSession = Depends(get_session)):
    year_int = _parse_year(year)
    scores = await yearly_standings(session, year_int)
    return YearlyResultsOut(
        year=year_int,
        scores=await standings_out(session, scores),
    )


# GET /api/v0/public/tournaments
@router.get("/public/tournaments", response_model=list[PublicTournamentOut])
async def public_tournaments(session: AsyncSession = Depends(get_session)):
    rows = (
        await session.execute(
            select(Tournament)
            .where(Tournament.state == "closed")
            .order_by(Tournament.date.desc(), Tournament.created_at.desc())
        )
    ).scalars().all()
    return [
        PublicTournamentOut(id=t.id, date=format_date(t.date), state=t.state)
        for t in rows
    ]
