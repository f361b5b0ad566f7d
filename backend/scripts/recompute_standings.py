#!/usr/bin/env python3
"""Recompute standings from the stored score events.

Uses the same scoring engine as the API, so the output matches what the
results pages show. Run with DATABASE_URL pointing at the database::

    DATABASE_URL=postgresql://... python backend/scripts/recompute_standings.py --year 2025
    DATABASE_URL=postgresql://... python backend/scripts/recompute_standings.py --tournament <id>

The standings are printed as a JSON document.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.config import MAX_YEAR, MIN_YEAR  # noqa: E402
from app.db import normalize_database_url  # noqa: E402
from app.models import Tournament  # noqa: E402
from app.services.results import (  # noqa: E402
    load_players,
    ranked,
    tournament_standings,
    yearly_standings,
)

logger = logging.getLogger("recompute_standings")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    scope = parser.add_mutually_exclusive_group(required=True)
    scope.add_argument("--tournament", help="tournament id to score")
    scope.add_argument("--year", type=int, help="calendar year to score")
    parser.add_argument(
        "--indent", type=int, default=2, help="JSON indentation (default: 2)"
    )
    args = parser.parse_args(argv)
    if args.year is not None and not MIN_YEAR <= args.year <= MAX_YEAR:
        parser.error(f"--year must be between {MIN_YEAR} and {MAX_YEAR}")
    return args


async def _collect(session: AsyncSession, args: argparse.Namespace) -> dict:
    if args.tournament is not None:
        tournament = await session.get(Tournament, args.tournament)
        if tournament is None:
            raise SystemExit(f"tournament {args.tournament!r} not found")
        scores = await tournament_standings(session, tournament.id)
        scope = {"tournament": tournament.id, "date": tournament.date.isoformat()}
    else:
        scores = await yearly_standings(session, args.year)
        scope = {"year": args.year}

    players = await load_players(session, scores.keys())
    rows = []
    for rank, player_id, score in ranked(scores):
        player = players.get(player_id)
        rows.append(
            {
                "rank": rank,
                "playerId": player_id,
                "nickname": player.nickname if player else None,
                **score.as_dict(),
            }
        )
    return {**scope, "scores": rows}


async def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL environment variable is required")

    engine = create_async_engine(
        normalize_database_url(database_url), echo=False, pool_pre_ping=True
    )
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with Session() as session:
            document = await _collect(session, args)
    finally:
        await engine.dispose()

    logger.info("Scored %d players", len(document["scores"]))
    print(json.dumps(document, indent=args.indent))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(main())
