import asyncio
import os
import uuid
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.db import normalize_database_url
from app.models import Game, Player, ScoreEvent, Tournament
from app.time_utils import utcnow_naive

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
DATABASE_URL = normalize_database_url(DATABASE_URL)

engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)
Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

ROSTER = [
    ("Anna Berg", "Anna"),
    ("Bo Lind", "Bosse"),
    ("Cilla Ek", "Cilla"),
    ("David Holm", "Dave"),
]

# Marks per player for each demo game, as I/X strings.
DEMO_GAMES = [
    {"Anna": "IIII", "Bosse": "XX", "Cilla": "I", "Dave": "XXXX"},
    {"Anna": "IX", "Bosse": "IIXX", "Cilla": "III", "Dave": "I"},
]


async def main():
    async with Session() as s:
        existing = {
            p.nickname: p
            for p in (
                await s.execute(select(Player).where(Player.deleted_at.is_(None)))
            ).scalars().all()
        }
        for name, nickname in ROSTER:
            if nickname not in existing:
                p = Player(id=uuid.uuid4().hex, name=name, nickname=nickname)
                s.add(p)
                existing[nickname] = p
        await s.commit()

        today = date.today()
        tournament = (
            await s.execute(select(Tournament).where(Tournament.date == today))
        ).scalar_one_or_none()
        if tournament is None:
            tournament = Tournament(
                id=uuid.uuid4().hex,
                date=today,
                state="draft",
            )
            s.add(tournament)
            await s.commit()

        has_games = (
            await s.execute(select(Game.id).where(Game.tournament_id == tournament.id))
        ).scalars().first()
        if has_games:
            print(f"Tournament {tournament.date} already has games; leaving it as is.")
            return

        active = (
            await s.execute(select(Tournament.id).where(Tournament.state == "active"))
        ).scalars().first()
        if tournament.state == "draft" and active is None:
            tournament.state = "active"
            tournament.started_at = utcnow_naive()
        if tournament.state != "active":
            print("Another tournament is active; skipping demo games.")
            await s.commit()
            return

        for marks_by_player in DEMO_GAMES:
            now = utcnow_naive()
            game = Game(id=uuid.uuid4().hex, tournament_id=tournament.id, created_at=now)
            s.add(game)
            offset = 0
            for nickname, marks in marks_by_player.items():
                for mark in marks:
                    s.add(
                        ScoreEvent(
                            id=uuid.uuid4().hex,
                            game_id=game.id,
                            player_id=existing[nickname].id,
                            type=mark,
                            created_at=now + timedelta(microseconds=offset),
                        )
                    )
                    offset += 1
        await s.commit()
        print(f"Seeded tournament {tournament.date} with {len(DEMO_GAMES)} games.")


if __name__ == "__main__":
    asyncio.run(main())
