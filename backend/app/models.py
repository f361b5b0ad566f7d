from sqlalchemy.orm import relationship
from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    ForeignKey,
    LargeBinary,
    Text,
    Index,
    CheckConstraint,
)
from sqlalchemy.sql import func
from .db import Base


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    nickname = Column(String, nullable=False)
    avatar_data = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class Tournament(Base):
    __tablename__ = "tournament"
    id = Column(String, primary_key=True)
    date = Column(Date, nullable=False, unique=True)
    state = Column(String, nullable=False, default="draft")
    started_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    games = relationship(
        "Game",
        back_populates="tournament",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "state IN ('draft', 'active', 'closed')", name="ck_tournament_state"
        ),
    )


class Game(Base):
    __tablename__ = "game"
    id = Column(String, primary_key=True)
    tournament_id = Column(
        String, ForeignKey("tournament.id", ondelete="CASCADE"), nullable=False
    )
    comment = Column(Text, nullable=True)
    photo_data = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    tournament = relationship("Tournament", back_populates="games")
    events = relationship(
        "ScoreEvent",
        back_populates="game",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ScoreEvent.created_at",
    )

    __table_args__ = (
        Index("ix_game_tournament_id", "tournament_id"),
        Index("ix_game_created_at", "created_at"),
    )


class ScoreEvent(Base):
    __tablename__ = "score_event"
    id = Column(String, primary_key=True)
    game_id = Column(String, ForeignKey("game.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(String, ForeignKey("player.id"), nullable=False)
    type = Column(String(1), nullable=False)  # "I" | "X"
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    game = relationship("Game", back_populates="events")

    __table_args__ = (
        CheckConstraint("type IN ('I', 'X')", name="ck_score_event_type"),
        Index("ix_score_event_game_id", "game_id"),
        Index("ix_score_event_player_id", "player_id"),
    )
