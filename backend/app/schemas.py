import base64
import binascii
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_AVATAR_BYTES = 2 * 1024 * 1024
MAX_PHOTO_BYTES = 5 * 1024 * 1024
MAX_GAME_EVENTS = 500


def _decode_base64(value: Optional[str], *, field_name: str, max_bytes: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a base64 string")
    trimmed = value.strip()
    if not trimmed:
        return ""
    # Accept data URLs produced by browsers ("data:image/png;base64,....").
    if trimmed.startswith("data:") and "," in trimmed:
        trimmed = trimmed.split(",", 1)[1]
    try:
        raw = base64.b64decode(trimmed, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError(f"{field_name} must be valid base64")
    if len(raw) > max_bytes:
        raise ValueError(f"{field_name} must be at most {max_bytes} bytes")
    return trimmed


def encode_binary(value: Optional[bytes]) -> Optional[str]:
    if not value:
        return None
    return base64.b64encode(value).decode("ascii")


def decode_binary(value: Optional[str]) -> Optional[bytes]:
    if not value:
        return None
    return base64.b64decode(value)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    password: str = Field(..., min_length=1)


class TokenOut(BaseModel):
    token: str


class MessageOut(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


def _require_text(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field_name} must not be empty")
    return trimmed


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    nickname: str = Field(..., min_length=1, max_length=50)
    avatar: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _require_text(value, "name")

    @field_validator("nickname", mode="before")
    @classmethod
    def _validate_nickname(cls, value: str) -> str:
        return _require_text(value, "nickname")

    @field_validator("avatar", mode="before")
    @classmethod
    def _validate_avatar(cls, value: Optional[str]) -> Optional[str]:
        return _decode_base64(value, field_name="avatar", max_bytes=MAX_AVATAR_BYTES)


class PlayerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    nickname: Optional[str] = Field(default=None, min_length=1, max_length=50)
    avatar: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", "nickname", mode="before")
    @classmethod
    def _validate_text(cls, value: Optional[str], info) -> Optional[str]:
        if value is None:
            return None
        return _require_text(value, info.field_name)

    @field_validator("avatar", mode="before")
    @classmethod
    def _validate_avatar(cls, value: Optional[str]) -> Optional[str]:
        return _decode_base64(value, field_name="avatar", max_bytes=MAX_AVATAR_BYTES)


class PlayerOut(BaseModel):
    id: str
    name: str
    nickname: str
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None


class PlayerInfoOut(BaseModel):
    id: str
    name: str
    nickname: str
    avatar: Optional[str] = None
    deleted: bool = False


# ---------------------------------------------------------------------------
# Tournaments
# ---------------------------------------------------------------------------

TournamentState = Literal["draft", "active", "closed"]


class TournamentCreate(BaseModel):
    date: date

    model_config = ConfigDict(extra="forbid")


class TournamentClose(BaseModel):
    confirmation: str = Field(..., min_length=1)


class TournamentOut(BaseModel):
    id: str
    date: str
    state: TournamentState
    started_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class PublicTournamentOut(BaseModel):
    id: str
    date: str
    state: TournamentState


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------


class ScoreEventIn(BaseModel):
    playerId: str = Field(..., min_length=1)
    type: Literal["I", "X"]

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


class GameCreate(BaseModel):
    tournamentId: str = Field(..., min_length=1)
    events: List[ScoreEventIn] = Field(default_factory=list, max_length=MAX_GAME_EVENTS)
    comment: Optional[str] = Field(default=None, max_length=2000)
    photo: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("photo", mode="before")
    @classmethod
    def _validate_photo(cls, value: Optional[str]) -> Optional[str]:
        return _decode_base64(value, field_name="photo", max_bytes=MAX_PHOTO_BYTES)


class GamePreviewRequest(BaseModel):
    tournamentId: str = Field(..., min_length=1)
    events: List[ScoreEventIn] = Field(default_factory=list, max_length=MAX_GAME_EVENTS)


class GameOut(BaseModel):
    id: str
    tournament_id: str
    comment: Optional[str] = None
    photo: Optional[str] = None
    created_at: Optional[datetime] = None


class GameEventOut(BaseModel):
    id: str
    playerId: str
    type: Literal["I", "X"]
    created_at: Optional[datetime] = None
    player: Optional[PlayerInfoOut] = None


class GameDetailOut(GameOut):
    events: List[GameEventOut] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


class PlayerScoreOut(BaseModel):
    plusClusters: int = Field(..., ge=0)
    minusClusters: int = Field(..., ge=0)
    plusRemainder: int = Field(..., ge=0, le=3)
    minusRemainder: int = Field(..., ge=0, le=3)
    netScore: int


class StandingOut(PlayerScoreOut):
    playerId: str
    rank: int
    player: Optional[PlayerInfoOut] = None


class TournamentResultsOut(BaseModel):
    tournament: TournamentOut
    scores: List[StandingOut] = Field(default_factory=list)


class YearlyResultsOut(BaseModel):
    year: int
    scores: List[StandingOut] = Field(default_factory=list)


class GamePreviewOut(BaseModel):
    tournamentId: str
    scores: List[StandingOut] = Field(default_factory=list)
