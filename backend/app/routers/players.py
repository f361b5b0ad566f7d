import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models import Player
from ..schemas import (
    PlayerCreate,
    PlayerOut,
    PlayerUpdate,
    decode_binary,
    encode_binary,
)
from ..exceptions import ProblemDetail, PlayerNotFound, http_problem
from ..time_utils import coerce_utc, utcnow_naive
from .auth import require_auth

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
    dependencies=[Depends(require_auth)],
)


def _player_out(p: Player) -> PlayerOut:
    return PlayerOut(
        id=p.id,
        name=p.name,
        nickname=p.nickname,
        avatar=encode_binary(p.avatar_data),
        created_at=coerce_utc(p.created_at),
    )


async def _get_active_player(session: AsyncSession, player_id: str) -> Player:
    p = await session.get(Player, player_id)
    if not p or p.deleted_at is not None:
        raise PlayerNotFound(player_id)
    return p


@router.get("", response_model=list[PlayerOut])
async def list_players(session: AsyncSession = Depends(get_session)):
    rows = (
        await session.execute(
            select(Player)
            .where(Player.deleted_at.is_(None))
            .order_by(Player.created_at.desc(), Player.name)
        )
    ).scalars().all()
    return [_player_out(p) for p in rows]


@router.post("", response_model=PlayerOut, status_code=201)
async def create_player(
    body: PlayerCreate,
    session: AsyncSession = Depends(get_session),
):
    pid = uuid.uuid4().hex
    p = Player(
        id=pid,
        name=body.name,
        nickname=body.nickname,
        avatar_data=decode_binary(body.avatar),
        created_at=utcnow_naive(),
    )
    session.add(p)
    await session.commit()
    await session.refresh(p)
    return _player_out(p)


@router.get("/{player_id}", response_model=PlayerOut)
async def get_player(player_id: str, session: AsyncSession = Depends(get_session)):
    p = await _get_active_player(session, player_id)
    return _player_out(p)


@router.put("/{player_id}", response_model=PlayerOut)
async def update_player(
    player_id: str,
    body: PlayerUpdate,
    session: AsyncSession = Depends(get_session),
):
    p = await _get_active_player(session, player_id)

    payload = body.model_dump(exclude_unset=True)
    if not payload:
        raise http_problem(
            status_code=400,
            detail="no fields to update",
            code="player_update_empty",
        )

    if payload.get("name") is not None:
        p.name = payload["name"]
    if payload.get("nickname") is not None:
        p.nickname = payload["nickname"]
    if "avatar" in payload:
        p.avatar_data = decode_binary(payload["avatar"])

    await session.commit()
    await session.refresh(p)
    return _player_out(p)


@router.delete("/{player_id}", status_code=204)
async def delete_player(
    player_id: str,
    session: AsyncSession = Depends(get_session),
):
    # Soft delete: recorded score events keep counting in results.
    p = await _get_active_player(session, player_id)
    p.deleted_at = utcnow_naive()
    await session.commit()
    return Response(status_code=204)
