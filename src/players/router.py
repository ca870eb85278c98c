import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from convert import orm_to_match, orm_to_player
from database import get_session, MatchORM, PlayerORM, TournamentORM
from engine.models import MatchStatus, SkillLevel, generate_id
from players.functions import active_tournament_of, filter_players, sort_players
from players.schemas import PlayerIn, PlayerOut, PlayerUpdate
from tournaments.schemas import TournamentOut

router = APIRouter(prefix='/players', tags=['Players'])
logger = logging.getLogger(__name__)

NOT_NULL_FIELDS = ("name", "surname", "skill_level")


async def _get_player_orm(pid: str, session: AsyncSession) -> PlayerORM:
    result = await session.get(PlayerORM, pid)
    if not result:
        raise HTTPException(status_code=404, detail="Player not found")
    return result


async def _all_tournaments(session: AsyncSession) -> List[TournamentORM]:
    return list((await session.execute(select(TournamentORM))).scalars().all())


@router.get("", response_model=List[PlayerOut])
async def list_players(
    search: Optional[str] = None,
    skill_level: Optional[SkillLevel] = None,
    tournament: str = "ALL",
    sort_by: Literal["name", "skill_level", "points", "matches_won"] = "name",
    order: Literal["asc", "desc"] = "asc",
    session: AsyncSession = Depends(get_session),
):
    rows = (await session.execute(select(PlayerORM))).scalars().all()
    players = filter_players(
        [orm_to_player(p) for p in rows],
        await _all_tournaments(session),
        search=search, skill_level=skill_level, tournament=tournament,
    )
    return sort_players(players, sort_by, order)


@router.post("", response_model=PlayerOut, status_code=201)
async def create_player(data: PlayerIn, session: AsyncSession = Depends(get_session)):
    p_orm = PlayerORM(
        id=generate_id(),
        name=data.name.strip(),
        surname=data.surname.strip(),
        nickname=data.nickname or None,
        contact=data.contact or None,
        skill_level=data.skill_level.value,
        matches_played=0, matches_won=0, sets_won=0, sets_lost=0,
        games_won=0, games_lost=0, points=0,
    )
    session.add(p_orm)
    await session.commit()
    logger.info("Player %s created (%s %s)", p_orm.id, p_orm.name, p_orm.surname)
    return orm_to_player(p_orm)


@router.get("/{pid}", response_model=PlayerOut)
async def read_player(pid: str, session: AsyncSession = Depends(get_session)):
    return orm_to_player(await _get_player_orm(pid, session))


@router.put("/{pid}", response_model=PlayerOut)
async def update_player(pid: str, data: PlayerUpdate, session: AsyncSession = Depends(get_session)):
    p_orm = await _get_player_orm(pid, session)
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in NOT_NULL_FIELDS:
            continue
        if key == "skill_level":
            value = SkillLevel(value).value
        setattr(p_orm, key, value)
    await session.commit()
    return orm_to_player(p_orm)


@router.delete("/{pid}", status_code=204)
async def delete_player(pid: str, session: AsyncSession = Depends(get_session)):
    p_orm = await _get_player_orm(pid, session)

    open_matches = (await session.execute(
        select(MatchORM).where(MatchORM.status != MatchStatus.COMPLETED.value)
    )).scalars().all()
    if any(pid in orm_to_match(m).player_ids for m in open_matches):
        raise HTTPException(status_code=409, detail="Player is in a match that is not completed")

    for t_orm in await _all_tournaments(session):
        if pid in (t_orm.player_ids or []):
            t_orm.player_ids = [x for x in t_orm.player_ids if x != pid]

    await session.delete(p_orm)
    await session.commit()
    logger.info("Player %s deleted", pid)
    return Response(status_code=204)


@router.get("/{pid}/tournament", response_model=TournamentOut)
async def player_tournament(pid: str, session: AsyncSession = Depends(get_session)):
    await _get_player_orm(pid, session)
    t_orm = active_tournament_of(pid, await _all_tournaments(session))
    if not t_orm:
        raise HTTPException(status_code=404, detail="Player is not in an active tournament")
    return t_orm
