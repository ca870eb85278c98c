from dataclasses import asdict
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app_settings.functions import load_settings
from convert import orm_to_match, orm_to_player, orm_to_tournament
from database import get_session, MatchORM, PlayerORM, TournamentORM
from engine.exceptions import NoScope
from engine.models import Scope, SkillLevel
from engine.standings import compute_standings, filter_by_skill, format_set_ratio, rank_standings
from rankings.schemas import StandingsOut

router = APIRouter(prefix='/rankings', tags=['Rankings'])

SortBy = Literal["points", "matches_won", "sets_won"]


async def _standings(
    session: AsyncSession,
    scope: Optional[Scope],
    skill_level: Optional[SkillLevel],
    sort_by: str,
) -> list:
    match_query = select(MatchORM)
    if scope is not None and not scope.is_overall:
        match_query = match_query.where(MatchORM.tournament_id == scope.tournament_id)
    matches = (await session.execute(match_query)).scalars().all()
    players = (await session.execute(select(PlayerORM))).scalars().all()

    stats = compute_standings(
        [orm_to_match(m) for m in matches],
        [orm_to_player(p) for p in players],
        await load_settings(session),
        scope,
    )
    ranked = rank_standings(filter_by_skill(stats, skill_level), sort_by)
    return [
        {**asdict(row), "rank": i + 1, "set_ratio": format_set_ratio(row)}
        for i, row in enumerate(ranked)
    ]


async def _tournament_standings(t_orm: TournamentORM, skill_level, sort_by, session):
    scope = Scope.for_tournament(orm_to_tournament(t_orm))
    return {
        "scope": "tournament",
        "tournament_id": t_orm.id,
        "tournament_name": t_orm.name,
        "standings": await _standings(session, scope, skill_level, sort_by),
    }


@router.get("/overall", response_model=StandingsOut)
async def overall_standings(
    skill_level: Optional[SkillLevel] = None,
    sort_by: SortBy = "points",
    session: AsyncSession = Depends(get_session),
):
    return {
        "scope": "overall",
        "standings": await _standings(session, Scope.overall(), skill_level, sort_by),
    }


@router.get("/current", response_model=StandingsOut)
async def current_standings(
    skill_level: Optional[SkillLevel] = None,
    sort_by: SortBy = "points",
    session: AsyncSession = Depends(get_session),
):
    settings = await load_settings(session)
    t_orm = None
    if settings.current_tournament_id:
        t_orm = await session.get(TournamentORM, settings.current_tournament_id)
    if t_orm is None:
        raise NoScope("Select a tournament to see its standings")
    return await _tournament_standings(t_orm, skill_level, sort_by, session)


@router.get("/tournaments/{tid}", response_model=StandingsOut)
async def tournament_standings(
    tid: str,
    skill_level: Optional[SkillLevel] = None,
    sort_by: SortBy = "points",
    session: AsyncSession = Depends(get_session),
):
    t_orm = await session.get(TournamentORM, tid)
    if not t_orm:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return await _tournament_standings(t_orm, skill_level, sort_by, session)
