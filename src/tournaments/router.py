import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app_settings.functions import get_settings_orm, load_settings
from convert import apply_match, match_columns, match_to_orm, orm_to_match, orm_to_player
from database import get_session, MatchORM, PlayerORM, TournamentORM
from engine.models import (
    MAX_PLAYERS, Match, MatchSetScore, MatchStatus, Player, Score, generate_id,
)
from engine.pairing import build_team, create_manual_match, edit_match_teams, generate_round
from engine.results import resolve_result, save_draft_scores
from players.functions import recalculate_player_counters
from tournaments.schemas import (
    DeletedOut, DraftScoresIn, GenerateRoundIn, ManualMatchIn, MatchOut, ResultsIn,
    RoundOut, SetScoreIn, TeamEditIn, TournamentIn, TournamentOut, TournamentUpdate,
)

router = APIRouter(prefix='/tournaments', tags=['Tournaments'])
logger = logging.getLogger(__name__)

# Helpers

def _match_out(match: Match) -> dict:
    return {"id": match.id, **match_columns(match)}


def _to_set_scores(scores: List[SetScoreIn]) -> List[MatchSetScore]:
    return [
        MatchSetScore(
            set_number=s.set_number,
            team1_score=Score.parse(s.team1_score),
            team2_score=Score.parse(s.team2_score),
        )
        for s in scores
    ]


async def _get_tournament_orm(tid: str, session: AsyncSession) -> TournamentORM:
    result = await session.get(TournamentORM, tid)
    if not result:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return result


async def _get_match_orm(tid: str, mid: str, session: AsyncSession) -> MatchORM:
    result = await session.get(MatchORM, mid)
    if not result or result.tournament_id != tid:
        raise HTTPException(status_code=404, detail="Match not found")
    return result


async def _tournament_matches(tid: str, session: AsyncSession) -> List[MatchORM]:
    rows = await session.execute(
        select(MatchORM)
        .where(MatchORM.tournament_id == tid)
        .order_by(MatchORM.round, MatchORM.created_at)
    )
    return list(rows.scalars().all())


async def _roster(t_orm: TournamentORM, session: AsyncSession) -> dict:
    ids = list(t_orm.player_ids or [])
    if not ids:
        return {}
    rows = await session.execute(select(PlayerORM).where(PlayerORM.id.in_(ids)))
    return {p.id: orm_to_player(p) for p in rows.scalars().all()}


async def _validate_roster(player_ids: List[str], max_players: int, session: AsyncSession) -> List[str]:
    if len(set(player_ids)) != len(player_ids):
        raise HTTPException(status_code=400, detail="Duplicate player in roster")
    limit = min(max_players, MAX_PLAYERS)
    if len(player_ids) > limit:
        raise HTTPException(status_code=400, detail=f"A tournament can have at most {limit} players")
    if player_ids:
        rows = await session.execute(select(PlayerORM.id).where(PlayerORM.id.in_(player_ids)))
        missing = set(player_ids) - set(rows.scalars().all())
        if missing:
            raise HTTPException(status_code=400, detail=f"Unknown players: {', '.join(sorted(missing))}")
    return list(player_ids)


def _pick(roster: dict, player_ids: List[str]) -> List[Optional[Player]]:
    return [roster.get(pid) for pid in player_ids]


# Routes

@router.get("", response_model=List[TournamentOut])
async def list_tournaments(session: AsyncSession = Depends(get_session)):
    rows = await session.execute(select(TournamentORM).order_by(TournamentORM.created_at))
    return rows.scalars().all()


@router.post("", response_model=TournamentOut, status_code=201)
async def create_tournament(data: TournamentIn, session: AsyncSession = Depends(get_session)):
    player_ids = await _validate_roster(data.player_ids, data.max_players, session)
    t_orm = TournamentORM(
        id=generate_id(),
        name=data.name,
        description=data.description,
        days=data.days,
        matches_per_day=data.matches_per_day,
        max_players=data.max_players,
        status=data.status.value,
        start_date=data.start_date,
        end_date=data.end_date,
        player_ids=player_ids,
        current_round=1,
    )
    session.add(t_orm)

    # A new tournament becomes the current one
    settings_orm = await get_settings_orm(session, create=True)
    settings_orm.current_tournament_id = t_orm.id

    await session.commit()
    await session.refresh(t_orm)
    logger.info("Tournament %s created with %d player(s)", t_orm.id, len(player_ids))
    return t_orm


@router.get("/{tid}", response_model=TournamentOut)
async def read_tournament(tid: str, session: AsyncSession = Depends(get_session)):
    return await _get_tournament_orm(tid, session)


@router.put("/{tid}", response_model=TournamentOut)
async def update_tournament(tid: str, data: TournamentUpdate, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    changes = data.model_dump(exclude_unset=True)

    if "player_ids" in changes or "max_players" in changes:
        player_ids = changes.get("player_ids")
        if player_ids is None:
            player_ids = list(t_orm.player_ids or [])
        max_players = changes.get("max_players") or t_orm.max_players
        changes["player_ids"] = await _validate_roster(player_ids, max_players, session)

    for key, value in changes.items():
        if value is None and key in ("name", "days", "matches_per_day", "max_players", "status", "current_round"):
            continue
        setattr(t_orm, key, getattr(value, "value", value))

    await session.commit()
    await session.refresh(t_orm)
    return t_orm


@router.delete("/{tid}", status_code=204)
async def delete_tournament(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    await session.delete(t_orm)

    settings_orm = await get_settings_orm(session)
    if settings_orm is not None and settings_orm.current_tournament_id == tid:
        settings_orm.current_tournament_id = None

    await recalculate_player_counters(session)
    await session.commit()
    logger.info("Tournament %s deleted", tid)
    return Response(status_code=204)


@router.post("/{tid}/select", response_model=TournamentOut)
async def select_tournament(tid: str, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    settings_orm = await get_settings_orm(session, create=True)
    settings_orm.current_tournament_id = tid
    await session.commit()
    return t_orm


# Matches

@router.get("/{tid}/matches", response_model=List[MatchOut])
async def list_matches(tid: str, round: Optional[int] = None, session: AsyncSession = Depends(get_session)):
    await _get_tournament_orm(tid, session)
    rows = await _tournament_matches(tid, session)
    return [
        _match_out(orm_to_match(m)) for m in rows
        if round is None or m.round == round
    ]


@router.post("/{tid}/rounds", response_model=RoundOut, status_code=201)
async def create_round(
    tid: str,
    data: Optional[GenerateRoundIn] = None,
    session: AsyncSession = Depends(get_session),
):
    t_orm = await _get_tournament_orm(tid, session)
    settings = await load_settings(session)
    data = data or GenerateRoundIn()

    existing = [orm_to_match(m) for m in await _tournament_matches(tid, session)]
    roster = await _roster(t_orm, session)
    round_number = t_orm.current_round

    matches = generate_round(
        roster.values(),
        data.pairing_strategy or settings.pairing_strategy,
        data.match_format or settings.match_format,
        round_number,
        existing_matches=existing,
        tournament_id=tid,
    )

    session.add_all(match_to_orm(m) for m in matches)
    t_orm.current_round = round_number + 1
    await session.commit()

    return {"round": round_number, "matches": [_match_out(m) for m in matches]}


@router.post("/{tid}/matches", response_model=MatchOut, status_code=201)
async def create_match(tid: str, data: ManualMatchIn, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    settings = await load_settings(session)
    roster = await _roster(t_orm, session)

    # Manual matches join the latest generated round
    match = create_manual_match(
        build_team(_pick(roster, data.team1_player_ids)),
        build_team(_pick(roster, data.team2_player_ids)),
        data.match_format or settings.match_format,
        court=data.court,
        round_number=max(t_orm.current_round - 1, 1),
        tournament_id=tid,
    )
    session.add(match_to_orm(match))
    await session.commit()
    logger.info("Manual match %s created in tournament %s", match.id, tid)
    return _match_out(match)


@router.put("/{tid}/matches/{mid}/teams", response_model=MatchOut)
async def edit_teams(tid: str, mid: str, data: TeamEditIn, session: AsyncSession = Depends(get_session)):
    t_orm = await _get_tournament_orm(tid, session)
    match_orm = await _get_match_orm(tid, mid, session)
    roster = await _roster(t_orm, session)

    edited = edit_match_teams(
        orm_to_match(match_orm),
        _pick(roster, data.team1_player_ids),
        _pick(roster, data.team2_player_ids),
        court=data.court,
    )
    apply_match(match_orm, edited)
    await session.commit()
    return _match_out(edited)


@router.post("/{tid}/matches/{mid}/results", response_model=MatchOut)
async def submit_results(tid: str, mid: str, data: ResultsIn, session: AsyncSession = Depends(get_session)):
    match_orm = await _get_match_orm(tid, mid, session)

    resolved = resolve_result(orm_to_match(match_orm), _to_set_scores(data.scores), data.winner_team_id)
    apply_match(match_orm, resolved)

    await recalculate_player_counters(session)
    await session.commit()
    return _match_out(resolved)


@router.put("/{tid}/matches/{mid}/scores", response_model=MatchOut)
async def save_draft(tid: str, mid: str, data: DraftScoresIn, session: AsyncSession = Depends(get_session)):
    match_orm = await _get_match_orm(tid, mid, session)
    draft = save_draft_scores(orm_to_match(match_orm), _to_set_scores(data.scores))
    apply_match(match_orm, draft)
    await session.commit()
    return _match_out(draft)


@router.delete("/{tid}/matches", response_model=DeletedOut)
async def delete_uncompleted_matches(
    tid: str,
    status: Literal["uncompleted"] = "uncompleted",
    session: AsyncSession = Depends(get_session),
):
    await _get_tournament_orm(tid, session)
    deleted = 0
    for m in await _tournament_matches(tid, session):
        if m.status != MatchStatus.COMPLETED.value:
            await session.delete(m)
            deleted += 1
    await session.commit()
    logger.info("Deleted %d uncompleted match(es) of tournament %s", deleted, tid)
    return {"deleted": deleted}
