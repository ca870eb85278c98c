import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app_settings.functions import load_settings
from convert import PLAYER_COUNTERS, orm_to_match, orm_to_player
from database import MatchORM, PlayerORM, TournamentORM
from engine.models import Player, Scope, SkillLevel, TournamentStatus
from engine.standings import compute_standings

logger = logging.getLogger(__name__)

SORT_FIELDS = ("name", "skill_level", "points", "matches_won")


def active_tournament_of(player_id: str, tournaments: Iterable[TournamentORM]) -> Optional[TournamentORM]:
    return next(
        (t for t in tournaments
         if t.status == TournamentStatus.ACTIVE.value and player_id in (t.player_ids or [])),
        None,
    )


def filter_players(
    players: Iterable[Player],
    tournaments: Iterable[TournamentORM] = (),
    search: Optional[str] = None,
    skill_level: Optional[SkillLevel] = None,
    tournament: str = "ALL",
) -> List[Player]:
    """Search / skill / tournament filters of the player listing.

    ``tournament`` is ``ALL``, ``NONE`` (not in any active tournament) or a
    tournament id.
    """
    tournaments = list(tournaments)
    needle = (search or "").lower()
    result = []
    for p in players:
        haystack = f"{p.name} {p.surname} {p.nickname or ''}".lower()
        if needle and needle not in haystack:
            continue
        if skill_level is not None and p.skill_level != skill_level:
            continue
        if tournament != "ALL":
            active = active_tournament_of(p.id, tournaments)
            if tournament == "NONE":
                if active is not None:
                    continue
            elif active is None or active.id != tournament:
                continue
        result.append(p)
    return result


def sort_players(players: Iterable[Player], sort_by: str = "name", order: str = "asc") -> List[Player]:
    # Numeric fields put the best player first in "asc" order.
    if sort_by == "name":
        key = lambda p: f"{p.name} {p.surname}".casefold()
        reverse = False
    elif sort_by == "skill_level":
        key = lambda p: SkillLevel(p.skill_level).value
        reverse = False
    elif sort_by in ("points", "matches_won"):
        key = lambda p: getattr(p, sort_by)
        reverse = True
    else:
        raise ValueError(f"Cannot sort players by {sort_by!r}")

    if order == "desc":
        reverse = not reverse
    return sorted(players, key=key, reverse=reverse)


async def recalculate_player_counters(session: AsyncSession) -> Dict[str, PlayerORM]:
    """Rebuild every player's cumulative counters from all completed matches."""
    await session.flush()
    player_rows = (await session.execute(select(PlayerORM))).scalars().all()
    match_rows = (await session.execute(select(MatchORM))).scalars().all()
    settings = await load_settings(session)

    stats = compute_standings(
        [orm_to_match(m) for m in match_rows],
        [orm_to_player(p) for p in player_rows],
        settings,
        Scope.overall(),
    )
    by_id = {p.id: p for p in player_rows}
    for row in stats:
        for counter in PLAYER_COUNTERS:
            setattr(by_id[row.id], counter, getattr(row, counter))

    logger.info("Recalculated counters of %d player(s) from %d match(es)", len(player_rows), len(match_rows))
    return by_id
