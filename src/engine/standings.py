import logging
import math
from typing import Dict, Iterable, List, Optional

from engine.exceptions import NoScope
from engine.models import AppSettings, Match, MatchFormat, Player, PlayerStats, Scope, SkillLevel
from engine.results import count_games, count_sets

logger = logging.getLogger(__name__)

SORT_KEYS = ("points", "matches_won", "sets_won")


def set_ratio(sets_won: int, sets_lost: int) -> float:
    if sets_lost == 0:
        return math.inf if sets_won > 0 else 0.0
    return sets_won / sets_lost


def format_set_ratio(stats: PlayerStats) -> str:
    ratio = set_ratio(stats.sets_won, stats.sets_lost)
    if math.isinf(ratio):
        return "∞"
    return f"{ratio:.2f}"


def ranking_key(stats: PlayerStats, sort_by: str = "points"):
    """Sort key: primary field desc, matches won desc, set ratio desc, name asc."""
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Cannot rank by {sort_by!r}")
    return (
        -getattr(stats, sort_by),
        -stats.matches_won,
        -set_ratio(stats.sets_won, stats.sets_lost),
        (stats.name + stats.surname).casefold(),
        stats.id,
    )


def rank_standings(stats: Iterable[PlayerStats], sort_by: str = "points") -> List[PlayerStats]:
    return sorted(stats, key=lambda s: ranking_key(s, sort_by))


def filter_by_skill(stats: Iterable[PlayerStats], skill_level: Optional[SkillLevel]) -> List[PlayerStats]:
    if skill_level is None:
        return list(stats)
    return [s for s in stats if s.skill_level == skill_level]


def _points_for_loss(match: Match, sets_won: int, sets_lost: int, points: AppSettings) -> int:
    if match.match_format == MatchFormat.BEST_OF_THREE and sets_won == 1 and sets_lost == 2:
        return points.points_tie_break_loss
    return points.points_loss


def compute_standings(
    matches: Iterable[Match],
    players: Iterable[Player],
    points: AppSettings,
    scope: Optional[Scope],
) -> List[PlayerStats]:
    """Recompute per-player statistics from the completed matches in scope.

    Tournament standings and overall standings both come from here; only
    the scope differs. The result is ranked by points.
    """
    if scope is None:
        raise NoScope()

    table: Dict[str, PlayerStats] = {}
    for player in players:
        if scope.player_ids is None or player.id in scope.player_ids:
            table[player.id] = PlayerStats.zeroed(player, scope.tournament_id)

    for match in matches:
        if not scope.includes(match) or not match.is_completed or not match.winner_team_id:
            continue
        if match.winner_team_id == match.team1.id:
            winner_side = 1
        elif match.winner_team_id == match.team2.id:
            winner_side = 2
        else:
            logger.warning(
                "Match %s has winner %s which is not one of its teams, skipped",
                match.id, match.winner_team_id,
            )
            continue

        sets = dict(zip((1, 2), count_sets(match)))
        games = dict(zip((1, 2), count_games(match)))

        for player_id in match.player_ids:
            row = table.get(player_id)
            if row is None:
                continue
            side = match.side_of(player_id)
            other = 2 if side == 1 else 1

            row.matches_played += 1
            row.sets_won += sets[side]
            row.sets_lost += sets[other]
            row.games_won += games[side]
            row.games_lost += games[other]
            if side == winner_side:
                row.matches_won += 1
                row.points += points.points_win
            else:
                row.points += _points_for_loss(match, sets[side], sets[other], points)

    return rank_standings(table.values())
