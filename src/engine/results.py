import logging
from typing import Iterable, List, Optional, Tuple

from engine.exceptions import IncompleteScore, MatchLocked
from engine.models import Match, MatchFormat, MatchSetScore, MatchStatus, Score

logger = logging.getLogger(__name__)

SETS_TO_WIN = 2
MAX_SETS = 3


def count_sets(match: Match) -> Tuple[int, int]:
    """Sets won by (team1, team2).

    A golden point match is worth exactly one set to its winner. Sets with a
    blank or tied score do not count for either side.
    """
    if match.match_format == MatchFormat.GOLDEN_POINT:
        if match.winner_team_id == match.team1.id:
            return 1, 0
        if match.winner_team_id == match.team2.id:
            return 0, 1
        return 0, 0

    team1_sets = team2_sets = 0
    for set_score in match.scores:
        side = set_score.winning_side()
        if side == 1:
            team1_sets += 1
        elif side == 2:
            team2_sets += 1
    return team1_sets, team2_sets


def count_games(match: Match) -> Tuple[int, int]:
    if match.match_format == MatchFormat.GOLDEN_POINT:
        return 0, 0
    team1_games = team2_games = 0
    for set_score in match.scores:
        if set_score.team1_score.is_numeric and set_score.team2_score.is_numeric:
            team1_games += set_score.team1_score.value
            team2_games += set_score.team2_score.value
    return team1_games, team2_games


def prune_blank_sets(scores: Iterable[MatchSetScore]) -> List[MatchSetScore]:
    return [s for s in sorted(scores, key=lambda s: s.set_number) if not s.is_blank]


def _resolve_golden_point(match: Match, declared_winner: Optional[str]) -> Match:
    if not declared_winner:
        raise IncompleteScore("Select the team that won the golden point")
    if declared_winner == match.team1.id:
        scores = [MatchSetScore(1, Score.golden_point(), Score.unset())]
    elif declared_winner == match.team2.id:
        scores = [MatchSetScore(1, Score.unset(), Score.golden_point())]
    else:
        raise IncompleteScore(f"Team {declared_winner} does not play in this match")

    return match.copy_with(scores=scores, winner_team_id=declared_winner, status=MatchStatus.COMPLETED)


def _resolve_best_of_three(match: Match, entered: Iterable[MatchSetScore]) -> Match:
    """First side to two sets wins. Sets entered after the deciding set are not kept."""
    played = prune_blank_sets(entered)
    kept: List[MatchSetScore] = []
    won = {1: 0, 2: 0}
    winner_side = None

    for set_score in played[:MAX_SETS]:
        if set_score.is_half_filled:
            raise IncompleteScore(f"Set {set_score.set_number} has only one score")
        if not (set_score.team1_score.is_numeric and set_score.team2_score.is_numeric):
            raise IncompleteScore(f"Set {set_score.set_number} has an invalid score")

        kept.append(set_score)
        side = set_score.winning_side()
        if side is None:
            continue
        won[side] += 1
        if won[side] == SETS_TO_WIN:
            winner_side = side
            break

    if winner_side is None:
        raise IncompleteScore(
            f"Sets are {won[1]}-{won[2]}, a team needs {SETS_TO_WIN} sets to win"
        )

    winner = match.team1.id if winner_side == 1 else match.team2.id
    return match.copy_with(scores=kept, winner_team_id=winner, status=MatchStatus.COMPLETED)


def resolve_result(
    match: Match,
    entered_scores: Iterable[MatchSetScore],
    declared_winner: Optional[str] = None,
) -> Match:
    """Turn entered set scores (or a declared winner) into a completed match.

    Returns a new Match; the given one is left untouched. A completed match
    can be resolved again, which is how a result gets corrected.
    """
    if match.match_format == MatchFormat.GOLDEN_POINT:
        resolved = _resolve_golden_point(match, declared_winner)
    else:
        resolved = _resolve_best_of_three(match, entered_scores)

    logger.info(
        "Match %s (round %d) completed, winner %s",
        resolved.id, resolved.round, resolved.winner_team_id,
    )
    return resolved


def save_draft_scores(match: Match, entered_scores: Iterable[MatchSetScore]) -> Match:
    """Store partial scores of a match still being played."""
    if match.is_completed:
        raise MatchLocked("Use result entry to change a completed match")
    return match.copy_with(
        scores=prune_blank_sets(entered_scores),
        winner_team_id=None,
        status=MatchStatus.IN_PROGRESS,
    )
