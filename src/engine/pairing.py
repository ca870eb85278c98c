import logging
import random
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from engine.exceptions import (
    InsufficientPlayers, InvalidComposition, MatchLocked, NotEnoughTeams, RoundNotFinished,
)
from engine.models import (
    MIN_PLAYERS_FOR_TOURNAMENT, Match, MatchFormat, MatchStatus, PairingStrategy,
    Player, SkillLevel, Team, generate_id, generate_team_id,
)

logger = logging.getLogger(__name__)

Shuffle = Callable[[List], List]


def random_order(items: Iterable) -> List:
    """Return a shuffled copy of ``items`` (unseeded)."""
    shuffled = list(items)
    random.shuffle(shuffled)
    return shuffled


@dataclass
class SkillBrackets:
    high: List[Player]
    medium_low: List[Player]

    def __len__(self):
        return len(self.high) + len(self.medium_low)


def partition_by_skill(
    players: Iterable[Player],
    min_count: int = MIN_PLAYERS_FOR_TOURNAMENT,
    shuffle: Shuffle = random_order,
) -> SkillBrackets:
    """Split the roster into the two playing brackets, each in random order.

    Players without a skill level are left out.
    """
    players = list(players)
    high = [p for p in players if p.skill_level == SkillLevel.HIGH]
    medium_low = [p for p in players if p.skill_level == SkillLevel.MEDIUM_LOW]

    if len(high) + len(medium_low) < min_count:
        raise InsufficientPlayers(
            f"At least {min_count} players with a skill level are required, "
            f"found {len(high) + len(medium_low)}"
        )

    return SkillBrackets(high=list(shuffle(high)), medium_low=list(shuffle(medium_low)))


def form_teams(
    high: Sequence[Player],
    medium_low: Sequence[Player],
    strategy: PairingStrategy,
    shuffle: Shuffle = random_order,
    team_id: Callable[[], str] = generate_team_id,
) -> List[Team]:
    """Pair players into teams, taking from the end of each bracket.

    Players left without a partner sit out. The returned teams are
    reshuffled so their order says nothing about how they were built.
    """
    high = list(high)
    medium_low = list(medium_low)
    roster_size = len(high) + len(medium_low)
    teams: List[Team] = []

    if strategy == PairingStrategy.BALANCED:
        while high and medium_low:
            teams.append(Team(id=team_id(), player1=high.pop(), player2=medium_low.pop()))
    elif strategy == PairingStrategy.HIGH_ONLY:
        while len(high) >= 2:
            teams.append(Team(id=team_id(), player1=high.pop(), player2=high.pop()))
    elif strategy == PairingStrategy.MEDIUM_LOW_ONLY:
        while len(medium_low) >= 2:
            teams.append(Team(id=team_id(), player1=medium_low.pop(), player2=medium_low.pop()))
    elif strategy == PairingStrategy.MIXED:
        pool = list(shuffle(high + medium_low))
        while len(pool) >= 2:
            teams.append(Team(id=team_id(), player1=pool.pop(), player2=pool.pop()))
    else:
        raise ValueError(f"Unknown pairing strategy: {strategy!r}")

    if len(teams) < 2:
        raise NotEnoughTeams(
            f"Strategy {PairingStrategy(strategy).value} formed {len(teams)} team(s), at least 2 are needed"
        )

    sitting_out = roster_size - 2 * len(teams)
    if sitting_out:
        logger.debug("%d player(s) sit out this round", sitting_out)

    return list(shuffle(teams))


def schedule_round(
    teams: Sequence[Team],
    round_number: int,
    match_format: MatchFormat,
    tournament_id: Optional[str] = None,
) -> List[Match]:
    """Pair consecutive teams into pending matches; an odd last team sits out."""
    matches = []
    for i in range(0, len(teams) - 1, 2):
        matches.append(Match(
            id=generate_id(),
            tournament_id=tournament_id,
            round=round_number,
            team1=teams[i],
            team2=teams[i + 1],
            match_format=match_format,
        ))
    return matches


def validate_composition(team1: Team, team2: Team):
    players = [team1.player1, team1.player2, team2.player1, team2.player2]
    if any(p is None or not p.id for p in players):
        raise InvalidComposition("Every team needs exactly 2 players")
    if len({p.id for p in players}) != 4:
        raise InvalidComposition()


def create_manual_match(
    team1: Team,
    team2: Team,
    match_format: MatchFormat,
    court: Optional[str] = None,
    round_number: int = 1,
    tournament_id: Optional[str] = None,
) -> Match:
    validate_composition(team1, team2)
    return Match(
        id=generate_id(),
        tournament_id=tournament_id,
        round=round_number,
        team1=team1,
        team2=team2,
        court=court or None,
        match_format=match_format,
    )


def build_team(players: Sequence[Optional[Player]], team_id: Optional[str] = None) -> Team:
    """Assemble a team from a player selection, validating its size."""
    if len(players) != 2 or any(p is None for p in players):
        raise InvalidComposition("Every team needs exactly 2 players")
    return Team(id=team_id or generate_team_id(), player1=players[0], player2=players[1])


def edit_match_teams(
    match: Match,
    team1_players: Sequence[Optional[Player]],
    team2_players: Sequence[Optional[Player]],
    court: Optional[str] = None,
) -> Match:
    """Swap the players of a match that has not been completed yet.

    Team ids are kept, so a draft result stays attached to the same sides.
    """
    if match.is_completed:
        raise MatchLocked("Teams of a completed match cannot be changed")
    team1 = build_team(team1_players, match.team1.id)
    team2 = build_team(team2_players, match.team2.id)
    validate_composition(team1, team2)
    return match.copy_with(team1=team1, team2=team2, court=court or None)


def ensure_round_finished(matches: Iterable[Match]):
    open_matches = [m for m in matches if m.status != MatchStatus.COMPLETED]
    if open_matches:
        raise RoundNotFinished(
            f"{len(open_matches)} match(es) still pending or in progress"
        )


def generate_round(
    players: Iterable[Player],
    strategy: PairingStrategy,
    match_format: MatchFormat,
    round_number: int,
    existing_matches: Iterable[Match] = (),
    tournament_id: Optional[str] = None,
    shuffle: Shuffle = random_order,
    min_count: int = MIN_PLAYERS_FOR_TOURNAMENT,
) -> List[Match]:
    """Roster in, pending matches of the next round out."""
    ensure_round_finished(existing_matches)
    brackets = partition_by_skill(players, min_count, shuffle)
    teams = form_teams(brackets.high, brackets.medium_low, strategy, shuffle)
    matches = schedule_round(teams, round_number, match_format, tournament_id)
    logger.info(
        "Round %d: %d eligible players, %d teams, %d matches (%s)",
        round_number, len(brackets), len(teams), len(matches), PairingStrategy(strategy).value,
    )
    return matches
