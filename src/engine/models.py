from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Union
import uuid


MIN_PLAYERS_FOR_TOURNAMENT = 4
MAX_PLAYERS = 32
SETTINGS_ID = "main_settings"
GOLDEN_POINT_MARK = "GP"


def generate_id():
    return str(uuid.uuid4())


def generate_team_id():
    return f"t-{uuid.uuid4()}"


class SkillLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM_LOW = "MEDIUM_LOW"
    UNASSIGNED = "UNASSIGNED"


class PairingStrategy(str, Enum):
    BALANCED = "BALANCED"            # high + medium/low
    HIGH_ONLY = "HIGH_ONLY"          # high + high
    MEDIUM_LOW_ONLY = "MEDIUM_LOW_ONLY"
    MIXED = "MIXED"                  # both brackets, random


class MatchFormat(str, Enum):
    BEST_OF_THREE = "BEST_OF_THREE"
    GOLDEN_POINT = "GOLDEN_POINT"


class MatchStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TournamentStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class ScoreKind(str, Enum):
    NUMERIC = "NUMERIC"
    GOLDEN_POINT = "GOLDEN_POINT"
    UNSET = "UNSET"


@dataclass(frozen=True)
class Score:
    """One side of a set: a game count, the golden point marker, or blank."""
    kind: ScoreKind = ScoreKind.UNSET
    value: Optional[int] = None

    @classmethod
    def numeric(cls, value: int) -> "Score":
        if value < 0:
            raise ValueError(f"score must be non-negative, got {value}")
        return cls(ScoreKind.NUMERIC, value)

    @classmethod
    def golden_point(cls) -> "Score":
        return cls(ScoreKind.GOLDEN_POINT)

    @classmethod
    def unset(cls) -> "Score":
        return cls(ScoreKind.UNSET)

    @classmethod
    def parse(cls, raw: Union[int, str, None]) -> "Score":
        """Build a Score from the loose values stored in JSON or typed in a form."""
        if raw is None:
            return cls.unset()
        if isinstance(raw, bool):
            raise ValueError(f"invalid score value: {raw!r}")
        if isinstance(raw, int):
            return cls.numeric(raw)
        text = str(raw).strip()
        if text == "":
            return cls.unset()
        if text.upper() == GOLDEN_POINT_MARK:
            return cls.golden_point()
        try:
            return cls.numeric(int(text))
        except ValueError:
            raise ValueError(f"invalid score value: {raw!r}") from None

    @property
    def is_numeric(self) -> bool:
        return self.kind is ScoreKind.NUMERIC

    @property
    def is_unset(self) -> bool:
        return self.kind is ScoreKind.UNSET

    def dump(self) -> Union[int, str, None]:
        if self.kind is ScoreKind.NUMERIC:
            return self.value
        if self.kind is ScoreKind.GOLDEN_POINT:
            return GOLDEN_POINT_MARK
        return None


@dataclass(frozen=True)
class MatchSetScore:
    set_number: int
    team1_score: Score = field(default_factory=Score.unset)
    team2_score: Score = field(default_factory=Score.unset)

    @property
    def is_blank(self) -> bool:
        return self.team1_score.is_unset and self.team2_score.is_unset

    @property
    def is_half_filled(self) -> bool:
        return self.team1_score.is_unset != self.team2_score.is_unset

    def winning_side(self) -> Optional[int]:
        """1 or 2 when both sides are numeric and one is strictly higher."""
        if not (self.team1_score.is_numeric and self.team2_score.is_numeric):
            return None
        if self.team1_score.value > self.team2_score.value:
            return 1
        if self.team2_score.value > self.team1_score.value:
            return 2
        return None


@dataclass
class Player:
    id: str
    name: str
    surname: str = ""
    nickname: Optional[str] = None
    contact: Optional[str] = None
    skill_level: SkillLevel = SkillLevel.UNASSIGNED
    matches_played: int = 0
    matches_won: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    points: int = 0

    @property
    def display_name(self) -> str:
        return self.nickname or f"{self.name} {self.surname}".strip()


@dataclass(frozen=True)
class Team:
    id: str
    player1: Player
    player2: Player

    @property
    def player_ids(self) -> List[str]:
        return [self.player1.id, self.player2.id]


@dataclass
class Match:
    id: str
    round: int
    team1: Team
    team2: Team
    match_format: MatchFormat = MatchFormat.BEST_OF_THREE
    tournament_id: Optional[str] = None
    court: Optional[str] = None
    scores: List[MatchSetScore] = field(default_factory=list)
    winner_team_id: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status is MatchStatus.COMPLETED

    @property
    def player_ids(self) -> List[str]:
        return self.team1.player_ids + self.team2.player_ids

    def side_of(self, player_id: str) -> Optional[int]:
        if player_id in self.team1.player_ids:
            return 1
        if player_id in self.team2.player_ids:
            return 2
        return None

    def copy_with(self, **changes) -> "Match":
        return replace(self, **changes)


@dataclass
class Tournament:
    id: str
    name: str
    player_ids: List[str] = field(default_factory=list)
    current_round: int = 1
    status: TournamentStatus = TournamentStatus.DRAFT


@dataclass
class AppSettings:
    pairing_strategy: PairingStrategy = PairingStrategy.BALANCED
    match_format: MatchFormat = MatchFormat.BEST_OF_THREE
    points_win: int = 3
    points_tie_break_loss: int = 1
    points_loss: int = 0
    current_tournament_id: Optional[str] = None


@dataclass(frozen=True)
class Scope:
    """Which matches standings are computed over.

    ``tournament_id=None`` means every match ("overall"). ``player_ids``
    restricts the rows produced; ``None`` keeps every supplied player.
    """
    tournament_id: Optional[str] = None
    player_ids: Optional[frozenset] = None

    @classmethod
    def for_tournament(cls, tournament: Tournament) -> "Scope":
        return cls(tournament_id=tournament.id, player_ids=frozenset(tournament.player_ids))

    @classmethod
    def overall(cls) -> "Scope":
        return cls()

    @property
    def is_overall(self) -> bool:
        return self.tournament_id is None

    def includes(self, match: Match) -> bool:
        return self.is_overall or match.tournament_id == self.tournament_id


@dataclass
class PlayerStats:
    id: str
    name: str
    surname: str = ""
    nickname: Optional[str] = None
    skill_level: SkillLevel = SkillLevel.UNASSIGNED
    tournament_id: Optional[str] = None
    matches_played: int = 0
    matches_won: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    points: int = 0

    @classmethod
    def zeroed(cls, player: Player, tournament_id: Optional[str] = None) -> "PlayerStats":
        return cls(
            id=player.id, name=player.name, surname=player.surname,
            nickname=player.nickname, skill_level=player.skill_level,
            tournament_id=tournament_id,
        )
