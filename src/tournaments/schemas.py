from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from engine.models import (
    MatchFormat, MatchStatus, PairingStrategy, SkillLevel, TournamentStatus,
)


class TournamentIn(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    days: int = Field(default=12, ge=1)
    matches_per_day: int = Field(default=6, ge=1)
    max_players: int = Field(default=24, ge=4)
    status: TournamentStatus = TournamentStatus.DRAFT
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    player_ids: List[str] = []


class TournamentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    days: Optional[int] = Field(default=None, ge=1)
    matches_per_day: Optional[int] = Field(default=None, ge=1)
    max_players: Optional[int] = Field(default=None, ge=4)
    status: Optional[TournamentStatus] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    player_ids: Optional[List[str]] = None
    current_round: Optional[int] = Field(default=None, ge=1)


class TournamentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    days: int
    matches_per_day: int
    max_players: int
    status: TournamentStatus
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    player_ids: List[str]
    current_round: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


ScoreValue = Union[int, Literal["GP", ""], None]


class SetScoreIn(BaseModel):
    set_number: int = Field(ge=1)
    team1_score: ScoreValue = None
    team2_score: ScoreValue = None

    @field_validator("team1_score", "team2_score")
    @classmethod
    def non_negative(cls, v):
        if isinstance(v, int) and v < 0:
            raise ValueError("score must be >= 0")
        return v


class ResultsIn(BaseModel):
    scores: List[SetScoreIn] = []
    winner_team_id: Optional[str] = None


class DraftScoresIn(BaseModel):
    scores: List[SetScoreIn]


class GenerateRoundIn(BaseModel):
    pairing_strategy: Optional[PairingStrategy] = None
    match_format: Optional[MatchFormat] = None


class ManualMatchIn(BaseModel):
    team1_player_ids: List[str]
    team2_player_ids: List[str]
    match_format: Optional[MatchFormat] = None
    court: Optional[str] = None


class TeamEditIn(BaseModel):
    team1_player_ids: List[str]
    team2_player_ids: List[str]
    court: Optional[str] = None


class TeamPlayerOut(BaseModel):
    id: str
    name: str
    surname: str
    nickname: Optional[str] = None
    skill_level: SkillLevel


class TeamOut(BaseModel):
    id: str
    player1: TeamPlayerOut
    player2: TeamPlayerOut


class SetScoreOut(BaseModel):
    set_number: int
    team1_score: Union[int, str, None] = None
    team2_score: Union[int, str, None] = None


class MatchOut(BaseModel):
    id: str
    tournament_id: Optional[str] = None
    round: int
    team1: TeamOut
    team2: TeamOut
    court: Optional[str] = None
    scores: List[SetScoreOut]
    winner_team_id: Optional[str] = None
    status: MatchStatus
    match_format: MatchFormat


class RoundOut(BaseModel):
    round: int
    matches: List[MatchOut]


class DeletedOut(BaseModel):
    deleted: int

