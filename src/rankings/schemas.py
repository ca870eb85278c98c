from typing import List, Optional

from pydantic import BaseModel

from engine.models import SkillLevel


class StandingRow(BaseModel):
    rank: int
    id: str
    name: str
    surname: str
    nickname: Optional[str] = None
    skill_level: SkillLevel
    tournament_id: Optional[str] = None
    matches_played: int
    matches_won: int
    sets_won: int
    sets_lost: int
    games_won: int
    games_lost: int
    points: int
    set_ratio: str


class StandingsOut(BaseModel):
    scope: str
    tournament_id: Optional[str] = None
    tournament_name: Optional[str] = None
    standings: List[StandingRow]
