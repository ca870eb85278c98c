from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from engine.models import SkillLevel


class PlayerIn(BaseModel):
    name: str = Field(min_length=1)
    surname: str = ""
    nickname: Optional[str] = None
    contact: Optional[str] = None
    skill_level: SkillLevel = SkillLevel.UNASSIGNED


class PlayerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    surname: Optional[str] = None
    nickname: Optional[str] = None
    contact: Optional[str] = None
    skill_level: Optional[SkillLevel] = None


class PlayerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    surname: str
    nickname: Optional[str] = None
    contact: Optional[str] = None
    skill_level: SkillLevel
    matches_played: int
    matches_won: int
    sets_won: int
    sets_lost: int
    games_won: int
    games_lost: int
    points: int
