from typing import Optional

from pydantic import BaseModel, Field

from engine.models import MatchFormat, PairingStrategy


class SettingsOut(BaseModel):
    pairing_strategy: PairingStrategy
    match_format: MatchFormat
    points_win: int
    points_tie_break_loss: int
    points_loss: int
    current_tournament_id: Optional[str] = None


class SettingsUpdate(BaseModel):
    pairing_strategy: Optional[PairingStrategy] = None
    match_format: Optional[MatchFormat] = None
    points_win: Optional[int] = Field(default=None, ge=0)
    points_tie_break_loss: Optional[int] = Field(default=None, ge=0)
    points_loss: Optional[int] = Field(default=None, ge=0)
    current_tournament_id: Optional[str] = None
