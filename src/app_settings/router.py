import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app_settings.functions import get_settings_orm, load_settings
from app_settings.schemas import SettingsOut, SettingsUpdate
from convert import orm_to_settings
from database import get_session, TournamentORM
from players.functions import recalculate_player_counters

router = APIRouter(prefix='/settings', tags=['Settings'])
logger = logging.getLogger(__name__)

POINT_FIELDS = {"points_win", "points_tie_break_loss", "points_loss"}


@router.get("", response_model=SettingsOut)
async def read_settings(session: AsyncSession = Depends(get_session)):
    return asdict(await load_settings(session))


@router.patch("", response_model=SettingsOut)
async def update_settings(data: SettingsUpdate, session: AsyncSession = Depends(get_session)):
    # null only clears the nullable selection; other keys keep their value
    changes = {
        key: value for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key == "current_tournament_id"
    }

    tid = changes.get("current_tournament_id")
    if tid is not None and not await session.get(TournamentORM, tid):
        raise HTTPException(status_code=404, detail="Tournament not found")

    row = await get_settings_orm(session, create=True)
    for key, value in changes.items():
        setattr(row, key, getattr(value, "value", value))

    # Point values feed the stored player counters
    if POINT_FIELDS & changes.keys():
        await recalculate_player_counters(session)

    await session.commit()
    logger.info("Settings updated: %s", ", ".join(sorted(changes)) or "nothing")
    return asdict(orm_to_settings(row))
