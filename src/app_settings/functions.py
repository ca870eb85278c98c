from sqlalchemy.ext.asyncio import AsyncSession

from convert import orm_to_settings
from database import SettingsORM
from engine.models import AppSettings, SETTINGS_ID


async def get_settings_orm(session: AsyncSession, create: bool = False) -> SettingsORM:
    row = await session.get(SettingsORM, SETTINGS_ID)
    if row is None and create:
        defaults = AppSettings()
        row = SettingsORM(
            id=SETTINGS_ID,
            pairing_strategy=defaults.pairing_strategy.value,
            match_format=defaults.match_format.value,
            points_win=defaults.points_win,
            points_tie_break_loss=defaults.points_tie_break_loss,
            points_loss=defaults.points_loss,
        )
        session.add(row)
    return row


async def load_settings(session: AsyncSession) -> AppSettings:
    return orm_to_settings(await session.get(SettingsORM, SETTINGS_ID))
