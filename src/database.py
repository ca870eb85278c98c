import os
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from dotenv import load_dotenv
from asyncpg import Connection
from uuid import uuid4
from sqlalchemy import (
    Column, ForeignKey, Integer, String, Text,
    func, DateTime, JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship

from engine.models import (
    MatchFormat, MatchStatus, PairingStrategy, SkillLevel, TournamentStatus, SETTINGS_ID,
)

load_dotenv()

POSTGRES_USER = os.getenv("POSTGRES_USER")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
POSTGRES_DB = os.getenv("POSTGRES_DB_URL")

class Base(DeclarativeBase): pass

postgres_file_name = f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_DB}"

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{postgres_file_name}"
    )

# JSONB on PostgreSQL, plain JSON elsewhere (tests run on SQLite)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class FixedConnection(Connection):
    def _get_unique_id(self, prefix: str) -> str:
        return f'__asyncpg_{prefix}_{uuid4()}__'


if DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(DATABASE_URL, echo=False, poolclass=NullPool)
else:
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        future=True,
        connect_args={
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
            "connection_class": FixedConnection,
        }
    )

# Session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

#ORM

class PlayerORM(Base):
    __tablename__ = "players"

    id             = Column(String, primary_key=True)
    name           = Column(String, nullable=False)
    surname        = Column(String, nullable=False, default="")
    nickname       = Column(String, nullable=True)
    contact        = Column(String, nullable=True)
    skill_level    = Column(String, nullable=False, default=SkillLevel.UNASSIGNED.value)
    matches_played = Column(Integer, nullable=False, default=0)
    matches_won    = Column(Integer, nullable=False, default=0)
    sets_won       = Column(Integer, nullable=False, default=0)
    sets_lost      = Column(Integer, nullable=False, default=0)
    games_won      = Column(Integer, nullable=False, default=0)
    games_lost     = Column(Integer, nullable=False, default=0)
    points         = Column(Integer, nullable=False, default=0)
    created_at     = Column(DateTime(timezone=True), server_default=func.now())


class TournamentORM(Base):
    __tablename__ = "tournaments"

    id              = Column(String, primary_key=True)
    name            = Column(String, nullable=False)
    description     = Column(Text, nullable=True)
    days            = Column(Integer, nullable=False, default=12)
    matches_per_day = Column(Integer, nullable=False, default=6)
    max_players     = Column(Integer, nullable=False, default=24)
    status          = Column(String, nullable=False, default=TournamentStatus.DRAFT.value)
    start_date      = Column(String, nullable=True)
    end_date        = Column(String, nullable=True)
    player_ids      = Column(JSONType, nullable=False, default=list)  # list[str]
    current_round   = Column(Integer, nullable=False, default=1)
    created_at      = Column(DateTime(timezone=True), server_default=func.now())
    updated_at      = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    matches = relationship(
        "MatchORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="MatchORM.round, MatchORM.created_at",
        lazy="selectin",
    )


class MatchORM(Base):
    __tablename__ = "matches"

    id             = Column(String, primary_key=True)
    tournament_id  = Column(String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=True)
    round          = Column(Integer, nullable=False)
    team1          = Column(JSONType, nullable=False)   # {id, player1, player2}
    team2          = Column(JSONType, nullable=False)
    court          = Column(String, nullable=True)
    scores         = Column(JSONType, nullable=False, default=list)  # [{set_number, team1_score, team2_score}]
    winner_team_id = Column(String, nullable=True)
    status         = Column(String, nullable=False, default=MatchStatus.PENDING.value)
    match_format   = Column(String, nullable=False, default=MatchFormat.BEST_OF_THREE.value)
    created_at     = Column(DateTime(timezone=True), server_default=func.now())

    tournament = relationship("TournamentORM", back_populates="matches")


class SettingsORM(Base):
    __tablename__ = "settings"

    id                    = Column(String, primary_key=True, default=SETTINGS_ID)
    pairing_strategy      = Column(String, nullable=False, default=PairingStrategy.BALANCED.value)
    match_format          = Column(String, nullable=False, default=MatchFormat.BEST_OF_THREE.value)
    points_win            = Column(Integer, nullable=False, default=3)
    points_tie_break_loss = Column(Integer, nullable=False, default=1)
    points_loss           = Column(Integer, nullable=False, default=0)
    current_tournament_id = Column(String, nullable=True)
    updated_at            = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
