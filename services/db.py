"""
services/db.py
────────────────────────────────────────────────────────────────────────
* Async SQLAlchemy v2 setup
* Models for meal-plan defaults, persisted plans and the recipe catalog
* Session helpers for routers (dependency) and scripts/workers (context)
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, AsyncIterator

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncAttrs,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from config import settings

# ───────── connection helper ────────────────────────────────────────
_ENGINE: AsyncEngine | None = None


async def _create_engine() -> AsyncEngine:
    # 1) plain TCP URL
    if settings.database_url:
        return create_async_engine(settings.database_url, pool_pre_ping=True)

    # 2) Cloud SQL connector (only if URL not supplied)
    if not settings.cloud_sql_connection_name:
        raise RuntimeError(
            "Set either DATABASE_URL or CLOUD_SQL_CONNECTION_NAME env var"
        )

    # lazy import here
    try:
        from google.cloud.sql.connector import IPTypes, create_async_connector  # type: ignore
    except ImportError as exc:
        raise RuntimeError(
            "cloud-sql-python-connector missing. Run:\n"
            "pip install 'cloud-sql-python-connector[asyncpg]>=1.4.0'"
        ) from exc

    connector = await create_async_connector()

    async def _getconn():  # type: ignore[name-defined]
        return await connector.connect_async(
            settings.cloud_sql_connection_name,
            "asyncpg",
            user=settings.db_user,
            password=settings.db_pass,
            db=settings.db_name,
            ip_type=IPTypes.PRIVATE,
        )

    return create_async_engine(
        "postgresql+asyncpg://",
        async_creator=_getconn,
        pool_pre_ping=True,
    )


async def engine() -> AsyncEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = await _create_engine()
    return _ENGINE


# ───────── declarative base ──────────────────────────────────────────
Base = declarative_base(cls=AsyncAttrs)


class MealPlanPreferences(Base):
    """Stored per-user defaults + delivery schedule."""

    __tablename__ = "meal_plan_preferences"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    meal_plan_prompt: Mapped[str | None] = mapped_column(Text)
    ingredients_on_hand: Mapped[str | None] = mapped_column(Text)
    dietary_preferences: Mapped[list | None] = mapped_column(JSON)
    preferred_cooking_oil: Mapped[str | None] = mapped_column(String)
    meal_plan_type: Mapped[str | None] = mapped_column(String(16))
    include_shopping_list: Mapped[bool | None] = mapped_column(Boolean)
    calorie_target: Mapped[float | None] = mapped_column(Float)
    variety: Mapped[str | None] = mapped_column(String(32))
    slots: Mapped[list | None] = mapped_column(JSON)

    schedule_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    schedule_time: Mapped[str | None] = mapped_column(String(5))        # "HH:MM"
    schedule_timezone: Mapped[str | None] = mapped_column(String(64))   # IANA
    schedule_day_of_week: Mapped[int | None] = mapped_column(Integer)   # 0=Sun


class MealPlan(Base):
    """One row per invocation; never updated after insert."""

    __tablename__ = "meal_plans"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    type: Mapped[str] = mapped_column(String(16))
    variety: Mapped[str] = mapped_column(String(32))
    subject: Mapped[str] = mapped_column(String)
    content: Mapped[str] = mapped_column(Text)
    baba_tip: Mapped[str] = mapped_column(Text, default="")
    days: Mapped[list] = mapped_column(JSON)
    slots: Mapped[list] = mapped_column(JSON)
    shopping_list: Mapped[Any] = mapped_column(JSON, nullable=True)
    source: Mapped[str] = mapped_column(String(16))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Recipe(Base):
    """Shared catalog; plans reference rows by id."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    recipe_title: Mapped[str] = mapped_column(String)
    recipe_content: Mapped[str] = mapped_column(Text)
    ingredients: Mapped[list] = mapped_column(JSON)
    directions: Mapped[list] = mapped_column(JSON)
    cuisine_type: Mapped[str] = mapped_column(String)
    cooking_difficulty: Mapped[str] = mapped_column(String)
    cooking_time: Mapped[str] = mapped_column(String)
    diet: Mapped[list] = mapped_column(JSON)
    recipe_summary: Mapped[str] = mapped_column(Text, default="")
    origin: Mapped[str] = mapped_column(String(32))
    origin_description: Mapped[str] = mapped_column(Text)
    user_id: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


# ───────── session helpers ───────────────────────────────────────────

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    eng = await engine()
    async_session = async_sessionmaker(eng, expire_on_commit=False)
    async with async_session() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """`async with session_scope() as db:` for scripts and workers."""
    eng = await engine()
    async_session = async_sessionmaker(eng, expire_on_commit=False)
    async with async_session() as session:
        yield session
