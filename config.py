"""
Centralised settings loader.

Every knob comes from the environment (or a local `.env`), one cached
instance is shared as `config.settings`.
"""

from __future__ import annotations
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class _Settings(BaseSettings):
    # ─── runtime / DB / auth ────────────────────────────────────────
    env_name: str = "local"
    log_level: str = "INFO"
    database_url: str | None = None
    cloud_sql_connection_name: str | None = None
    db_user: str | None = None
    db_pass: str | None = None
    db_name: str | None = None
    jwt_secret: str = "changeme"
    cron_secret: str | None = None

    # ─── Gemini ─────────────────────────────────────────────────────
    gemini_api_key: str | None = None
    planner_model: str = "models/gemini-2.0-flash"
    recipe_model: str = "models/gemini-2.0-flash"
    shopping_model: str = "models/gemini-2.0-flash-lite"

    # ─── meal-plan pipeline ─────────────────────────────────────────
    recipe_synthesis_timeout_s: float = Field(60.0, gt=0)
    plan_history_lookback: int = Field(20, ge=1)

    # allow other teammates’ env-vars without crashing
    model_config = SettingsConfigDict(
        extra="ignore", env_file=".env", env_file_encoding="utf-8"
    )


# ------------------------------------------------------------------ #
#  Cached singleton accessor
# ------------------------------------------------------------------ #
@lru_cache
def _cached() -> _Settings:  # pragma: no cover
    return _Settings()  # type: ignore[call-arg]


settings: _Settings = _cached()
