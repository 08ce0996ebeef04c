"""Runtime settings for the dicemancer MCP server.

Values come from the environment (a `.env` file is applied first, if present):

    DICEMANCER_DATABASE_URL    SQLAlchemy URL of the macro database
    DICEMANCER_ALLOWLIST_PATH  JSON file listing groups allowed to use the tools
    DICEMANCER_MAX_DICE_COUNT  most dice one term may roll
    DICEMANCER_MAX_DICE_SIDES  largest die size one term may use
    DICEMANCER_LOG_LEVEL       logging level name
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .models import RollLimits


ENV_PREFIX = "DICEMANCER_"


class Settings(BaseModel):
    database_url: str = Field("sqlite:///macros.db", description="Macro database URL")
    allowlist_path: str = Field("allowed_servers.json", description="Allowed groups file")
    max_dice_count: int = Field(20, ge=1, description="Most dice rolled by one term")
    max_dice_sides: int = Field(200, ge=1, description="Largest die size")
    log_level: str = Field("INFO", description="Logging level name")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def limits(self) -> RollLimits:
        return RollLimits(max_count=self.max_dice_count, max_sides=self.max_dice_sides)


def load_settings() -> Settings:
    load_dotenv()
    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is not None:
            values[name] = raw
    return Settings(**values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
