"""
Runtime configuration, read from environment variables.

Every setting has a default, so nothing needs to be exported to run the tests or a local game.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Self


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./xiangqi.db"
    # time control of a MatchClock
    initial_seconds: float = 180.0
    increment_seconds: float = 2.0
    tick_interval: float = 0.1
    # 0 disables draw by repetition
    repetition_limit: int = 0

    @classmethod
    def from_env(cls) -> Self:
        return cls(
            database_url=os.getenv("XIANGQI_DATABASE_URL", cls.database_url),
            initial_seconds=float(
                os.getenv("XIANGQI_INITIAL_SECONDS", cls.initial_seconds)
            ),
            increment_seconds=float(
                os.getenv("XIANGQI_INCREMENT_SECONDS", cls.increment_seconds)
            ),
            tick_interval=float(os.getenv("XIANGQI_TICK_INTERVAL", cls.tick_interval)),
            repetition_limit=int(
                os.getenv("XIANGQI_REPETITION_LIMIT", cls.repetition_limit)
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings.from_env()
