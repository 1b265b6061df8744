"""
Runtime configuration, read from the environment.

    WAR_ENV                 development | production
    WAR_REDIS_URL           redis://host:6379/0 (unset -> in-memory store)
    WAR_AUTO_BIND_SEAT      1 to derive a viewer's seat from its identity
    WAR_OPTIMISTIC_WRITES   0 to fall back to last-write-wins updates
    WAR_MAX_WRITE_RETRIES   attempts before a WriteConflict is raised
    ALLOWED_ORIGINS         comma separated CORS origins
    LOG_LEVEL               DEBUG / INFO / WARNING / ERROR
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    env: str = "development"
    redis_url: str | None = None

    # Seat selection stays with the viewer unless this is switched on
    auto_bind_seat: bool = False

    optimistic_writes: bool = True
    max_write_retries: int = 5

    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            env=os.getenv("WAR_ENV", "development"),
            redis_url=os.getenv("WAR_REDIS_URL") or None,
            auto_bind_seat=_env_flag("WAR_AUTO_BIND_SEAT", False),
            optimistic_writes=_env_flag("WAR_OPTIMISTIC_WRITES", True),
            max_write_retries=int(os.getenv("WAR_MAX_WRITE_RETRIES", "5")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
