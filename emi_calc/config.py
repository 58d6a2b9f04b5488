"""Configuration for the EMI calculator front ends.

Settings are read from environment variables prefixed with ``EMI_CALC_`` and
fall back to defaults suitable for local use. The calculation precision is
deliberately not part of this module: it is a
:class:`~emi_calc.data_models.PrecisionPolicy` value passed to each engine
call.

Environment Variables
---------------------
EMI_CALC_LOG_LEVEL : str
    Logging level (DEBUG, INFO, WARNING, ERROR). Default ``WARNING``.
EMI_CALC_MAX_PRINT_ROWS : int
    Schedule rows shown before the output is truncated. Default 120.
EMI_CALC_DATABASE_URL : str
    SQLAlchemy URL of the comparison store.
EMI_CALC_SECRET_KEY : str
    Flask session secret.
EMI_CALC_MAX_SCENARIOS_PER_USER : int
    Saved comparison scenarios kept per session. Default 10.
EMI_CALC_ASSET_VERSION : str
    Cache-busting suffix for static assets.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "EMI_CALC_"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _get_env(key: str, default: Any, value_type: type = str) -> Any:
    """Read ``EMI_CALC_<KEY>`` converted to ``value_type``.

    Values that cannot be converted are ignored with a warning and the
    default is returned instead.
    """
    env_name = f"{ENV_PREFIX}{key.upper()}"
    env_value = os.environ.get(env_name)
    if env_value is None or env_value == "":
        return default
    try:
        if value_type == bool:
            return env_value.lower() in ("true", "1", "yes", "on")
        if value_type == int:
            return int(env_value)
        return env_value
    except ValueError:
        logger.warning("Ignoring invalid value %r for %s", env_value, env_name)
        return default


class Settings:
    """Application settings loaded from the environment."""

    def __init__(self) -> None:
        self.log_level: str = _get_env("LOG_LEVEL", "WARNING")
        self.max_print_rows: int = _get_env("MAX_PRINT_ROWS", 120, int)
        self.database_url: str = _get_env("DATABASE_URL", "sqlite:///comparison_data.sqlite3")
        self.secret_key: str = _get_env("SECRET_KEY", "dev-secret-key")
        self.max_scenarios_per_user: int = _get_env("MAX_SCENARIOS_PER_USER", 10, int)
        self.asset_version: str = _get_env("ASSET_VERSION", "1")

    @property
    def log_level_int(self) -> int:
        return level_from_name(self.log_level)


def level_from_name(name: Optional[str]) -> int:
    """Return the ``logging`` constant for ``name``; unknown names map to WARNING."""
    if not name:
        return logging.WARNING
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the given level or the configured one."""
    logging.basicConfig(
        level=level_from_name(level or get_settings().log_level),
        format=LOG_FORMAT,
    )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
