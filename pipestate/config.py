"""Process configuration — env-driven via pydantic-settings.

Reads from a .env file and PIPESTATE_* environment variables.
"""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Runtime settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export PIPESTATE_LOG_LEVEL=DEBUG
        export PIPESTATE_STATUS_CHECK=false
        export PIPESTATE_MAX_CONCURRENT_BUILDS=2
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PIPESTATE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Pipeline behaviour
    status_check: bool = True
    max_concurrent_builds: int = 4
    status_check_timeout_seconds: float = 600.0

    @property
    def effective_log_level(self) -> int:
        """Numeric logging level; ``debug`` forces DEBUG."""
        if self.debug:
            return logging.DEBUG
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def configure_logging(cfg: Settings | None = None) -> None:
    """Apply the configured level to the ``pipestate`` logger tree.

    Uses the module-level ``settings`` unless *cfg* is given.
    """
    if cfg is None:
        cfg = settings
    logging.basicConfig(format=_LOG_FORMAT)
    logging.getLogger("pipestate").setLevel(cfg.effective_log_level)


# Module-level defaults — import as `from pipestate.config import settings`
settings = Settings()
