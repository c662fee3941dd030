"""Runtime settings read from the environment (and an optional .env file)."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from brainlib.errors import ConfigError

ENV_PREFIX = "BRAINLIB_"

DEFAULT_DOCUMENTS_DIR = "./documents"
DEFAULT_TOP_K = 3
DEFAULT_WORKERS = 4
DEFAULT_LOG_LEVEL = "INFO"


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigError(f"{ENV_PREFIX}{name} must be >= 1, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Settings for the index and the server process."""

    documents_dir: Path = Path(DEFAULT_DOCUMENTS_DIR)
    top_k: int = DEFAULT_TOP_K
    workers: int = DEFAULT_WORKERS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of os.environ (used by tests)
            dotenv: Load a .env file into os.environ first

        Returns:
            Settings with defaults filled in for unset variables
        """
        if env is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            env = os.environ

        documents_dir = env.get(ENV_PREFIX + "DOCUMENTS_DIR") or DEFAULT_DOCUMENTS_DIR
        log_level = (env.get(ENV_PREFIX + "LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()

        return cls(
            documents_dir=Path(documents_dir),
            top_k=_positive_int(env, "TOP_K", DEFAULT_TOP_K),
            workers=_positive_int(env, "WORKERS", DEFAULT_WORKERS),
            log_level=log_level,
        )
