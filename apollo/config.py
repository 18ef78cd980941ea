"""
Runtime configuration for the Apollo viewer.

Values come from the project .env file (if present) and the process
environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_API_URL = "http://localhost:8080/api"
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_RENDER_WAIT = 2.0
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    render_wait: float = DEFAULT_RENDER_WAIT  # seconds a view waits for engine output
    log_level: str = DEFAULT_LOG_LEVEL


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from .env and the environment.

    Args:
        env_file: Optional .env path (default: <project root>/.env)

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric setting is malformed
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    return Settings(
        api_url=os.environ.get("APOLLO_API_URL", DEFAULT_API_URL).rstrip("/"),
        http_timeout=_float_env("APOLLO_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        render_wait=_float_env("APOLLO_RENDER_WAIT", DEFAULT_RENDER_WAIT),
        log_level=os.environ.get("APOLLO_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )
