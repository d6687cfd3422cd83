"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Interpret environment variable values as non-negative integers."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < 0:
        raise ValueError(f"{name} must not be negative, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitPulse"
    LOG_FILENAME = "habitpulse.log"
    DEFAULT_HIGHLIGHT_SECONDS = 10
    DEFAULT_MISFIRE_GRACE_SECONDS = 30

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITPULSE_DEV_MODE", default=True)
        self.HIGHLIGHT_SECONDS = _env_int(
            "HABITPULSE_HIGHLIGHT_SECONDS", self.DEFAULT_HIGHLIGHT_SECONDS
        )
        self.MISFIRE_GRACE_SECONDS = _env_int(
            "HABITPULSE_MISFIRE_GRACE_SECONDS", self.DEFAULT_MISFIRE_GRACE_SECONDS
        )

    def _resolve_data_dir(self) -> Path:
        """Return the directory where logs and exported snapshots live."""

        data_root = os.getenv("HABITPULSE_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()


class DevConfig(BaseConfig):
    """Development configuration with verbose console output."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration used by the test-suite."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        # Keep console quiet so command output stays assertable.
        self.DEV_MODE = False


_CONFIGS: dict[str, type[BaseConfig]] = {
    "base": BaseConfig,
    "development": DevConfig,
    "testing": TestingConfig,
}


def get_config(name: str | None = None) -> BaseConfig:
    """Instantiate the configuration registered under ``name``.

    Falls back to ``HABITPULSE_ENV`` and then ``development``.
    """

    key = (name or os.getenv("HABITPULSE_ENV") or "development").strip().lower()
    try:
        config_cls = _CONFIGS[key]
    except KeyError as exc:
        raise ValueError(f"Unknown configuration: {key!r}") from exc
    return config_cls()
