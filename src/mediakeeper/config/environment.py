import os
from pathlib import Path
from typing import Any, Dict, Optional

from mediakeeper.config.settings import (
    SETTINGS_FILE,
    get_system_file_path,
    get_value,
    load_settings,
)

DEFAULT_ENV = {
    "ENV": "development",
    "LOG_LEVEL": "INFO",
    "DEBUG": None,
    "MEDIA_MAX_ACTIVE_RESOURCES": 3,
    "MEDIA_MAX_LOOPS_BEFORE_RELOAD": 10,
    "MEDIA_MAX_MEMORY_MB": 800,
    "MEDIA_INACTIVITY_SECONDS": 60.0,
    "MEDIA_STALE_SECONDS": 300.0,
    "MEDIA_MAINTENANCE_INTERVAL": 30.0,
    "MEDIA_RELOAD_DELAY": 0.1,
}

"""
Environment Configuration Management Module

Centralised access to mediakeeper configuration. Values are resolved from:

- The settings file (settings.yaml)
- Environment variables, including those loaded from .env files
- Default values in DEFAULT_ENV
"""


def load_dotenv_files():
    """Load environment variables from .env files based on current environment."""
    from dotenv import load_dotenv

    project_root = Path.cwd()
    env_name = os.environ.get("ENV", "development")

    # Later files override earlier ones
    env_files = [
        project_root / ".env",
        project_root / f".env.{env_name}",
        project_root / f".env.{env_name}.local",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file, override=False)


class Environment(object):
    """
    Manages environment variables and provides default values and type conversions.

    Settings are loaded lazily on first access and cached on the class. Call
    `reset()` to force a reload, e.g. after monkeypatching the environment in tests.
    """

    settings: Optional[Dict[str, Any]] = None

    @classmethod
    def load_settings(cls):
        load_dotenv_files()
        cls.settings = load_settings()

    @classmethod
    def reset(cls):
        cls.settings = None

    @classmethod
    def get_settings(cls):
        if cls.settings is None:
            cls.load_settings()
        assert cls.settings is not None
        return cls.settings

    @classmethod
    def get(cls, key: str, default: Any = None):
        return get_value(key, cls.get_settings(), DEFAULT_ENV, default)

    @classmethod
    def has_settings(cls):
        return get_system_file_path(SETTINGS_FILE).exists()

    @classmethod
    def get_int(cls, key: str, default: int) -> int:
        raw = cls.get(key, default)
        try:
            return int(raw)
        except (TypeError, ValueError):
            return default

    @classmethod
    def get_float(cls, key: str, default: float) -> float:
        raw = cls.get(key, default)
        try:
            return float(raw)
        except (TypeError, ValueError):
            return default

    @classmethod
    def get_log_level(cls):
        """Return desired log level string.

        Priority:
        1) LOG_LEVEL env
        2) If DEBUG env is truthy, return "DEBUG"
        3) MEDIAKEEPER_LOG_LEVEL env (default "INFO")
        """
        level = os.getenv("LOG_LEVEL")
        if level:
            return str(level).upper()
        debug_env = os.getenv("DEBUG")
        if debug_env and debug_env.lower() not in ("0", "false", "no", "off", ""):
            return "DEBUG"
        return os.getenv("MEDIAKEEPER_LOG_LEVEL", "INFO").upper()
