import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from ytblock.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    PROJECT_NAME: str = "ytblock"
    VERSION: str = "2.0.0"

    # Scan input / output (keys of the legacy config.json)
    PIHOLE_LOGS_DIR: str = os.getenv("PIHOLE_LOGS_DIR", "/var/log/pihole")
    LOG_FILE_NAME_PREFIX: str = os.getenv("LOG_FILE_NAME_PREFIX", "pihole.log")
    COMPILED_FILE_NAME: str = os.getenv("COMPILED_FILE_NAME", "youtube_domains.txt")
    POP_CONFIRMATION_DIALOGUE: bool = os.getenv("POP_CONFIRMATION_DIALOGUE", "1").strip() in ("1", "true", "yes", "on")

    # Extraction
    # Either a regular expression or one of the preset names: strict, legacy.
    EDGE_HOSTNAME_PATTERN: str = os.getenv("EDGE_HOSTNAME_PATTERN", "strict")
    MAX_LINE_BYTES: int = max(64, int(os.getenv("MAX_LINE_BYTES", "4096")))

    # 0 = one worker thread per file
    SCAN_MAX_CONCURRENCY: int = max(0, int(os.getenv("SCAN_MAX_CONCURRENCY", "0")))

    # Blocklist command
    PIHOLE_COMMAND: str = os.getenv("PIHOLE_COMMAND", "pihole")
    PIHOLE_BLOCKLIST_ARGS: str = os.getenv("PIHOLE_BLOCKLIST_ARGS", "-b")
    PIHOLE_COMMAND_TIMEOUT_SECONDS: int = max(5, int(os.getenv("PIHOLE_COMMAND_TIMEOUT_SECONDS", "300")))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # Empty LOG_DIR keeps logging on stderr only.
    LOG_DIR: str = os.getenv("LOG_DIR", "")
    LOG_FILE_NAME: str = os.getenv("LOG_FILE_NAME", "ytblock.log")
    LOG_FILE_ROTATION_WHEN: str = os.getenv("LOG_FILE_ROTATION_WHEN", "midnight")
    LOG_FILE_ROTATION_INTERVAL: int = max(1, int(os.getenv("LOG_FILE_ROTATION_INTERVAL", "1")))
    LOG_FILE_RETENTION_DAYS: int = max(1, int(os.getenv("LOG_FILE_RETENTION_DAYS", "7")))

    class Config:
        case_sensitive = True
        extra = "ignore"

    @property
    def blocklist_args(self) -> list[str]:
        return [arg for arg in (self.PIHOLE_BLOCKLIST_ARGS or "").split() if arg]


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)
    except OSError as exc:
        raise ConfigurationError(str(path), f"could not read file: {exc}") from exc
    except ValueError as exc:
        raise ConfigurationError(str(path), f"could not decode file: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(str(path), "top-level JSON value must be an object")
    return raw


def load_settings(
    config_path: str | os.PathLike[str] | None = None,
    *,
    required: bool = False,
    **overrides: Any,
) -> Settings:
    """Build settings from env, an optional JSON config file and explicit overrides.

    Later sources win: environment < config file < ``overrides``. Overrides
    whose value is ``None`` are ignored so CLI flags can be passed through
    unconditionally.
    """
    values: dict[str, Any] = {}
    if config_path:
        path = Path(config_path).expanduser()
        if path.is_file():
            values.update(_read_config_file(path))
        elif required:
            raise ConfigurationError(str(path), "config file not found")

    values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError("settings", str(exc)) from exc


settings = Settings()
