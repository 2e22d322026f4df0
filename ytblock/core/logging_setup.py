import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from ytblock.core.config import Settings, settings as default_settings


def _get_log_level(level_name: str | None) -> int:
    level = (level_name or "INFO").strip().upper()
    return getattr(logging, level, logging.INFO)


def setup_logging(settings: Settings | None = None, *, level: str | None = None) -> None:
    cfg = settings or default_settings
    root_logger = logging.getLogger()
    if getattr(root_logger, "_ytblock_logging_configured", False):
        return

    log_level = _get_log_level(level or cfg.LOG_LEVEL)
    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)

    root_logger.addHandler(stream_handler)

    if (cfg.LOG_DIR or "").strip():
        try:
            log_dir = Path(cfg.LOG_DIR).expanduser()
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file_path = log_dir / cfg.LOG_FILE_NAME

            file_handler = TimedRotatingFileHandler(
                filename=str(log_file_path),
                when=cfg.LOG_FILE_ROTATION_WHEN,
                interval=max(1, cfg.LOG_FILE_ROTATION_INTERVAL),
                backupCount=max(1, cfg.LOG_FILE_RETENTION_DAYS),
                encoding="utf-8",
                utc=True,
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except Exception as exc:
            logging.getLogger(__name__).warning("Failed to initialize file logger: %s", exc)

    root_logger._ytblock_logging_configured = True
