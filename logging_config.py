import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging() -> None:
    """Configure the "studio" logger: stdout always, rotating file when LOG_FILE is set."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    formatter = logging.Formatter(LOG_FORMAT)
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    studio_logger = logging.getLogger("studio")
    studio_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    studio_logger.addHandler(console_handler)

    if settings.LOG_FILE:
        Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.LOG_FILE,
            maxBytes=settings.LOG_MAX_SIZE_MB * 1024 * 1024,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        studio_logger.addHandler(file_handler)

    _configured = True
