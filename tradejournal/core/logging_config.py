import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from tradejournal.core.config import settings

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers and the level they run at regardless of LOG_LEVEL
LIBRARY_LEVELS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpcore": logging.WARNING,
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


def _file_handler(path: str, formatter: logging.Formatter) -> logging.Handler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(log_path, when="midnight", backupCount=settings.LOG_BACKUP_DAYS)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: int | str | None = None, log_file: str | None = None):
    """
    Configure the root logger once for the journal service.

    Everything goes to stdout; with ``LOG_FILE`` set the same lines are also
    kept in a file rotated at midnight. ``DB_ECHO`` turns on SQL statement
    logging through the ``sqlalchemy.engine`` logger so it shares the format.
    """
    level = level or settings.LOG_LEVEL
    log_file = log_file or settings.LOG_FILE
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setFormatter(formatter)
    if log_file:
        handlers.append(_file_handler(log_file, formatter))

    root_logger = logging.getLogger()
    # Reloads must not print twice
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name, lib_level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(lib_level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DB_ECHO else logging.WARNING)

    # uvicorn installs its own handlers; give them our format
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        for handler in uv_logger.handlers:
            handler.setFormatter(formatter)

    logging.getLogger(__name__).info(
        "Logging initialized | level=%s | file=%s | sql_echo=%s",
        logging.getLevelName(root_logger.level),
        log_file or "-",
        settings.DB_ECHO,
    )
    return root_logger
