# util/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from config.settings import Settings, settings as app_settings

logging.captureWarnings(True)

TEXT_FMT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DATE_FMT = "%Y-%m-%dT%H:%M:%S%z"

# Loggers that are chatty at INFO and say nothing useful about snippets.
_NOISY = ("httpx", "sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncio")


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so file handlers sharing the record stay plain.
        tinted = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        tinted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(tinted)


def _console_handler(level: int) -> logging.Handler:
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    # No escape codes when stdout is piped into a collector
    if sys.stdout.isatty():
        ch.setFormatter(ColoredFormatter(TEXT_FMT, datefmt=DATE_FMT))
    else:
        ch.setFormatter(logging.Formatter(TEXT_FMT, datefmt=DATE_FMT))
    return ch


def _file_handler(cfg: Settings, level: int) -> logging.Handler:
    os.makedirs(cfg.LOG_DIR, exist_ok=True)
    fh = RotatingFileHandler(
        os.path.join(cfg.LOG_DIR, cfg.LOG_FILE_NAME),
        maxBytes=cfg.LOG_MAX_BYTES,
        backupCount=cfg.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(TEXT_FMT, datefmt=DATE_FMT))
    return fh


def init_logger(cfg: Settings | None = None) -> logging.Logger:
    """
    Configure the root logger once per process.

    stdout always; a size-rotated file under LOG_DIR when LOG_TO_FILE is set.
    Snippet content is never passed to a logger, only ids, sizes and timings.
    """
    cfg = cfg or app_settings
    root = logging.getLogger()
    if getattr(root, "_tafcha_inited", False):
        return logging.getLogger(cfg.LOGGER_NAME)

    level = logging.getLevelName((cfg.LOG_LEVEL or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(_console_handler(level))
    if cfg.LOG_TO_FILE:
        root.addHandler(_file_handler(cfg, level))

    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)

    root._tafcha_inited = True  # type: ignore[attr-defined]
    logger = logging.getLogger(cfg.LOGGER_NAME)
    logger.debug("logger.init level=%s file=%s", logging.getLevelName(level), cfg.LOG_TO_FILE)
    return logger
