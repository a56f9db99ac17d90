import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from . import settings

FILE_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

# Chatty libraries that log every webhook request at INFO.
NOISY_LOGGERS = ("urllib3", "requests")


def setup_logger(
    name: str = "pickit",
    log_level: int | str | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Configures the package logger once per process.

    Console output stays minimal (message only) so the run summary reads
    cleanly; the rotating file under `log_dir` keeps timestamps and the
    worker thread name, which matters when sources are fetched concurrently.
    Calling it again returns the already configured logger with the new level.
    """
    level = log_level if log_level is not None else settings.LOG_LEVEL
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    log_dir = log_dir or settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / f"{name}.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(file_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
