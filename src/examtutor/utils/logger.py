"""
Per-component loggers for examtutor.

Each component (ingestion, detection, completion, answering, api) writes to its
own rotating file under the `examtutor.` logger namespace. Ingestion composes
questions on worker threads, so records carry the thread name.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from examtutor.config import logging_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s"


def _file_handler(logger: logging.Logger) -> RotatingFileHandler | None:
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            return handler
    return None


def get_logger(
    name: str, level: int = logging.INFO, log_file_path: Path | None = None
) -> logging.Logger:
    """
    Create or retrieve the logger of an examtutor component.

    The logger is named `examtutor.<name>`. Repeated calls return the same
    logger; its level is updated, and its file handler is swapped only when the
    resolved path changes.

    Args:
        name (str): Component name (also the key in `logging_settings.log_files`).
        level (int): Logging level (e.g. `logging.INFO`).
        log_file_path (Path): Optional override path. If None, uses the path from settings.

    Returns:
        logging.Logger: A configured logger.

    Raises:
        ValueError: If no log file is configured for `name` in settings.
    """
    if log_file_path is None:
        try:
            log_file_path = logging_settings.log_files[name]
        except KeyError:
            raise ValueError(
                f"No log file configured for component '{name}'. "
                f"Known components: {', '.join(sorted(logging_settings.log_files))}."
            )

    path = Path(os.path.abspath(log_file_path))
    path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(f"examtutor.{name}")
    logger.setLevel(level)

    current = _file_handler(logger)
    if current is not None and Path(current.baseFilename) == path:
        return logger
    if current is not None:
        logger.removeHandler(current)
        current.close()

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=logging_settings.max_bytes,
        backupCount=logging_settings.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
