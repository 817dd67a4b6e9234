"""
Logging setup for the dashboard.

Console output always, plus an optional rotating log file.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from sportledger.config import LOGGER_NAME


def setup_logger(
    name: str = LOGGER_NAME,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Set up and configure the application logger.

    Module loggers (``logging.getLogger(__name__)`` under ``sportledger``)
    propagate to it, so this only needs to run once at startup.

    Args:
        name: Logger name (default: "sportledger")
        level: Logging level, as int or name ("DEBUG", "INFO", ...)
        log_file: Optional path to log file for file output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Streamlit reruns the script on every interaction
    if logger.handlers:
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
