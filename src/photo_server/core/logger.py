"""Logging configuration for the photo server."""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional, Union

import colorlog

ROOT_LOGGER = "photo_server"

_init_lock = threading.Lock()
_initialized = False


def setup_logging(
    log_level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    enable_color: bool = True,
) -> logging.Logger:
    """Set up logging configuration."""
    level = _to_level(log_level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.NOTSET)

    if enable_color:
        console_formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        )
    else:
        console_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.NOTSET)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def init_logging(debug: bool = False) -> None:
    """Configure the console logger exactly once per process.

    Later calls are ignored, use ``set_level`` to change the level afterwards.
    """
    global _initialized
    with _init_lock:
        if _initialized:
            return
        setup_logging("DEBUG" if debug else "INFO")
        _initialized = True


def set_level(level: Union[str, int]) -> None:
    """Change the level of the application logger."""
    logging.getLogger(ROOT_LOGGER).setLevel(_to_level(level))


def get_logger(name: str = None) -> logging.Logger:
    """Get a logger instance."""
    if name is None:
        name = ROOT_LOGGER
    elif not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper())
