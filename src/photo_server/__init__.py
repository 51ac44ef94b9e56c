"""Photo Server - personal photo library with metadata extraction and thumbnails."""

__version__ = "0.1.0"
__author__ = "Photo Server Team"
__description__ = "Personal photo library server with metadata extraction and thumbnail rendering"

from .core.config import Config, get_config, reset_config, set_config
from .core.logger import get_logger, setup_logging

__all__ = [
    'Config',
    'get_config',
    'reset_config',
    'set_config',
    'get_logger',
    'setup_logging',
]
