"""
Logging setup for the track fusion service.

Configures the ``track_fusion`` logger hierarchy with a rotating log file and
an optional console handler. Modules log through
``logging.getLogger(__name__)`` and never configure handlers themselves.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import LoggingConfig

ROOT_LOGGER_NAME = "track_fusion"


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Set up logging for the service

    Args:
        config: Logging settings (default: LoggingConfig())

    Returns:
        The package root logger
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper())

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.handlers.clear()

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=config.max_log_size_mb * 1024 * 1024,
            backupCount=config.backup_count
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        root.addHandler(file_handler)

    if config.console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        root.addHandler(console_handler)

    return root
