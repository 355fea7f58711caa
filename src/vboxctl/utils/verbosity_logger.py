"""
Flexible logging utility for vboxctl.

Provides granular logging control with pipe-separated level configuration,
and handler setup for applications embedding the library.
"""

import logging
from typing import Optional, Set

from vboxctl.utils.logging_formatter import UTCTimestampFormatter

DEFAULT_LEVELS = "INFO|WARNING|ERROR|CRITICAL"


def parse_levels(level_config: str) -> Set[int]:
    """Parse pipe-separated level names into a set of logging constants."""
    enabled_levels = set()
    for level_name in level_config.split("|"):
        level_name = level_name.strip().upper()
        level = logging.getLevelName(level_name)
        if isinstance(level, int):
            enabled_levels.add(level)
    return enabled_levels


class FlexibleLogger:
    """
    Logger that supports granular level filtering with pipe-separated configuration.

    Examples:
    - "DEBUG" - Only debug messages
    - "INFO|ERROR" - Only info and error messages
    - "WARNING|ERROR|CRITICAL" - Only warnings, errors, and critical messages
    """

    def __init__(self, name: str, config_manager=None):
        """Initialize flexible logger."""
        self.logger = logging.getLogger(name)
        self.name = name
        self.config_manager = config_manager

        self.enabled_levels = self._parse_enabled_levels()

        # Handlers are installed by setup_logging(); only the level is ours
        self.logger.setLevel(logging.DEBUG)

    def _parse_enabled_levels(self) -> Set[int]:
        """Parse pipe-separated levels from config into a set of logging constants."""
        level_config = (
            self.config_manager.get_log_levels()
            if self.config_manager
            else DEFAULT_LEVELS
        )
        enabled_levels = parse_levels(level_config)
        return enabled_levels or parse_levels(DEFAULT_LEVELS)

    def _should_log(self, level: int) -> bool:
        """Check if message should be logged based on configured levels."""
        return level in self.enabled_levels

    def debug(self, msg: str, *args, **kwargs):
        """Log debug message if verbosity allows."""
        if self._should_log(logging.DEBUG):
            self.logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        """Log info message if verbosity allows."""
        if self._should_log(logging.INFO):
            self.logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        """Log warning message if verbosity allows."""
        if self._should_log(logging.WARNING):
            self.logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        """Log error message if verbosity allows."""
        if self._should_log(logging.ERROR):
            self.logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        """Log critical message if verbosity allows."""
        if self._should_log(logging.CRITICAL):
            self.logger.critical(msg, *args, **kwargs)


def get_logger(name: str, config_manager=None) -> FlexibleLogger:
    """Get a flexible logger instance with granular level control."""
    return FlexibleLogger(name, config_manager)


def setup_logging(config_manager=None, stream=None) -> logging.Logger:
    """
    Install UTC-timestamped handlers on the ``vboxctl`` logger.

    A stream handler is always added; a file handler is added when
    ``logging.file`` is configured. Existing handlers are replaced.
    """
    log_format = (
        config_manager.get_log_format()
        if config_manager
        else "%(levelname)s: %(name)s: %(message)s"
    )
    log_file: Optional[str] = config_manager.get_log_file() if config_manager else None

    package_logger = logging.getLogger("vboxctl")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    formatter = UTCTimestampFormatter(log_format)

    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.setLevel(logging.DEBUG)
    return package_logger
