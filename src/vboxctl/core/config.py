"""
Configuration management for vboxctl.
Reads YAML configuration files and provides configuration data.
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml

from vboxctl.i18n import _

CONFIG_FILENAME = "vboxctl.yaml"

# None lets every VBoxManage command run to completion
DEFAULT_COMMAND_TIMEOUT = None
DEFAULT_STOP_POLL_INTERVAL = 1.0
DEFAULT_STOP_MAX_ATTEMPTS = 300


class ConfigManager:
    """Manages configuration for vboxctl."""

    def __init__(self, config_file: Optional[str] = None):
        self.logger = logging.getLogger(__name__)

        self.config_file = self._determine_config_path(config_file)
        self.config_data: Dict[str, Any] = {}
        if self.config_file is not None:
            self.load_config()

    def _determine_config_path(self, config_file: Optional[str]) -> Optional[str]:
        """
        Determine configuration file path.

        Priority order:
        1. Explicitly named file (must exist)
        2. Platform-specific system config location
        3. ./vboxctl.yaml (local config)
        4. None, meaning built-in defaults
        """
        if config_file:
            return config_file

        if os.name == "nt":  # Windows
            system_config = r"C:\ProgramData\vboxctl\vboxctl.yaml"
        else:  # Unix-like (Linux, macOS, BSD)
            system_config = "/etc/vboxctl.yaml"

        local_config = os.path.join(".", CONFIG_FILENAME)

        if os.path.exists(system_config):
            return system_config
        if os.path.exists(local_config):
            return local_config
        return None

    def load_config(self) -> None:
        """Load configuration from YAML file."""
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                _("Configuration file '%s' not found") % self.config_file
            )

        try:
            with open(self.config_file, "r", encoding="utf-8") as file:
                self.config_data = yaml.safe_load(file) or {}
        except yaml.YAMLError as e:
            raise ValueError(_("Invalid YAML in configuration file: %s") % e) from e
        except OSError as e:
            raise RuntimeError(_("Failed to load configuration file: %s") % e) from e

        self.logger.debug("Loaded configuration from %s", self.config_file)

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration key (e.g., 'stop.max_attempts')
            default: Default value if key is not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        value = self.config_data

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def get_vboxmanage_path(self) -> Optional[str]:
        """Get explicit VBoxManage path if specified."""
        return self.get("vboxmanage.path")

    def get_command_timeout(self) -> Optional[float]:
        """Get the per-command VBoxManage timeout in seconds, None for no limit."""
        timeout = self.get("vboxmanage.timeout", DEFAULT_COMMAND_TIMEOUT)
        return None if timeout is None else float(timeout)

    def get_stop_poll_interval(self) -> float:
        """Get seconds between power-button presses during a graceful stop."""
        return float(self.get("stop.poll_interval", DEFAULT_STOP_POLL_INTERVAL))

    def get_stop_max_attempts(self) -> int:
        """Get the maximum number of power-button presses for a graceful stop."""
        return int(self.get("stop.max_attempts", DEFAULT_STOP_MAX_ATTEMPTS))

    def get_log_levels(self) -> str:
        """Get pipe-separated logging levels configuration."""
        return self.get("logging.level", "INFO|WARNING|ERROR|CRITICAL")

    def get_log_file(self) -> Optional[str]:
        """Get log file path if specified."""
        return self.get("logging.file")

    def get_log_format(self) -> str:
        """Get log format string."""
        return self.get("logging.format", "%(levelname)s: %(name)s: %(message)s")

    def get_language(self) -> str:
        """Get configured language/locale."""
        return self.get("i18n.language", "en")
