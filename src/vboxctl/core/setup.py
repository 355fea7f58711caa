"""
One-call initialization for applications embedding vboxctl.
"""

from typing import Optional

from vboxctl.core.config import ConfigManager
from vboxctl.i18n import set_language
from vboxctl.utils.verbosity_logger import setup_logging


def configure(config_file: Optional[str] = None, install_logging: bool = True) -> ConfigManager:
    """
    Load configuration, select the message language and install log handlers.

    Returns the ConfigManager so it can be passed as ``config=`` to the
    machine functions.
    """
    config = ConfigManager(config_file)
    set_language(config.get_language())
    if install_logging:
        setup_logging(config)
    return config
