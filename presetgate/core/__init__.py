"""presetgate Core - Shared utilities and infrastructure.

Import specific functions from submodules:
    from presetgate.core.config import ConfigManager
    from presetgate.core import constants
    from presetgate.core.logging import get_logger
    from presetgate.core import validators
"""

from presetgate.core import config, constants, logging, validators

__all__ = [
    "config",
    "constants",
    "logging",
    "validators",
]
