"""設定関連"""

from .logging_config import LoggingConfig, get_logger
from .config_loader import ConfigLoader, LoadedConfiguration

__all__ = [
    'LoggingConfig',
    'get_logger',
    'ConfigLoader',
    'LoadedConfiguration',
]
