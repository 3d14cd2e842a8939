"""共有ミックスイン"""

from .logging_mixin import LoggingMixin

__all__ = [
    'LoggingMixin',
]
