"""エンティティ"""

from .schedule import Schedule
from .generation_input import GenerationInput

__all__ = [
    'Schedule',
    'GenerationInput',
]
