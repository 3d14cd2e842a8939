"""検証サービス"""

from .schedule_validator import ScheduleValidator, ValidationReport

__all__ = [
    'ScheduleValidator',
    'ValidationReport',
]
