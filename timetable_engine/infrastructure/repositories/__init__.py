"""リポジトリ（入出力）"""

from .csv_schedule_writer import CSVScheduleWriter

__all__ = [
    'CSVScheduleWriter',
]
