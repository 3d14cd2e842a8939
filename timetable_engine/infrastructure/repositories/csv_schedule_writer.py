"""CSV形式の時間割書き込み

「基本時間割」形式（1行目に曜日、2行目に校時、以降クラスごとに1行）で出力します。
"""
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from ...domain.entities.schedule import Schedule
from ...domain.exceptions import ScheduleWriteError
from ...domain.value_objects.assignment import Assignment
from ...shared.mixins.logging_mixin import LoggingMixin

HEADER_LABEL = "基本時間割"


class CSVScheduleWriter(LoggingMixin):
    """時間割をCSVファイルに書き込む"""

    def __init__(self, show_teachers: bool = True, encoding: str = 'utf-8-sig'):
        super().__init__()
        self.show_teachers = show_teachers
        self.encoding = encoding

    def write(self, schedule: Schedule, file_path: Union[str, Path]) -> Path:
        """時間割を書き込み、出力先のパスを返す"""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        frame = self.schedule_to_frame(schedule)
        try:
            frame.to_csv(path, index=False, header=False, encoding=self.encoding)
        except OSError as e:
            self.logger.error(f"時間割の保存エラー: {e}")
            raise ScheduleWriteError(f"時間割を保存できません: {e}", file_path=str(path)) from e

        self.logger.info(f"時間割を保存しました: {path}")
        return path

    def write_teacher_hours(self, schedule: Schedule, file_path: Union[str, Path]) -> Path:
        """教員別の担当時数を書き込む"""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.teacher_hours_frame(schedule).to_csv(path, index=False, encoding=self.encoding)
        except OSError as e:
            raise ScheduleWriteError(f"教員時数を保存できません: {e}", file_path=str(path)) from e
        self.logger.info(f"教員別時数を保存しました: {path}")
        return path

    def schedule_to_frame(self, schedule: Schedule) -> pd.DataFrame:
        """ヘッダー2行＋クラス行のグリッドを DataFrame で作成"""
        slots = schedule.time_slots()
        rows: List[List[str]] = [
            [HEADER_LABEL] + [slot.day for slot in slots],
            [""] + [str(slot.period) for slot in slots],
        ]
        for class_ref in schedule.classes:
            row = [class_ref.full_name]
            for slot in slots:
                row.append(self.format_cell(schedule.get_assignment(slot, class_ref)))
            rows.append(row)
        return pd.DataFrame(rows)

    def teacher_hours_frame(self, schedule: Schedule) -> pd.DataFrame:
        """教員×クラスの担当時数表（合計列付き）"""
        records: Dict[str, Dict[str, int]] = {}
        for teacher, total in schedule.teacher_hour_totals().items():
            per_class = {c.full_name: hours for c, hours in sorted(schedule.teacher_class_hours(teacher).items())}
            records[teacher] = {**per_class, "合計": total}

        columns = [c.full_name for c in schedule.classes] + ["合計"]
        frame = pd.DataFrame.from_dict(records, orient='index', columns=columns).fillna(0).astype(int)
        frame.index.name = "教員"
        return frame.reset_index()

    def format_cell(self, assignment: Optional[Assignment]) -> str:
        if assignment is None:
            return ""
        if not self.show_teachers:
            return assignment.subject
        return f"{assignment.subject}({'/'.join(assignment.teachers)})"
