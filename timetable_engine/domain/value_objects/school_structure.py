"""学校の構成（学年・クラス数・曜日ごとの校時数）"""
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ..constants import WEEKDAYS
from .time_slot import TimeSlot, ClassReference


@dataclass(frozen=True)
class SchoolStructure:
    """学年数・学年ごとのクラス数・曜日ごとの校時数"""
    grades: int
    classes_per_grade: Tuple[int, ...]
    periods_per_day: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if self.grades < 1:
            raise ValueError(f"学年数が不正です: {self.grades}")
        if len(self.classes_per_grade) != self.grades:
            raise ValueError(
                f"学年ごとのクラス数の個数({len(self.classes_per_grade)})が学年数({self.grades})と一致しません"
            )
        if any(count < 0 for count in self.classes_per_grade):
            raise ValueError("クラス数が負です")
        for day, periods in self.periods_per_day.items():
            if day not in WEEKDAYS:
                raise ValueError(f"曜日が不正です: {day}")
            if periods < 0:
                raise ValueError(f"{day}曜日の校時数が負です: {periods}")

    def class_refs(self) -> List[ClassReference]:
        return [
            ClassReference(grade, number)
            for grade, count in enumerate(self.classes_per_grade, start=1)
            for number in range(1, count + 1)
        ]

    def periods_on(self, day: str) -> int:
        return self.periods_per_day.get(day, 0)

    @property
    def total_periods(self) -> int:
        """1クラスあたりの週の総コマ数"""
        return sum(self.periods_on(day) for day in WEEKDAYS)

    def time_slots(self) -> List[TimeSlot]:
        return [
            TimeSlot(day, period)
            for day in WEEKDAYS
            for period in range(1, self.periods_on(day) + 1)
        ]
