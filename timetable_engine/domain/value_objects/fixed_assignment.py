"""固定授業を表す値オブジェクト"""
from dataclasses import dataclass
from typing import Tuple

from .time_slot import TimeSlot, ClassReference, normalize_day


@dataclass(frozen=True)
class FixedAssignment:
    """生成前に確定させる授業（協力授業を含む）"""
    class_ref: ClassReference
    day: str
    period: int
    subject: str
    teacher: str
    co_teachers: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.subject:
            raise ValueError("固定授業の教科が空です")
        if not self.teacher:
            raise ValueError("固定授業の教員が空です")
        object.__setattr__(self, 'day', normalize_day(self.day))
        object.__setattr__(self, 'co_teachers', tuple(self.co_teachers))

    @property
    def time_slot(self) -> TimeSlot:
        return TimeSlot(self.day, self.period)

    @property
    def teachers(self) -> Tuple[str, ...]:
        return (self.teacher,) + tuple(t for t in self.co_teachers if t != self.teacher)

    @property
    def is_co_teaching(self) -> bool:
        return len(self.teachers) > 1

    def __str__(self) -> str:
        return f"{self.class_ref} {self.time_slot} {self.subject}({'/'.join(self.teachers)})"
