"""授業の割り当てと制約違反を表す値オブジェクト"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .time_slot import TimeSlot, ClassReference


class SlotOrigin(Enum):
    """コマがどの段階で埋められたか"""
    FIXED = "fixed"
    CO_TEACHING = "co_teaching"
    PLACEMENT = "placement"
    FILL = "fill"


@dataclass(frozen=True)
class Assignment:
    """1コマ分の授業（教科と担当教員）

    teachers の先頭が主担当、残りが協力授業の教員です。
    """
    subject: str
    teachers: Tuple[str, ...]
    is_fixed: bool = False
    is_co_teaching: bool = False
    origin: SlotOrigin = SlotOrigin.PLACEMENT

    def __post_init__(self):
        object.__setattr__(self, 'teachers', tuple(self.teachers))
        if not self.subject:
            raise ValueError("教科が空の割り当ては作成できません")
        if not self.teachers:
            raise ValueError(f"{self.subject}に担当教員がいません")
        if len(set(self.teachers)) != len(self.teachers):
            raise ValueError(f"{self.subject}の担当教員が重複しています: {self.teachers}")

    @property
    def main_teacher(self) -> str:
        return self.teachers[0]

    @property
    def co_teachers(self) -> Tuple[str, ...]:
        return self.teachers[1:]

    def involves_teacher(self, teacher: str) -> bool:
        return teacher in self.teachers

    def __str__(self) -> str:
        return f"{self.subject}({'/'.join(self.teachers)})"


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ViolationKind(Enum):
    """検証で検出される違反の種類"""
    TEACHER_UNAVAILABLE = "teacher_unavailable"
    TEACHER_CLASS_HOURS_EXCEEDED = "teacher_class_hours_exceeded"
    TEACHER_FORBIDDEN_CLASS = "teacher_forbidden_class"
    TEACHER_TOTAL_HOURS_EXCEEDED = "teacher_total_hours_exceeded"
    TEACHER_DOUBLE_BOOKED = "teacher_double_booked"
    TEACHER_DAILY_HOURS_EXCEEDED = "teacher_daily_hours_exceeded"
    TEACHER_SAME_CLASS_DAILY_LIMIT = "teacher_same_class_daily_limit"
    CLASS_WEEKLY_HOURS_EXCEEDED = "class_weekly_hours_exceeded"
    CLASS_DAILY_HOURS_EXCEEDED = "class_daily_hours_exceeded"
    ZERO_HOURS_CLASS = "zero_hours_class"
    CO_TEACHING_SHORTFALL = "co_teaching_shortfall"
    CO_TEACHING_SOLO_HOURS = "co_teaching_solo_hours"
    CO_TEACHING_TOO_MANY_TEACHERS = "co_teaching_too_many_teachers"
    DAILY_SUBJECT_DUPLICATE = "daily_subject_duplicate"
    SUBJECT_CONCURRENCY_EXCEEDED = "subject_concurrency_exceeded"
    MUTUAL_EXCLUSION = "mutual_exclusion"
    BLOCK_PERIOD_UNPAIRED = "block_period_unpaired"


@dataclass(frozen=True)
class ConstraintViolation:
    """制約違反の記録"""
    kind: ViolationKind
    description: str
    severity: Severity = Severity.ERROR
    class_ref: Optional[ClassReference] = None
    time_slot: Optional[TimeSlot] = None
    teacher: Optional[str] = None
    subject: Optional[str] = None
    magnitude: int = 1

    @property
    def is_zero_hours(self) -> bool:
        return self.kind is ViolationKind.ZERO_HOURS_CLASS

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.description}"
