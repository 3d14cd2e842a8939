"""制約システムの基盤クラス

設定ファイルの制約は `type` タグごとに下記のデータクラスへ変換されます。
判定ロジックは持たず、配置可否の判定は AvailabilityEvaluator、
生成後の検証は ScheduleValidator が担当します。
"""
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Type, TypeVar

from ..constants import ALL_SUBJECTS, DEFAULT_MAX_TEACHERS_PER_SLOT
from ..value_objects.time_slot import ClassReference


class ConstraintType(Enum):
    """制約のタイプ"""
    HARD = "must"        # 絶対に守る必要がある制約
    SOFT = "optional"    # 可能な限り守りたい制約


class ConstraintKind(Enum):
    """設定ファイルで使える制約タグ"""
    # 判定に使う制約
    NO_DUPLICATE_TEACHERS = "no_duplicate_teachers"
    TEACHER_SAME_CLASS_DAILY_LIMIT = "teacher_same_class_daily_limit"
    CLASS_DAILY_SUBJECT_ONCE = "class_daily_subject_once"
    DAILY_SUBJECT_ONCE = "daily_subject_once"
    SPECIFIC_TEACHER_CO_TEACHING = "specific_teacher_co_teaching"
    CO_TEACHING_REQUIREMENT = "co_teaching_requirement"
    TEACHER_UNAVAILABLE_TIME = "teacher_unavailable_time"
    TEACHER_MAX_DAILY_HOURS = "teacher_max_daily_hours"
    TEACHER_WEEKLY_HOURS_LIMIT = "teacher_weekly_hours_limit"
    CLASS_MAX_DAILY_PERIODS = "class_max_daily_periods"
    CLASS_MAX_PERIODS = "class_max_periods"
    CLASS_WEEKLY_HOURS_LIMIT = "class_weekly_hours_limit"
    SUBJECT_FIXED_ONLY = "subject_fixed_only"
    TEACHER_MUTUAL_EXCLUSION = "teacher_mutual_exclusion"
    SPECIAL_ROOM_CAPACITY = "special_room_capacity"
    SPACE_CONSTRAINT = "space_constraint"
    PE_CONCURRENT_LIMIT = "pe_concurrent_limit"
    BLOCK_PERIOD_REQUIREMENT = "block_period_requirement"
    # 配置の優先度にのみ使う制約
    AFTERNOON_PRIORITY_SUBJECTS = "afternoon_priority_subjects"
    MORNING_PRIORITY_SUBJECTS = "morning_priority_subjects"
    TEACHER_PREFERRED_TIME = "teacher_preferred_time"
    AVOID_CONSECUTIVE_SUBJECTS = "avoid_consecutive_subjects"
    CLASS_CONSECUTIVE_SUBJECT_RESTRICTION = "class_consecutive_subject_restriction"
    CLASS_DAILY_DISTRIBUTION = "class_daily_distribution"
    CLASS_DAILY_SUBJECT_LIMIT = "class_daily_subject_limit"
    CLASSROOM_REQUIREMENT = "classroom_requirement"
    CONSECUTIVE_TEACHING_LIMIT = "consecutive_teaching_limit"
    FIRST_LAST_PERIOD_LIMIT = "first_last_period_limit"
    FOURTH_PERIOD_DISTRIBUTION = "fourth_period_distribution"
    FREE_PERIOD = "free_period"
    MAX_DAILY_SUBJECT_HOURS = "max_daily_subject_hours"
    NO_DUPLICATE_CLASSES = "no_duplicate_classes"
    SIMILAR_SUBJECT_CONFLICT = "similar_subject_conflict"
    SPECIAL_ROOM_AVAILABILITY = "special_room_availability"
    SPECIAL_ROOM_CLASS_LIMIT = "special_room_class_limit"
    SPECIAL_ROOM_REQUIREMENT = "special_room_requirement"
    SUBJECT_BLOCKED_PERIOD = "subject_blocked_period"
    SUBJECT_CONSECUTIVE_PERIODS = "subject_consecutive_periods"
    SUBJECT_EXCLUSIVE_TIME = "subject_exclusive_time"
    SUBJECT_FIXED_TIME = "subject_fixed_time"
    SUBJECT_TEACHER_REQUIREMENT = "subject_teacher_requirement"
    SUBJECT_WEEKLY_HOURS = "subject_weekly_hours"
    TEACHER_CLASS_RESTRICTION = "teacher_class_restriction"
    TEACHER_CONSECUTIVE_RESTRICTION = "teacher_consecutive_restriction"
    TEACHER_SUBJECT_CONFLICT = "teacher_subject_conflict"

    @classmethod
    def from_tag(cls, tag: str) -> Optional['ConstraintKind']:
        for member in cls:
            if member.value == tag:
                return member
        return None


class Constraint(ABC):
    """制約の基底クラス"""
    kind: ConstraintKind
    description: str

    def __str__(self) -> str:
        return self.description or self.kind.value


@dataclass(frozen=True)
class NoDuplicateTeachers(Constraint):
    """教員の同時間帯重複を禁止"""
    kind: ConstraintKind = ConstraintKind.NO_DUPLICATE_TEACHERS
    description: str = ""


@dataclass(frozen=True)
class TeacherSameClassDailyLimit(Constraint):
    """同じ教員が同じクラスを1日に担当する回数の上限（teacher=Noneは全教員）"""
    teacher: Optional[str] = None
    max_per_day: int = 1
    kind: ConstraintKind = ConstraintKind.TEACHER_SAME_CLASS_DAILY_LIMIT
    description: str = ""


@dataclass(frozen=True)
class ClassDailySubjectOnce(Constraint):
    """同じ教科を1日に1回まで（subject="all"は全教科）"""
    subject: str = ALL_SUBJECTS
    kind: ConstraintKind = ConstraintKind.CLASS_DAILY_SUBJECT_ONCE
    description: str = ""

    def applies_to(self, subject: str) -> bool:
        return self.subject == ALL_SUBJECTS or self.subject == subject


@dataclass(frozen=True)
class CoTeachingRequirement(Constraint):
    """主担当と協力教員による協力授業の要求"""
    main_teacher: str = ""
    co_teachers: Tuple[str, ...] = ()
    subject: Optional[str] = None
    weekly_hours: Optional[int] = None
    max_teachers_per_slot: int = DEFAULT_MAX_TEACHERS_PER_SLOT
    kind: ConstraintKind = ConstraintKind.CO_TEACHING_REQUIREMENT
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'co_teachers', tuple(self.co_teachers))
        if not self.main_teacher:
            raise ValueError("協力授業の主担当教員が指定されていません")
        if self.max_teachers_per_slot < 2:
            raise ValueError(f"協力授業の教員数上限は2以上です: {self.max_teachers_per_slot}")
        if self.weekly_hours is not None and self.weekly_hours < 0:
            raise ValueError(f"協力授業の週時数が負です: {self.weekly_hours}")

    @property
    def max_co_teachers(self) -> int:
        return self.max_teachers_per_slot - 1


@dataclass(frozen=True)
class TeacherUnavailableTime(Constraint):
    """教員の勤務不可時間"""
    teacher: str = ""
    day: str = ""
    period: int = 0
    kind: ConstraintKind = ConstraintKind.TEACHER_UNAVAILABLE_TIME
    description: str = ""


@dataclass(frozen=True)
class TeacherMaxDailyHours(Constraint):
    """教員の1日の担当時数上限（teacher=Noneは全教員）"""
    max_hours: int = 0
    teacher: Optional[str] = None
    kind: ConstraintKind = ConstraintKind.TEACHER_MAX_DAILY_HOURS
    description: str = ""


@dataclass(frozen=True)
class TeacherWeeklyHoursLimit(Constraint):
    """教員の週当たり担当時数上限（teacher=Noneは全教員）"""
    max_hours: int = 0
    teacher: Optional[str] = None
    kind: ConstraintKind = ConstraintKind.TEACHER_WEEKLY_HOURS_LIMIT
    description: str = ""

    def __post_init__(self):
        if self.max_hours < 0:
            raise ValueError(f"週当たり時数上限が負です: {self.max_hours}")


@dataclass(frozen=True)
class ClassMaxDailyPeriods(Constraint):
    """クラスの1日の授業数上限（class_ref=Noneは全クラス）"""
    max_periods: int = 0
    class_ref: Optional[ClassReference] = None
    kind: ConstraintKind = ConstraintKind.CLASS_MAX_DAILY_PERIODS
    description: str = ""


@dataclass(frozen=True)
class ClassWeeklyHoursLimit(Constraint):
    """クラスの週当たり授業数上限（class_ref=Noneは全クラス）"""
    max_hours: int = 0
    class_ref: Optional[ClassReference] = None
    kind: ConstraintKind = ConstraintKind.CLASS_WEEKLY_HOURS_LIMIT
    description: str = ""


@dataclass(frozen=True)
class SubjectFixedOnly(Constraint):
    """固定授業でのみ配置する教科"""
    subjects: Tuple[str, ...] = ()
    kind: ConstraintKind = ConstraintKind.SUBJECT_FIXED_ONLY
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'subjects', tuple(self.subjects))


@dataclass(frozen=True)
class TeacherMutualExclusion(Constraint):
    """同じ時間帯に授業できない教員の組"""
    teachers: Tuple[str, ...] = ()
    kind: ConstraintKind = ConstraintKind.TEACHER_MUTUAL_EXCLUSION
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'teachers', tuple(self.teachers))
        if len(self.teachers) < 2:
            raise ValueError("同時授業禁止の教員は2名以上指定してください")


@dataclass(frozen=True)
class SubjectConcurrencyLimit(Constraint):
    """同一時間帯に同じ教科を実施できるクラス数の上限"""
    subject: str = ""
    max_classes: int = 1
    kind: ConstraintKind = ConstraintKind.SPECIAL_ROOM_CAPACITY
    description: str = ""

    def __post_init__(self):
        if self.max_classes < 1:
            raise ValueError(f"{self.subject}の同時実施上限は1以上です: {self.max_classes}")


@dataclass(frozen=True)
class BlockPeriodRequirement(Constraint):
    """教員の授業を同じクラス・同じ曜日の連続2コマで行う（ブロック授業）"""
    teacher: str = ""
    kind: ConstraintKind = ConstraintKind.BLOCK_PERIOD_REQUIREMENT
    description: str = ""


@dataclass(frozen=True)
class PreferenceConstraint(Constraint):
    """配置の優先度にのみ影響する制約（配置を禁止しない）"""
    kind: ConstraintKind = ConstraintKind.TEACHER_PREFERRED_TIME
    subjects: Tuple[str, ...] = ()
    teacher: Optional[str] = None
    day: Optional[str] = None
    period: Optional[int] = None
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'subjects', tuple(self.subjects))


C = TypeVar('C', bound=Constraint)


@dataclass(frozen=True)
class ConstraintSet:
    """必須制約(must)と任意制約(optional)の組"""
    must: Tuple[Constraint, ...] = ()
    optional: Tuple[Constraint, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'must', tuple(self.must))
        object.__setattr__(self, 'optional', tuple(self.optional))

    def __iter__(self) -> Iterator[Constraint]:
        yield from self.must
        yield from self.optional

    def __len__(self) -> int:
        return len(self.must) + len(self.optional)

    def type_of(self, constraint: Constraint) -> ConstraintType:
        return ConstraintType.HARD if constraint in self.must else ConstraintType.SOFT

    def of_type(self, constraint_class: Type[C]) -> List[C]:
        """必須・任意を問わず指定クラスの制約を返す"""
        return [c for c in self if isinstance(c, constraint_class)]

    def must_of_type(self, constraint_class: Type[C]) -> List[C]:
        return [c for c in self.must if isinstance(c, constraint_class)]

    def any_of_type(self, constraint_class: Type[Constraint], must_only: bool = False) -> bool:
        source = self.must if must_only else tuple(self)
        return any(isinstance(c, constraint_class) for c in source)
