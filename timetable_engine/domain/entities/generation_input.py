"""時間割生成の入力データ"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..constraints.base import (
    BlockPeriodRequirement,
    ConstraintSet,
    CoTeachingRequirement,
    TeacherUnavailableTime,
    TeacherMaxDailyHours,
    TeacherWeeklyHoursLimit,
    ClassMaxDailyPeriods,
    ClassWeeklyHoursLimit,
    SubjectFixedOnly,
    SubjectConcurrencyLimit,
)
from ..exceptions import ConfigurationError
from ..value_objects.fixed_assignment import FixedAssignment
from ..value_objects.school_structure import SchoolStructure
from ..value_objects.subject_config import SubjectConfig
from ..value_objects.teacher import Teacher
from ..value_objects.time_slot import ClassReference


@dataclass(frozen=True)
class GenerationInput:
    """学校構成・教科・教員・制約・固定授業をまとめた不変の入力

    必須制約の TeacherUnavailableTime・TeacherMaxDailyHours・TeacherWeeklyHoursLimit は
    各教員の勤務不可時間と時数上限に反映されます。任意制約側のものは反映しません。
    """
    structure: SchoolStructure
    subjects: Tuple[SubjectConfig, ...]
    teachers: Tuple[Teacher, ...]
    constraints: ConstraintSet = field(default_factory=ConstraintSet)
    fixed_assignments: Tuple[FixedAssignment, ...] = ()
    class_weekly_hours: Dict[ClassReference, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'subjects', tuple(self.subjects))
        object.__setattr__(self, 'fixed_assignments', tuple(self.fixed_assignments))
        object.__setattr__(self, 'teachers', tuple(self._merge_teacher_constraints(self.teachers)))
        object.__setattr__(self, '_subjects_by_name', {s.name: s for s in self.subjects})
        object.__setattr__(self, '_teachers_by_name', {t.name: t for t in self.teachers})

    def _merge_teacher_constraints(self, teachers) -> List[Teacher]:
        unavailable: Dict[str, Set[Tuple[str, int]]] = {}
        for c in self.constraints.must_of_type(TeacherUnavailableTime):
            unavailable.setdefault(c.teacher, set()).add((c.day, c.period))

        daily_caps = self.constraints.must_of_type(TeacherMaxDailyHours)
        weekly_caps = self.constraints.must_of_type(TeacherWeeklyHoursLimit)

        merged = []
        for teacher in teachers:
            if teacher.name in unavailable:
                teacher = teacher.with_unavailable(unavailable[teacher.name])
            for cap in daily_caps:
                if cap.teacher is None or cap.teacher == teacher.name:
                    teacher = teacher.with_daily_cap(cap.max_hours)
            for cap in weekly_caps:
                if cap.teacher is None or cap.teacher == teacher.name:
                    teacher = teacher.with_weekly_cap(cap.max_hours)
            merged.append(teacher)
        return merged

    # ---- 検証 ----

    def validate(self) -> None:
        """生成を開始できる入力か検証する

        Raises:
            ConfigurationError: 入力に致命的な不備がある場合
        """
        if self.structure.grades < 1 or sum(self.structure.classes_per_grade) == 0:
            raise ConfigurationError("学年またはクラスがありません", config_key="base")
        if self.structure.total_periods == 0:
            raise ConfigurationError("授業のある曜日がありません", config_key="base.periods_per_day")
        if not self.subjects:
            raise ConfigurationError("教科が設定されていません", config_key="subjects")
        if not self.teachers:
            raise ConfigurationError("教員が設定されていません", config_key="teachers")

        duplicated = _duplicates(s.name for s in self.subjects)
        if duplicated:
            raise ConfigurationError(f"教科名が重複しています: {', '.join(duplicated)}", config_key="subjects")
        duplicated = _duplicates(t.name for t in self.teachers)
        if duplicated:
            raise ConfigurationError(f"教員名が重複しています: {', '.join(duplicated)}", config_key="teachers")

        for c in self.constraints.of_type(CoTeachingRequirement):
            if self.teacher(c.main_teacher) is None:
                raise ConfigurationError(
                    f"協力授業の主担当教員が見つかりません: {c.main_teacher}",
                    config_key="constraints"
                )

        if not self.active_classes():
            raise ConfigurationError(
                "週時数が0でない生成対象のクラスがありません",
                config_key="class_weekly_hours"
            )

    # ---- 参照 ----

    def subject(self, name: str) -> Optional[SubjectConfig]:
        return self._subjects_by_name.get(name)

    def teacher(self, name: str) -> Optional[Teacher]:
        return self._teachers_by_name.get(name)

    def teachers_for_subject(self, name: str) -> List[Teacher]:
        return [t for t in self.teachers if t.teaches(name)]

    def eligible_teachers(self, class_ref: ClassReference, subject: str,
                          allow_secondary: bool = True) -> List[Teacher]:
        """教科をそのクラスで担当できる教員

        クラス別時数が設定された教員を優先し、該当者がいない場合に限り
        未設定の教員（時数0の教員は除く）を候補にします。
        """
        teaching = self.teachers_for_subject(subject)
        primary = [t for t in teaching if t.has_allocation(class_ref)]
        if primary or not allow_secondary:
            return primary
        return [t for t in teaching if t.class_cap(class_ref) is None]

    # ---- クラスの予算 ----

    def is_zero_hours_class(self, class_ref: ClassReference) -> bool:
        return self.class_weekly_hours.get(class_ref) == 0

    def active_classes(self) -> List[ClassReference]:
        """生成対象のクラス（週時数0のクラスを除く）"""
        return [c for c in self.structure.class_refs() if not self.is_zero_hours_class(c)]

    def class_weekly_budget(self, class_ref: ClassReference) -> int:
        """クラスの週当たり授業数の上限"""
        budget = self.structure.total_periods
        override = self.class_weekly_hours.get(class_ref)
        if override is not None:
            budget = min(budget, override)
        for c in self.constraints.must_of_type(ClassWeeklyHoursLimit):
            if c.class_ref is None or c.class_ref == class_ref:
                budget = min(budget, c.max_hours)
        return budget

    def class_daily_budget(self, class_ref: ClassReference, day: str) -> int:
        """クラスのその曜日の授業数の上限"""
        budget = self.structure.periods_on(day)
        for c in self.constraints.must_of_type(ClassMaxDailyPeriods):
            if c.class_ref is None or c.class_ref == class_ref:
                budget = min(budget, c.max_periods)
        return budget

    # ---- 教科の属性 ----

    def fixed_only_subjects(self) -> Set[str]:
        return {s for c in self.constraints.must_of_type(SubjectFixedOnly) for s in c.subjects}

    def block_period_teachers(self, must_only: bool = True) -> Set[str]:
        """連続2コマで授業する教員"""
        if must_only:
            return {c.teacher for c in self.constraints.must_of_type(BlockPeriodRequirement)}
        return {c.teacher for c in self.constraints.of_type(BlockPeriodRequirement)}

    def concurrency_limits(self) -> Dict[str, int]:
        """教科ごとの同時実施クラス数の上限"""
        limits: Dict[str, int] = {}
        for subject in self.subjects:
            if subject.concurrency_limit is not None:
                limits[subject.name] = subject.concurrency_limit
        for c in self.constraints.must_of_type(SubjectConcurrencyLimit):
            limits[c.subject] = min(limits.get(c.subject, c.max_classes), c.max_classes)
        return limits

    # ---- 協力授業 ----

    def co_teaching_requirements(self) -> List[CoTeachingRequirement]:
        return self.constraints.must_of_type(CoTeachingRequirement)

    def co_teaching_main_teachers(self) -> Set[str]:
        return {c.main_teacher for c in self.co_teaching_requirements()}

    def co_teaching_subject(self, requirement: CoTeachingRequirement) -> str:
        """協力授業の教科（指定が無ければ主担当の教科から決める）"""
        if requirement.subject:
            return requirement.subject
        main = self.teacher(requirement.main_teacher)
        taught = list(main.subjects) if main is not None else []
        for name in taught:
            config = self.subject(name)
            if config is not None and config.requires_co_teaching:
                return name
        if taught:
            return taught[0]
        return requirement.main_teacher

    def co_teaching_target_hours(self, requirement: CoTeachingRequirement) -> int:
        """協力授業の目標時数"""
        if requirement.weekly_hours is not None:
            return requirement.weekly_hours
        main = self.teacher(requirement.main_teacher)
        if main is None:
            return 0
        if main.allocated_hours > 0:
            return main.allocated_hours
        return main.max_weekly_hours


def _duplicates(names) -> List[str]:
    seen: Set[str] = set()
    duplicated: List[str] = []
    for name in names:
        if name in seen and name not in duplicated:
            duplicated.append(name)
        seen.add(name)
    return duplicated
