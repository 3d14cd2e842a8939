"""配置可否の判定サービス

1コマに (教員, 教科) を置けるかを、安い判定から順に短絡評価します。
生成中の全フェーズ（協力授業・通常配置・空きコマ補充）がこの判定を共有します。
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..constants import ALL_SUBJECTS, PREFERRED_CENTER_PERIOD
from ..constraints.base import (
    ClassDailySubjectOnce,
    ConstraintKind,
    NoDuplicateTeachers,
    PreferenceConstraint,
    TeacherMutualExclusion,
    TeacherSameClassDailyLimit,
    TeacherUnavailableTime,
)
from ..entities.generation_input import GenerationInput
from ..entities.schedule import Schedule
from ..value_objects.generation_options import GenerationOptions
from ..value_objects.time_slot import TimeSlot, ClassReference


@dataclass(frozen=True)
class AvailabilityResult:
    """判定結果（不可の場合は理由付き）"""
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOWED = AvailabilityResult(True)


class AvailabilityEvaluator:
    """配置可否の判定器

    判定順:
        1. コマが空いているか
        2. 教員の勤務不可時間
        3. 教員のクラス別時数（0なら禁止、上限到達なら不可）
        4. クラスの週当たり授業数
        5. クラスのその曜日の授業数
        6. 教員の週当たり時数上限
        7. 教員の1日の時数上限
        8. 教科の週時数（目標到達なら不可、協力授業には適用しない）
        9. 教員の同時間帯重複
        10. 同時授業禁止の教員
        11. 同じ教員が同じクラスを1日に担当する回数
        12. 同じ教科を1日1回まで
        13. 教科の同時実施クラス数
        14. 連続2コマの教員は前後に同じ教員の授業か空きコマがあるか

    任意制約の勤務不可時間は禁止せず、時間枠の優先度を下げるだけです。
    """

    def __init__(self, generation_input: GenerationInput, options: Optional[GenerationOptions] = None):
        self.input = generation_input
        self.options = options or GenerationOptions()
        constraints = generation_input.constraints

        self._check_teacher_conflicts = (
            self.options.enforce_teacher_conflicts
            or constraints.any_of_type(NoDuplicateTeachers, must_only=True)
        )

        self._same_class_daily_limits: Dict[Optional[str], int] = {}
        for c in constraints.must_of_type(TeacherSameClassDailyLimit):
            current = self._same_class_daily_limits.get(c.teacher)
            self._same_class_daily_limits[c.teacher] = (
                c.max_per_day if current is None else min(current, c.max_per_day)
            )

        once = constraints.of_type(ClassDailySubjectOnce)
        self._daily_once_all = any(c.subject == ALL_SUBJECTS for c in once)
        self._daily_once_subjects: Set[str] = {c.subject for c in once}

        self._exclusion_partners: Dict[str, Set[str]] = {}
        for c in constraints.must_of_type(TeacherMutualExclusion):
            for teacher in c.teachers:
                self._exclusion_partners.setdefault(teacher, set()).update(
                    t for t in c.teachers if t != teacher
                )

        self._concurrency_limits = generation_input.concurrency_limits()
        self._preferences = constraints.of_type(PreferenceConstraint)
        self._block_teachers = generation_input.block_period_teachers()

        self._soft_unavailable: Dict[str, Set[Tuple[str, int]]] = {}
        for c in constraints.optional:
            if isinstance(c, TeacherUnavailableTime):
                self._soft_unavailable.setdefault(c.teacher, set()).add((c.day, c.period))

    # ---- 判定 ----

    def check(self, schedule: Schedule, class_ref: ClassReference, time_slot: TimeSlot,
              teacher_name: str, subject: str, co_teaching: bool = False,
              allow_unallocated: Optional[bool] = None) -> AvailabilityResult:
        """(教員, 教科) をそのコマに置けるか判定する

        co_teaching=True の場合、教員重複の判定は設定に関わらず必ず行います。
        allow_unallocated はクラス別時数が未設定の教員を許すかどうかで、
        None なら GenerationOptions.allow_secondary_teachers に従います。
        """
        if not schedule.is_empty(time_slot, class_ref):
            return AvailabilityResult(False, "slot_occupied")

        teacher = self.input.teacher(teacher_name)
        if teacher is None:
            return AvailabilityResult(False, "unknown_teacher")
        if teacher.is_unavailable(time_slot.day, time_slot.period):
            return AvailabilityResult(False, "teacher_unavailable")

        cap = teacher.class_cap(class_ref)
        if cap is None:
            if allow_unallocated is None:
                allow_unallocated = self.options.allow_secondary_teachers
            if not allow_unallocated:
                return AvailabilityResult(False, "no_class_allocation")
        elif cap == 0:
            return AvailabilityResult(False, "teacher_forbidden_class")
        elif schedule.teacher_hours(teacher_name, class_ref) >= cap:
            return AvailabilityResult(False, "class_hours_reached")

        if schedule.class_hours(class_ref) >= self.input.class_weekly_budget(class_ref):
            return AvailabilityResult(False, "class_weekly_hours_reached")
        if schedule.class_daily_hours(class_ref, time_slot.day) >= self.input.class_daily_budget(class_ref, time_slot.day):
            return AvailabilityResult(False, "class_daily_hours_reached")

        if schedule.teacher_hours(teacher_name) >= teacher.max_weekly_hours:
            return AvailabilityResult(False, "teacher_weekly_hours_reached")

        if teacher.max_daily_hours is not None:
            if schedule.teacher_daily_hours(teacher_name, time_slot.day) >= teacher.max_daily_hours:
                return AvailabilityResult(False, "teacher_daily_hours_reached")

        # 協力授業の時数は協力授業の目標時数と主担当のクラス別時数で決まる
        config = None if co_teaching else self.input.subject(subject)
        if config is not None and schedule.subject_hours(class_ref, subject) >= config.weekly_hours:
            return AvailabilityResult(False, "subject_hours_reached")

        if (self._check_teacher_conflicts or co_teaching) and schedule.is_teacher_busy(teacher_name, time_slot):
            return AvailabilityResult(False, "teacher_conflict")

        for partner in self._exclusion_partners.get(teacher_name, ()):
            if schedule.is_teacher_busy(partner, time_slot):
                return AvailabilityResult(False, "mutual_exclusion")

        limit = self._same_class_daily_limit(teacher_name)
        if limit is not None:
            if schedule.teacher_hours_in_class_on_day(teacher_name, class_ref, time_slot.day) >= limit:
                return AvailabilityResult(False, "teacher_same_class_daily_limit")

        if self._daily_once_all or subject in self._daily_once_subjects:
            if schedule.daily_subject_count(class_ref, time_slot.day, subject) > 0:
                return AvailabilityResult(False, "daily_subject_once")

        concurrency = self._concurrency_limits.get(subject)
        if concurrency is not None and schedule.classes_with_subject_at(time_slot, subject) >= concurrency:
            return AvailabilityResult(False, "subject_concurrency")

        if teacher_name in self._block_teachers and not self._block_pair_possible(
                schedule, class_ref, time_slot, teacher_name):
            return AvailabilityResult(False, "block_period_requirement")

        return ALLOWED

    def is_legal(self, schedule: Schedule, class_ref: ClassReference, time_slot: TimeSlot,
                 teacher_name: str, subject: str, co_teaching: bool = False,
                 allow_unallocated: Optional[bool] = None) -> bool:
        return self.check(schedule, class_ref, time_slot, teacher_name, subject,
                          co_teaching, allow_unallocated).allowed

    def legal_slots(self, schedule: Schedule, class_ref: ClassReference, teacher_name: str,
                    subject: str, co_teaching: bool = False,
                    allow_unallocated: Optional[bool] = None) -> List[TimeSlot]:
        """配置可能な時間枠を優先順に列挙する

        午前を優先し、次に3校時からの距離、曜日順で並べます。
        """
        slots = [
            slot for slot in schedule.time_slots()
            if self.is_legal(schedule, class_ref, slot, teacher_name, subject, co_teaching, allow_unallocated)
        ]
        slots.sort(key=lambda slot: self.slot_preference(slot, teacher_name, subject))
        return slots

    def slot_preference(self, time_slot: TimeSlot, teacher_name: str, subject: str) -> Tuple[int, int, int, int]:
        """時間枠の優先度キー（小さいほど優先）"""
        return (
            self._preference_rank(time_slot, teacher_name, subject),
            0 if time_slot.is_morning() else 1,
            abs(time_slot.period - PREFERRED_CENTER_PERIOD),
            time_slot.day_index,
        )

    def _preference_rank(self, time_slot: TimeSlot, teacher_name: str, subject: str) -> int:
        rank = 0
        if (time_slot.day, time_slot.period) in self._soft_unavailable.get(teacher_name, ()):
            rank += 1
        for pref in self._preferences:
            if pref.subjects and subject not in pref.subjects:
                continue
            if pref.teacher is not None and pref.teacher != teacher_name:
                continue
            if pref.kind is ConstraintKind.MORNING_PRIORITY_SUBJECTS:
                rank += 0 if time_slot.is_morning() else 1
            elif pref.kind is ConstraintKind.AFTERNOON_PRIORITY_SUBJECTS:
                rank += 1 if time_slot.is_morning() else 0
            elif pref.kind is ConstraintKind.TEACHER_PREFERRED_TIME:
                matches_day = pref.day is None or pref.day == time_slot.day
                matches_period = pref.period is None or pref.period == time_slot.period
                rank += 0 if matches_day and matches_period else 1
        return rank

    def _same_class_daily_limit(self, teacher_name: str) -> Optional[int]:
        limits = [
            limit for limit in (self._same_class_daily_limits.get(teacher_name),
                                self._same_class_daily_limits.get(None))
            if limit is not None
        ]
        return min(limits) if limits else None

    def _block_pair_possible(self, schedule: Schedule, class_ref: ClassReference, time_slot: TimeSlot,
                             teacher_name: str) -> bool:
        """前後の校時に同じ教員の授業があるか、相方を置ける空きコマがあるか"""
        if schedule.has_adjacent_lesson(class_ref, time_slot, teacher_name):
            return True
        return any(schedule.is_empty(neighbor, class_ref) for neighbor in schedule.adjacent_slots(time_slot))
