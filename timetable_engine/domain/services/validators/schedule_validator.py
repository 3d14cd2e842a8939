"""時間割の検証サービス

生成済み（途中でもよい）の時間割を走査し、すべての制約違反を列挙します。
時間割は変更せず、違反は採点と診断にのみ使われます。
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from ....shared.mixins.logging_mixin import LoggingMixin
from ...constants import ERROR_MESSAGES
from ...constraints.base import (
    ClassDailySubjectOnce,
    ConstraintType,
    TeacherMutualExclusion,
    TeacherSameClassDailyLimit,
)
from ...entities.generation_input import GenerationInput
from ...entities.schedule import Schedule
from ...value_objects.assignment import ConstraintViolation, Severity, ViolationKind


@dataclass
class ValidationReport:
    """検証結果"""
    violations: List[ConstraintViolation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    @property
    def zero_hours_count(self) -> int:
        return sum(1 for v in self.violations if v.is_zero_hours)

    @property
    def ordinary_count(self) -> int:
        return self.violation_count - self.zero_hours_count

    def count_by_kind(self) -> Dict[ViolationKind, int]:
        return dict(Counter(v.kind for v in self.violations))

    def of_kind(self, kind: ViolationKind) -> List[ConstraintViolation]:
        return [v for v in self.violations if v.kind is kind]

    def __bool__(self) -> bool:
        return self.is_valid


class ScheduleValidator(LoggingMixin):
    """時間割の制約違反を検出する"""

    def __init__(self, generation_input: GenerationInput):
        self.input = generation_input

    def validate(self, schedule: Schedule) -> ValidationReport:
        violations: List[ConstraintViolation] = []
        violations.extend(self._check_teachers(schedule))
        violations.extend(self._check_classes(schedule))
        violations.extend(self._check_co_teaching(schedule))
        violations.extend(self._check_daily_subjects(schedule))
        violations.extend(self._check_subject_concurrency(schedule))
        violations.extend(self._check_mutual_exclusion(schedule))
        violations.extend(self._check_block_periods(schedule))

        report = ValidationReport(violations)
        self._log_report(report)
        return report

    # ---- 教員 ----

    def _check_teachers(self, schedule: Schedule) -> List[ConstraintViolation]:
        violations = []
        same_class_limits = self.input.constraints.must_of_type(TeacherSameClassDailyLimit)

        for teacher in self.input.teachers:
            name = teacher.name
            busy = schedule.teacher_busy_slots(name)

            for time_slot, classes in sorted(busy.items(), key=lambda item: item[0].sort_key):
                if teacher.is_unavailable(time_slot.day, time_slot.period):
                    for class_ref in classes:
                        violations.append(ConstraintViolation(
                            kind=ViolationKind.TEACHER_UNAVAILABLE,
                            description=ERROR_MESSAGES['TEACHER_UNAVAILABLE'].format(
                                teacher=name, time_slot=time_slot),
                            class_ref=class_ref, time_slot=time_slot, teacher=name,
                        ))
                if len(classes) > 1:
                    violations.append(ConstraintViolation(
                        kind=ViolationKind.TEACHER_DOUBLE_BOOKED,
                        description=ERROR_MESSAGES['TEACHER_CONFLICT'].format(
                            teacher=name, time_slot=time_slot, count=len(classes)),
                        time_slot=time_slot, teacher=name, magnitude=len(classes) - 1,
                    ))

            for class_ref, hours in sorted(schedule.teacher_class_hours(name).items()):
                cap = teacher.class_cap(class_ref)
                if cap == 0 and hours > 0:
                    violations.append(ConstraintViolation(
                        kind=ViolationKind.TEACHER_FORBIDDEN_CLASS,
                        description=ERROR_MESSAGES['TEACHER_FORBIDDEN_CLASS'].format(
                            teacher=name, class_ref=class_ref, hours=hours),
                        class_ref=class_ref, teacher=name, magnitude=hours,
                    ))
                elif cap is not None and hours > cap:
                    violations.append(ConstraintViolation(
                        kind=ViolationKind.TEACHER_CLASS_HOURS_EXCEEDED,
                        description=ERROR_MESSAGES['CLASS_HOURS_EXCEEDED'].format(
                            teacher=name, class_ref=class_ref, hours=hours, cap=cap),
                        class_ref=class_ref, teacher=name, magnitude=hours - cap,
                    ))

            total = schedule.teacher_hours(name)
            if total > teacher.max_weekly_hours:
                violations.append(ConstraintViolation(
                    kind=ViolationKind.TEACHER_TOTAL_HOURS_EXCEEDED,
                    description=ERROR_MESSAGES['TEACHER_TOTAL_EXCEEDED'].format(
                        teacher=name, hours=total, cap=teacher.max_weekly_hours),
                    teacher=name, magnitude=total - teacher.max_weekly_hours,
                ))

            if teacher.max_daily_hours is not None:
                for day in schedule.periods_per_day:
                    hours = schedule.teacher_daily_hours(name, day)
                    if hours > teacher.max_daily_hours:
                        violations.append(ConstraintViolation(
                            kind=ViolationKind.TEACHER_DAILY_HOURS_EXCEEDED,
                            description=ERROR_MESSAGES['TEACHER_DAILY_EXCEEDED'].format(
                                teacher=name, day=day, hours=hours, cap=teacher.max_daily_hours),
                            teacher=name, magnitude=hours - teacher.max_daily_hours,
                        ))

            for limit in same_class_limits:
                if limit.teacher is not None and limit.teacher != name:
                    continue
                for class_ref in schedule.teacher_class_hours(name):
                    for day in schedule.periods_per_day:
                        hours = schedule.teacher_hours_in_class_on_day(name, class_ref, day)
                        if hours > limit.max_per_day:
                            violations.append(ConstraintViolation(
                                kind=ViolationKind.TEACHER_SAME_CLASS_DAILY_LIMIT,
                                description=ERROR_MESSAGES['TEACHER_SAME_CLASS_DAILY'].format(
                                    teacher=name, day=day, class_ref=class_ref,
                                    hours=hours, cap=limit.max_per_day),
                                class_ref=class_ref, teacher=name, magnitude=hours - limit.max_per_day,
                            ))
        return violations

    # ---- クラス ----

    def _check_classes(self, schedule: Schedule) -> List[ConstraintViolation]:
        violations = []
        for class_ref in schedule.classes:
            hours = schedule.class_hours(class_ref)

            if self.input.is_zero_hours_class(class_ref):
                if hours > 0:
                    violations.append(ConstraintViolation(
                        kind=ViolationKind.ZERO_HOURS_CLASS,
                        description=ERROR_MESSAGES['ZERO_HOURS_CLASS'].format(
                            class_ref=class_ref, hours=hours),
                        severity=Severity.CRITICAL, class_ref=class_ref, magnitude=hours,
                    ))
                continue

            budget = self.input.class_weekly_budget(class_ref)
            if hours > budget:
                violations.append(ConstraintViolation(
                    kind=ViolationKind.CLASS_WEEKLY_HOURS_EXCEEDED,
                    description=ERROR_MESSAGES['CLASS_WEEKLY_EXCEEDED'].format(
                        class_ref=class_ref, hours=hours, cap=budget),
                    class_ref=class_ref, magnitude=hours - budget,
                ))

            for day in schedule.periods_per_day:
                daily = schedule.class_daily_hours(class_ref, day)
                daily_budget = self.input.class_daily_budget(class_ref, day)
                if daily > daily_budget:
                    violations.append(ConstraintViolation(
                        kind=ViolationKind.CLASS_DAILY_HOURS_EXCEEDED,
                        description=ERROR_MESSAGES['CLASS_DAILY_EXCEEDED'].format(
                            class_ref=class_ref, day=day, hours=daily, cap=daily_budget),
                        class_ref=class_ref, magnitude=daily - daily_budget,
                    ))
        return violations

    # ---- 協力授業 ----

    def _check_co_teaching(self, schedule: Schedule) -> List[ConstraintViolation]:
        violations = []
        for requirement in self.input.co_teaching_requirements():
            main = requirement.main_teacher
            subject = self.input.co_teaching_subject(requirement)
            target = self.input.co_teaching_target_hours(requirement)

            co_taught = 0
            solo = 0
            for class_ref, time_slot, assignment in schedule.iter_assignments():
                if not assignment.involves_teacher(main):
                    continue
                if len(assignment.teachers) > 1:
                    co_taught += 1
                    if len(assignment.teachers) > requirement.max_teachers_per_slot:
                        violations.append(ConstraintViolation(
                            kind=ViolationKind.CO_TEACHING_TOO_MANY_TEACHERS,
                            description=ERROR_MESSAGES['CO_TEACHING_TOO_MANY'].format(
                                class_ref=class_ref, time_slot=time_slot,
                                count=len(assignment.teachers), cap=requirement.max_teachers_per_slot),
                            class_ref=class_ref, time_slot=time_slot, teacher=main,
                            subject=assignment.subject,
                            magnitude=len(assignment.teachers) - requirement.max_teachers_per_slot,
                        ))
                elif assignment.subject == subject:
                    solo += 1

            if co_taught < target:
                violations.append(ConstraintViolation(
                    kind=ViolationKind.CO_TEACHING_SHORTFALL,
                    description=ERROR_MESSAGES['CO_TEACHING_SHORTFALL'].format(
                        teacher=main, hours=co_taught, target=target),
                    teacher=main, subject=subject, magnitude=target - co_taught,
                ))
            if solo > 0:
                violations.append(ConstraintViolation(
                    kind=ViolationKind.CO_TEACHING_SOLO_HOURS,
                    description=ERROR_MESSAGES['CO_TEACHING_SOLO'].format(
                        teacher=main, subject=subject, hours=solo),
                    teacher=main, subject=subject, magnitude=solo,
                ))
        return violations

    # ---- 教科 ----

    def _check_daily_subjects(self, schedule: Schedule) -> List[ConstraintViolation]:
        rules = self.input.constraints.of_type(ClassDailySubjectOnce)
        if not rules:
            return []

        violations = []
        for (class_ref, day), counts in sorted(schedule.daily_subject_counts().items()):
            for subject, count in sorted(counts.items()):
                if count <= 1:
                    continue
                matching = [r for r in rules if r.applies_to(subject)]
                if not matching:
                    continue
                is_hard = any(self.input.constraints.type_of(r) is ConstraintType.HARD for r in matching)
                violations.append(ConstraintViolation(
                    kind=ViolationKind.DAILY_SUBJECT_DUPLICATE,
                    description=ERROR_MESSAGES['DAILY_SUBJECT_DUPLICATE'].format(
                        class_ref=class_ref, day=day, subject=subject, count=count),
                    severity=Severity.ERROR if is_hard else Severity.WARNING,
                    class_ref=class_ref, subject=subject, magnitude=count - 1,
                ))
        return violations

    def _check_subject_concurrency(self, schedule: Schedule) -> List[ConstraintViolation]:
        limits = self.input.concurrency_limits()
        violations = []
        for (time_slot, subject), count in sorted(
                schedule.subject_concurrency().items(), key=lambda item: (item[0][0].sort_key, item[0][1])):
            cap = limits.get(subject)
            if cap is not None and count > cap:
                violations.append(ConstraintViolation(
                    kind=ViolationKind.SUBJECT_CONCURRENCY_EXCEEDED,
                    description=ERROR_MESSAGES['SUBJECT_CONCURRENCY'].format(
                        time_slot=time_slot, subject=subject, count=count, cap=cap),
                    time_slot=time_slot, subject=subject, magnitude=count - cap,
                ))
        return violations

    def _check_mutual_exclusion(self, schedule: Schedule) -> List[ConstraintViolation]:
        violations = []
        for rule in self.input.constraints.must_of_type(TeacherMutualExclusion):
            for index, teacher in enumerate(rule.teachers):
                busy = schedule.teacher_busy_slots(teacher)
                for other in rule.teachers[index + 1:]:
                    for time_slot in sorted(busy, key=lambda slot: slot.sort_key):
                        if schedule.is_teacher_busy(other, time_slot):
                            violations.append(ConstraintViolation(
                                kind=ViolationKind.MUTUAL_EXCLUSION,
                                description=ERROR_MESSAGES['MUTUAL_EXCLUSION'].format(
                                    teacher=teacher, other=other, time_slot=time_slot),
                                time_slot=time_slot, teacher=teacher,
                            ))
        return violations

    def _check_block_periods(self, schedule: Schedule) -> List[ConstraintViolation]:
        violations = []
        for teacher in sorted(self.input.block_period_teachers()):
            for class_ref, time_slot, assignment in schedule.iter_assignments():
                if not assignment.involves_teacher(teacher):
                    continue
                if not schedule.has_adjacent_lesson(class_ref, time_slot, teacher):
                    violations.append(ConstraintViolation(
                        kind=ViolationKind.BLOCK_PERIOD_UNPAIRED,
                        description=ERROR_MESSAGES['BLOCK_PERIOD_UNPAIRED'].format(
                            teacher=teacher, class_ref=class_ref, time_slot=time_slot),
                        class_ref=class_ref, time_slot=time_slot, teacher=teacher,
                        subject=assignment.subject,
                    ))
        return violations

    # ---- ログ ----

    def _log_report(self, report: ValidationReport) -> None:
        if report.zero_hours_count:
            self.log_error(f"週時数0のクラスへの配置が{report.zero_hours_count}件あります")
        if report.ordinary_count:
            summary = ", ".join(f"{kind.value}={count}" for kind, count in report.count_by_kind().items()
                                if kind is not ViolationKind.ZERO_HOURS_CLASS)
            self.log_warning(f"制約違反が{report.ordinary_count}件あります: {summary}")
            for violation in report.violations:
                self.log_debug(str(violation))
