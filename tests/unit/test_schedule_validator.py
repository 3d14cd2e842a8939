"""時間割検証のテスト"""
import logging

import pytest

from timetable_engine.domain.constraints.base import (
    BlockPeriodRequirement,
    ClassDailySubjectOnce,
    CoTeachingRequirement,
    TeacherMaxDailyHours,
    TeacherMutualExclusion,
    TeacherSameClassDailyLimit,
)
from timetable_engine.domain.entities.schedule import Schedule
from timetable_engine.domain.services.validators.schedule_validator import ScheduleValidator
from timetable_engine.domain.value_objects.assignment import Assignment, Severity, ViolationKind
from timetable_engine.domain.value_objects.subject_config import SubjectConfig
from timetable_engine.domain.value_objects.teacher import Teacher
from timetable_engine.domain.value_objects.time_slot import ClassReference, TimeSlot

C11 = ClassReference(1, 1)
C12 = ClassReference(1, 2)
MON1 = TimeSlot("月", 1)
MON2 = TimeSlot("月", 2)


def grid(*classes, periods=None):
    schedule = Schedule(periods or {"月": 3})
    for class_ref in classes:
        schedule.add_class(class_ref)
    return schedule


class TestValidReport:
    def test_empty_schedule_is_valid(self, math_input):
        report = ScheduleValidator(math_input).validate(grid(C11))
        assert report.is_valid
        assert report
        assert report.violation_count == 0

    def test_does_not_modify_schedule(self, math_input):
        schedule = grid(C11)
        schedule.assign(MON1, C11, Assignment("数学", ("A",)))
        ScheduleValidator(math_input).validate(schedule)
        assert schedule.fill_statistics() == (3, 1)


class TestTeacherViolations:
    """教員に関する違反"""

    @pytest.fixture
    def gi(self, make_input):
        return make_input(
            subjects=[SubjectConfig("数学", 3)],
            teachers=[
                Teacher("A", ("数学",), class_hours={C11: 1, C12: 0},
                        unavailable=frozenset({("月", 1)}), max_weekly_hours=2),
            ],
            classes_per_grade=(2,),
            must=[TeacherMaxDailyHours(max_hours=1, teacher="A"), TeacherSameClassDailyLimit(max_per_day=1)],
        )

    def test_all_teacher_rules(self, gi):
        schedule = grid(C11, C12)
        schedule.assign(MON1, C11, Assignment("数学", ("A",)))
        schedule.assign(MON1, C12, Assignment("数学", ("A",)))
        schedule.assign(MON2, C11, Assignment("数学", ("A",)))

        report = ScheduleValidator(gi).validate(schedule)
        counts = report.count_by_kind()

        assert counts[ViolationKind.TEACHER_UNAVAILABLE] == 2
        assert counts[ViolationKind.TEACHER_DOUBLE_BOOKED] == 1
        assert counts[ViolationKind.TEACHER_FORBIDDEN_CLASS] == 1
        assert counts[ViolationKind.TEACHER_CLASS_HOURS_EXCEEDED] == 1
        assert counts[ViolationKind.TEACHER_TOTAL_HOURS_EXCEEDED] == 1
        assert counts[ViolationKind.TEACHER_DAILY_HOURS_EXCEEDED] == 1
        assert counts[ViolationKind.TEACHER_SAME_CLASS_DAILY_LIMIT] == 1

        daily = report.of_kind(ViolationKind.TEACHER_DAILY_HOURS_EXCEEDED)[0]
        assert daily.magnitude == 2
        assert "A先生" in daily.description


class TestClassViolations:
    """クラスに関する違反"""

    def test_zero_hours_class_is_critical(self, make_input, caplog):
        gi = make_input(
            subjects=[SubjectConfig("数学", 3)],
            teachers=[Teacher("A", ("数学",))],
            classes_per_grade=(2,),
            class_weekly_hours={C12: 0},
        )
        schedule = grid(C11, C12)
        schedule.assign(MON1, C12, Assignment("数学", ("A",)))

        with caplog.at_level(logging.ERROR):
            report = ScheduleValidator(gi).validate(schedule)

        [violation] = report.violations
        assert violation.kind is ViolationKind.ZERO_HOURS_CLASS
        assert violation.severity is Severity.CRITICAL
        assert report.zero_hours_count == 1
        assert report.ordinary_count == 0
        assert "週時数0" in caplog.text

    def test_class_weekly_budget_exceeded(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 3)],
            teachers=[Teacher("A", ("数学",))],
            class_weekly_hours={C11: 1},
        )
        schedule = grid(C11)
        schedule.assign(MON1, C11, Assignment("数学", ("A",)))
        schedule.assign(MON2, C11, Assignment("数学", ("A",)))

        report = ScheduleValidator(gi).validate(schedule)
        assert report.count_by_kind() == {ViolationKind.CLASS_WEEKLY_HOURS_EXCEEDED: 1}


class TestCoTeachingViolations:
    """協力授業に関する違反"""

    @pytest.fixture
    def gi(self, make_input):
        return make_input(
            subjects=[SubjectConfig("自立", 3, requires_co_teaching=True)],
            teachers=[Teacher("M", ("自立",)), Teacher("X", ("自立",)), Teacher("Y", ("自立",))],
            must=[CoTeachingRequirement(main_teacher="M", co_teachers=("X", "Y"), weekly_hours=2)],
        )

    def test_shortfall_and_solo(self, gi):
        schedule = grid(C11)
        schedule.assign(MON1, C11, Assignment("自立", ("M",)))
        schedule.assign(MON2, C11, Assignment("自立", ("M", "X"), is_co_teaching=True))

        report = ScheduleValidator(gi).validate(schedule)

        [shortfall] = report.of_kind(ViolationKind.CO_TEACHING_SHORTFALL)
        assert shortfall.magnitude == 1
        [solo] = report.of_kind(ViolationKind.CO_TEACHING_SOLO_HOURS)
        assert solo.magnitude == 1

    def test_too_many_teachers(self, gi):
        schedule = grid(C11)
        schedule.assign(MON1, C11, Assignment("自立", ("M", "X"), is_co_teaching=True))
        schedule.assign(MON2, C11, Assignment("自立", ("M", "X", "Y"), is_co_teaching=True))

        report = ScheduleValidator(gi).validate(schedule)
        assert report.count_by_kind() == {ViolationKind.CO_TEACHING_TOO_MANY_TEACHERS: 1}


class TestSubjectViolations:
    """教科に関する違反"""

    @pytest.mark.parametrize("group, severity", [("must", Severity.ERROR), ("optional", Severity.WARNING)])
    def test_daily_duplicate_severity(self, make_input, group, severity):
        gi = make_input(
            subjects=[SubjectConfig("数学", 3)],
            teachers=[Teacher("A", ("数学",))],
            **{group: [ClassDailySubjectOnce(subject="数学")]},
        )
        schedule = grid(C11)
        schedule.assign(MON1, C11, Assignment("数学", ("A",)))
        schedule.assign(MON2, C11, Assignment("数学", ("A",)))

        [violation] = ScheduleValidator(gi).validate(schedule).violations
        assert violation.kind is ViolationKind.DAILY_SUBJECT_DUPLICATE
        assert violation.severity is severity

    def test_concurrency_exceeded(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("体育", 3, is_space_limited=True)],
            teachers=[Teacher("A", ("体育",)), Teacher("B", ("体育",))],
            classes_per_grade=(2,),
        )
        schedule = grid(C11, C12)
        schedule.assign(MON1, C11, Assignment("体育", ("A",)))
        schedule.assign(MON1, C12, Assignment("体育", ("B",)))

        [violation] = ScheduleValidator(gi).validate(schedule).violations
        assert violation.kind is ViolationKind.SUBJECT_CONCURRENCY_EXCEEDED
        assert violation.time_slot == MON1

    def test_mutual_exclusion(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 3)],
            teachers=[Teacher("A", ("数学",)), Teacher("B", ("数学",))],
            classes_per_grade=(2,),
            must=[TeacherMutualExclusion(teachers=("A", "B"))],
        )
        schedule = grid(C11, C12)
        schedule.assign(MON1, C11, Assignment("数学", ("A",)))
        schedule.assign(MON1, C12, Assignment("数学", ("B",)))
        schedule.assign(MON2, C11, Assignment("数学", ("A",)))

        report = ScheduleValidator(gi).validate(schedule)
        assert report.count_by_kind() == {ViolationKind.MUTUAL_EXCLUSION: 1}

    def test_block_period_unpaired(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 3)],
            teachers=[Teacher("A", ("数学",)), Teacher("B", ("数学",))],
            classes_per_grade=(2,),
            must=[BlockPeriodRequirement(teacher="A")],
        )
        schedule = grid(C11, C12)
        schedule.assign(MON1, C11, Assignment("数学", ("A",)))
        schedule.assign(MON2, C11, Assignment("数学", ("A",)))
        schedule.assign(TimeSlot("月", 3), C12, Assignment("数学", ("A",)))
        schedule.assign(MON1, C12, Assignment("数学", ("B",)))

        [violation] = ScheduleValidator(gi).validate(schedule).violations
        assert violation.kind is ViolationKind.BLOCK_PERIOD_UNPAIRED
        assert violation.class_ref == C12
        assert violation.time_slot == TimeSlot("月", 3)
