"""時間割自動生成の統合テスト"""
import logging

import pytest

from timetable_engine.application.services.auto_generator import (
    AutoGenerator,
    CancellationToken,
    GeneratorState,
    ProgressListener,
    ScheduleSummary,
    StopReason,
)
from timetable_engine.domain.constraints.base import CoTeachingRequirement, NoDuplicateTeachers
from timetable_engine.domain.exceptions import ConfigurationError, PhaseExecutionError
from timetable_engine.domain.services.validators.schedule_validator import ValidationReport
from timetable_engine.domain.value_objects.assignment import ConstraintViolation, Severity, ViolationKind
from timetable_engine.domain.value_objects.fixed_assignment import FixedAssignment
from timetable_engine.domain.value_objects.generation_options import GenerationOptions
from timetable_engine.domain.value_objects.subject_config import SubjectConfig
from timetable_engine.domain.value_objects.teacher import Teacher
from timetable_engine.domain.value_objects.time_slot import ClassReference, TimeSlot

C11 = ClassReference(1, 1)
C12 = ClassReference(1, 2)


def cells(schedule):
    return [(c, s, str(a)) for c, s, a in schedule.iter_assignments()]


@pytest.fixture
def school_input(make_input):
    """2学年×2クラス・週20コマの学校"""
    classes = [ClassReference(g, n) for g in (1, 2) for n in (1, 2)]
    return make_input(
        subjects=[
            SubjectConfig("国語", 5),
            SubjectConfig("数学", 5),
            SubjectConfig("理科", 4),
            SubjectConfig("体育", 3, is_space_limited=True),
            SubjectConfig("音楽", 3),
        ],
        teachers=[
            Teacher("国語T", ("国語",), class_hours={c: 5 for c in classes}),
            Teacher("数学T", ("数学",), class_hours={c: 5 for c in classes}),
            Teacher("理科T", ("理科",), class_hours={c: 4 for c in classes}),
            Teacher("体育T", ("体育",), class_hours={c: 3 for c in classes}),
            Teacher("音楽T", ("音楽",), class_hours={c: 3 for c in classes}),
        ],
        classes_per_grade=(2, 2),
        periods={day: 4 for day in ("月", "火", "水", "木", "金")},
        must=[NoDuplicateTeachers()],
    )


class TestSmallSchools:
    """小さな入力での生成結果"""

    def test_single_subject_fills_every_slot(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 2)],
            teachers=[Teacher("A", ("数学",), class_hours={C11: 2})],
            periods={"月": 2},
        )
        result = AutoGenerator(gi, GenerationOptions(seed=1, max_attempts=5)).generate()

        assert result.is_perfect
        assert result.stop_reason is StopReason.TARGET_REACHED
        assert result.attempts == 1
        assert result.summary.fill_rate == 100.0
        assert result.teacher_hours == {"A": 2}
        assert [str(a) for _, _, a in result.schedule.iter_assignments()] == ["数学(A)", "数学(A)"]

    def test_partial_fill_without_violations(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 2)],
            teachers=[Teacher("A", ("数学",), class_hours={C11: 2})],
            periods={"月": 2, "火": 2},
        )
        result = AutoGenerator(gi, GenerationOptions(seed=1, max_attempts=3)).generate()

        assert result.schedule.subject_hours(C11, "数学") == 2
        assert result.summary.total_slots == 4
        assert result.summary.filled_slots == 2
        assert result.summary.fill_rate == 50.0
        assert result.summary.violation_count == 0
        assert result.stop_reason is StopReason.EXHAUSTED
        assert result.attempts == 3
        assert not result.is_perfect

    def test_unavailable_slot_avoided(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 1)],
            teachers=[Teacher("A", ("数学",), class_hours={C11: 1}, unavailable=frozenset({("月", 1)}))],
            periods={"月": 2},
        )
        result = AutoGenerator(gi, GenerationOptions(seed=2, max_attempts=3)).generate()

        assert result.schedule.is_empty(TimeSlot("月", 1), C11)
        assert result.schedule.get_assignment(TimeSlot("月", 2), C11).subject == "数学"
        assert result.validation_report.of_kind(ViolationKind.TEACHER_UNAVAILABLE) == []

    def test_zero_hours_class_excluded(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 2)],
            teachers=[Teacher("A", ("数学",))],
            classes_per_grade=(2,),
            periods={"月": 2},
            fixed=[FixedAssignment(C12, "月", 1, "道徳", "A")],
            class_weekly_hours={C12: 0},
        )
        result = AutoGenerator(gi, GenerationOptions(seed=3, max_attempts=2)).generate()

        assert result.schedule.classes == [C11]
        assert result.validation_report.zero_hours_count == 0
        assert result.is_perfect

    def test_fixed_assignments_survive_every_attempt(self, make_input):
        fixed = [
            FixedAssignment(C11, "月", 1, "数学", "A"),
            FixedAssignment(C11, "火", 3, "数学", "A"),
            FixedAssignment(C11, "月", 2, "国語", "B"),
        ]
        gi = make_input(
            subjects=[SubjectConfig("数学", 4), SubjectConfig("国語", 1)],
            teachers=[Teacher("A", ("数学",), class_hours={C11: 4}), Teacher("B", ("国語",), class_hours={C11: 1})],
            periods={"月": 3, "火": 3},
            fixed=fixed,
        )
        result = AutoGenerator(gi, GenerationOptions(seed=6, max_attempts=4)).generate()

        assert result.attempts == 4
        for entry in fixed:
            assignment = result.schedule.get_assignment(entry.time_slot, C11)
            assert assignment.subject == entry.subject
            assert assignment.teachers == (entry.teacher,)
            assert assignment.is_fixed
        assert result.schedule.subject_hours(C11, "数学") == 4

    def test_validation_time_logged(self, math_input, caplog):
        name = "timetable_engine.application.services.auto_generator.AutoGenerator"
        with caplog.at_level(logging.DEBUG, logger=name):
            AutoGenerator(math_input, GenerationOptions(seed=1, max_attempts=1)).generate()
        assert "試行1の検証 - 処理時間" in caplog.text

    def test_co_teaching_completed(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("自立", 2, requires_co_teaching=True), SubjectConfig("数学", 4)],
            teachers=[
                Teacher("M", ("自立",), class_hours={C11: 2}),
                Teacher("X", ("自立",)),
                Teacher("A", ("数学",), class_hours={C11: 4}),
            ],
            periods={"月": 3, "火": 3},
            must=[CoTeachingRequirement(main_teacher="M", co_teachers=("X",), weekly_hours=2)],
        )
        result = AutoGenerator(gi, GenerationOptions(seed=4, max_attempts=3)).generate()

        assert result.is_perfect
        co_taught = [a for _, _, a in result.schedule.iter_assignments() if a.subject == "自立"]
        assert len(co_taught) == 2
        assert all(a.teachers == ("M", "X") for a in co_taught)


class TestSearchLoop:
    """試行の繰り返しと最良解の保持"""

    def test_best_score_never_decreases(self, school_input):
        result = AutoGenerator(school_input, GenerationOptions(seed=8, max_attempts=6)).generate()

        history = result.score_history
        assert len(history) == result.attempts
        assert all(later >= earlier for earlier, later in zip(history, history[1:]))
        assert result.best_score == history[-1]

    def test_same_seed_same_schedule(self, school_input):
        options = GenerationOptions(seed=21, max_attempts=3)
        first = AutoGenerator(school_input, options).generate()
        second = AutoGenerator(school_input, options).generate()

        assert cells(first.schedule) == cells(second.schedule)
        assert first.score_history == second.score_history

    def test_repeated_generate_calls_start_fresh(self, school_input):
        generator = AutoGenerator(school_input, GenerationOptions(seed=5, max_attempts=2))
        first = generator.generate()
        second = generator.generate()
        assert cells(first.schedule) == cells(second.schedule)
        assert generator.state is GeneratorState.DONE

    def test_no_teacher_double_booking(self, school_input):
        result = AutoGenerator(school_input, GenerationOptions(seed=13, max_attempts=3)).generate()
        assert result.validation_report.of_kind(ViolationKind.TEACHER_DOUBLE_BOOKED) == []
        assert result.validation_report.of_kind(ViolationKind.SUBJECT_CONCURRENCY_EXCEEDED) == []

    def test_score_penalises_violations(self, math_input):
        generator = AutoGenerator(math_input, GenerationOptions(violation_penalty=5.0, zero_hours_penalty=50.0))
        report = ValidationReport([
            ConstraintViolation(ViolationKind.TEACHER_DOUBLE_BOOKED, "重複"),
            ConstraintViolation(ViolationKind.ZERO_HOURS_CLASS, "週時数0", severity=Severity.CRITICAL),
        ])
        summary = ScheduleSummary(fill_rate=90.0, total_slots=10, filled_slots=9, empty_slots=1,
                                  violation_count=2, had_errors=True)
        assert generator._score(summary, report) == 35.0


class TestCancellationAndProgress:
    """中止要求と進捗通知"""

    def test_cancelled_before_first_attempt(self, math_input):
        token = CancellationToken()
        token.cancel()
        generator = AutoGenerator(math_input, GenerationOptions(seed=1), cancellation=token)

        result = generator.generate()

        assert result.attempts == 0
        assert result.stop_reason is StopReason.CANCELLED
        assert generator.state is GeneratorState.CANCELLED
        assert result.summary.filled_slots == 0
        assert result.best_attempt is None

    def test_cancelled_between_attempts(self, school_input):
        token = CancellationToken()

        def on_progress(attempt, best_score, fill_rate):
            if attempt == 2:
                token.cancel()

        result = AutoGenerator(school_input, GenerationOptions(seed=1, max_attempts=10, target_fill_rate=100.0),
                               cancellation=token, on_progress=on_progress).generate()

        if result.stop_reason is StopReason.CANCELLED:
            assert result.attempts == 2
        else:
            assert result.stop_reason is StopReason.TARGET_REACHED
            assert result.attempts <= 2

    def test_progress_listener_called_per_attempt(self, make_input):
        gi = make_input(
            subjects=[SubjectConfig("数学", 2)],
            teachers=[Teacher("A", ("数学",), class_hours={C11: 2})],
            periods={"月": 2, "火": 2},
        )
        calls = []

        class Recorder(ProgressListener):
            def on_attempt(self, attempt, best_score, fill_rate):
                calls.append((attempt, fill_rate))

        AutoGenerator(gi, GenerationOptions(seed=1, max_attempts=4), progress=Recorder()).generate()

        assert [attempt for attempt, _ in calls] == [1, 2, 3, 4]
        assert all(fill_rate == 50.0 for _, fill_rate in calls)


class TestErrorHandling:
    """エラー時の振る舞い"""

    def test_configuration_error_before_attempts(self, make_input):
        gi = make_input(subjects=[], teachers=[Teacher("A")])
        with pytest.raises(ConfigurationError):
            AutoGenerator(gi).generate()

    def test_failed_attempt_is_skipped(self, math_input):
        class FlakyGenerator(AutoGenerator):
            def run_attempt(self, attempt, rng, evaluator=None, validator=None):
                if attempt == 1:
                    raise PhaseExecutionError("通常配置に失敗しました", phase_name="通常配置")
                return super().run_attempt(attempt, rng, evaluator, validator)

        result = FlakyGenerator(math_input, GenerationOptions(seed=1, max_attempts=3)).generate()

        assert result.best_attempt == 2
        assert result.score_history[0] == float('-inf')
        assert result.schedule.subject_hours(C11, "数学") == 2
