"""協力授業配置のテスト"""
import random

import pytest

from timetable_engine.domain.constraints.base import CoTeachingRequirement
from timetable_engine.domain.services.availability_evaluator import AvailabilityEvaluator
from timetable_engine.domain.services.co_teaching_allocator import CoTeachingAllocator
from timetable_engine.domain.value_objects.assignment import SlotOrigin
from timetable_engine.domain.value_objects.generation_options import GenerationOptions
from timetable_engine.domain.value_objects.subject_config import SubjectConfig
from timetable_engine.domain.value_objects.teacher import Teacher
from timetable_engine.domain.value_objects.time_slot import ClassReference

C11 = ClassReference(1, 1)
C12 = ClassReference(1, 2)


def allocator_for(gi, options=None, seed=1):
    options = options or GenerationOptions()
    return CoTeachingAllocator(gi, AvailabilityEvaluator(gi, options), options, random.Random(seed))


@pytest.fixture
def support_input(make_input):
    def build(co_teachers=("X", "Y"), weekly_hours=2, periods=None, x_unavailable=frozenset()):
        return make_input(
            subjects=[SubjectConfig("自立", 2, requires_co_teaching=True)],
            teachers=[
                Teacher("M", ("自立",), class_hours={C11: 2}),
                Teacher("X", ("自立",), unavailable=x_unavailable),
                Teacher("Y", ("自立",)),
            ],
            periods=periods or {"月": 3, "火": 3},
            must=[CoTeachingRequirement(main_teacher="M", co_teachers=co_teachers, weekly_hours=weekly_hours)],
        )
    return build


class TestCoTeachingAllocator:
    """CoTeachingAllocatorのテスト"""

    def test_target_reached_with_fair_share(self, support_input, skeleton):
        gi = support_input()
        schedule = skeleton(gi)

        reports = allocator_for(gi).allocate(schedule)

        assert len(reports) == 1
        report = reports[0]
        assert report.is_complete
        assert report.placed_hours == 2
        assert report.participation == {"X": 1, "Y": 1}
        assert report.relaxed_at is None

        placed = [a for _, _, a in schedule.iter_assignments()]
        assert len(placed) == 2
        for assignment in placed:
            assert assignment.main_teacher == "M"
            assert len(assignment.teachers) == 2
            assert assignment.is_co_teaching
            assert assignment.origin is SlotOrigin.CO_TEACHING

    def test_co_teacher_limit_per_slot(self, make_input, skeleton):
        gi = make_input(
            subjects=[SubjectConfig("自立", 1, requires_co_teaching=True)],
            teachers=[Teacher("M", ("自立",), class_hours={C11: 1}),
                      Teacher("X", ("自立",)), Teacher("Y", ("自立",))],
            must=[CoTeachingRequirement(main_teacher="M", co_teachers=("X", "Y"), max_teachers_per_slot=3)],
        )
        schedule = skeleton(gi)
        allocator_for(gi).allocate(schedule)
        [(_, _, assignment)] = list(schedule.iter_assignments())
        assert set(assignment.teachers) == {"M", "X", "Y"}

    def test_relaxes_then_gives_up(self, support_input, skeleton):
        gi = support_input(co_teachers=("X",), weekly_hours=1, periods={"月": 1},
                           x_unavailable=frozenset({("月", 1)}))
        options = GenerationOptions(co_teaching_relax_after=5, co_teaching_attempt_factor=10)
        schedule = skeleton(gi)

        report = allocator_for(gi, options).allocate(schedule)[0]

        assert report.placed_hours == 0
        assert report.shortfall == 1
        assert report.attempts == 10
        assert report.relaxed_at == 6
        assert schedule.fill_statistics()[1] == 0

    def test_missing_co_teachers_skipped(self, support_input, skeleton):
        gi = support_input(co_teachers=("Ghost",))
        schedule = skeleton(gi)
        report = allocator_for(gi).allocate(schedule)[0]
        assert report.placed_hours == 0
        assert report.attempts == 0
        assert schedule.fill_statistics()[1] == 0

    def test_same_seed_same_slots(self, support_input, skeleton):
        gi = support_input()
        first, second = skeleton(gi), skeleton(gi)
        allocator_for(gi, seed=5).allocate(first)
        allocator_for(gi, seed=5).allocate(second)
        assert ([(c, s, a.teachers) for c, s, a in first.iter_assignments()]
                == [(c, s, a.teachers) for c, s, a in second.iter_assignments()])

    def test_main_teacher_stays_in_allocated_classes(self, make_input, skeleton):
        gi = make_input(
            subjects=[SubjectConfig("自立", 2, requires_co_teaching=True)],
            teachers=[
                Teacher("M", ("自立",), class_hours={C11: 2}),
                Teacher("X", ("自立",)),
                Teacher("Y", ("自立",)),
            ],
            classes_per_grade=(2,),
            periods={"月": 3, "火": 3},
            must=[CoTeachingRequirement(main_teacher="M", co_teachers=("X", "Y"), weekly_hours=2)],
        )
        for seed in range(20):
            schedule = skeleton(gi)
            report = allocator_for(gi, seed=seed).allocate(schedule)[0]

            assert report.placed_hours == 2
            assert schedule.teacher_hours("M", C12) == 0
            assert schedule.teacher_hours("M", C11) == 2

    def test_participation_balanced_across_three_co_teachers(self, make_input, skeleton):
        gi = make_input(
            subjects=[SubjectConfig("自立", 6, requires_co_teaching=True)],
            teachers=[
                Teacher("M", ("自立",), class_hours={C11: 6}),
                Teacher("X", ("自立",)),
                Teacher("Y", ("自立",)),
                Teacher("Z", ("自立",)),
            ],
            periods={"月": 3, "火": 3},
            must=[CoTeachingRequirement(main_teacher="M", co_teachers=("X", "Y", "Z"), weekly_hours=6)],
        )
        options = GenerationOptions(co_teaching_relax_after=100)
        for seed in range(10):
            schedule = skeleton(gi)
            report = allocator_for(gi, options, seed=seed).allocate(schedule)[0]

            assert report.placed_hours == 6
            assert report.attempts < options.co_teaching_relax_after
            assert report.relaxed_at is None
            counts = report.participation.values()
            assert sum(counts) == 6
            assert max(counts) - min(counts) <= 1

    def test_co_teachers_without_subject_excluded(self, make_input, skeleton, caplog):
        gi = make_input(
            subjects=[SubjectConfig("自立", 2, requires_co_teaching=True)],
            teachers=[
                Teacher("M", ("自立",), class_hours={C11: 2}),
                Teacher("X", ("自立",)),
                Teacher("N", ("数学",)),
            ],
            periods={"月": 3, "火": 3},
            must=[CoTeachingRequirement(main_teacher="M", co_teachers=("X", "N"), weekly_hours=2)],
        )
        schedule = skeleton(gi)
        report = allocator_for(gi).allocate(schedule)[0]

        assert report.participation == {"X": 2}
        assert all("N" not in a.teachers for _, _, a in schedule.iter_assignments())
        assert "N先生は自立を担当しない" in caplog.text
