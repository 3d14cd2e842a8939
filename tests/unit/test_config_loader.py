"""設定ファイル読み込みのテスト"""
import json

import pytest

from timetable_engine.domain.constraints.base import (
    BlockPeriodRequirement,
    ConstraintKind,
    CoTeachingRequirement,
    NoDuplicateTeachers,
    PreferenceConstraint,
    SubjectConcurrencyLimit,
    TeacherSameClassDailyLimit,
    TeacherUnavailableTime,
    TeacherWeeklyHoursLimit,
)
from timetable_engine.domain.exceptions import ConfigurationError, DataLoadingError
from timetable_engine.domain.value_objects.time_slot import ClassReference
from timetable_engine.infrastructure.config.config_loader import ConfigLoader
from timetable_engine.infrastructure.config.constraint_loader import ConstraintLoader

C11 = ClassReference(1, 1)
C12 = ClassReference(1, 2)


class TestConfigLoader:
    """ConfigLoaderのテスト"""

    def test_load_dict(self, school_dict):
        loaded = ConfigLoader().load_dict(school_dict)
        gi = loaded.generation_input

        assert gi.structure.class_refs() == [C11, C12]
        assert gi.structure.periods_on("火") == 3
        assert gi.structure.periods_on("水") == 0
        assert [s.name for s in gi.subjects] == ["数学", "体育"]
        assert gi.subject("体育").concurrency_limit == 1
        assert gi.teacher("A").class_cap(C12) == 3
        assert gi.teacher("B").class_cap(C11) == 2
        assert gi.teacher("B").is_unavailable("月", 1)
        assert len(gi.fixed_assignments) == 1
        assert gi.fixed_assignments[0].class_ref == C11
        assert loaded.options.max_attempts == 20
        assert loaded.options.seed == 7

    def test_constraints_loaded(self, school_dict):
        constraints = ConfigLoader().load_dict(school_dict).generation_input.constraints
        assert isinstance(constraints.must[0], NoDuplicateTeachers)
        limit = constraints.must[1]
        assert isinstance(limit, TeacherSameClassDailyLimit)
        assert limit.teacher == "A" and limit.max_per_day == 2
        [preference] = constraints.optional
        assert isinstance(preference, PreferenceConstraint)
        assert preference.kind is ConstraintKind.MORNING_PRIORITY_SUBJECTS

    def test_periods_shorthand(self, school_dict):
        school_dict["base"]["periods_per_day"] = 4
        school_dict["base"]["classes_per_grade"] = 2
        gi = ConfigLoader().load_dict(school_dict).generation_input
        assert gi.structure.total_periods == 20
        assert gi.structure.classes_per_grade == (2,)

    def test_day_names_normalized(self, school_dict):
        school_dict["base"]["periods_per_day"] = {"monday": 2, "火曜日": 1}
        gi = ConfigLoader().load_dict(school_dict).generation_input
        assert gi.structure.periods_per_day == {"月": 2, "火": 1}

    def test_class_weekly_hours(self, school_dict):
        school_dict["class_weekly_hours"] = {"1年2組": 0}
        gi = ConfigLoader().load_dict(school_dict).generation_input
        assert gi.is_zero_hours_class(C12)

    @pytest.mark.parametrize("mutate", [
        lambda d: d.pop("base"),
        lambda d: d["base"].update(classes_per_grade=[1, 2]),
        lambda d: d["subjects"].append({"weekly_hours": 1}),
        lambda d: d["teachers"][0].update(class_hours={"1-1": -1}),
        lambda d: d["teachers"][0].update(class_hours={"X": 1}),
        lambda d: d["constraints"]["must"].append({"type": "no_such_rule"}),
        lambda d: d["constraints"].update(required=[]),
        lambda d: d["options"].update(maxIterations=5),
    ])
    def test_invalid_configuration(self, school_dict, mutate):
        mutate(school_dict)
        with pytest.raises(ConfigurationError):
            ConfigLoader().load_dict(school_dict)

    def test_load_file(self, tmp_path, school_dict):
        path = tmp_path / "school.json"
        path.write_text(json.dumps(school_dict, ensure_ascii=False), encoding="utf-8")
        loaded = ConfigLoader().load(path)
        assert loaded.source == path
        assert len(loaded.generation_input.teachers) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataLoadingError) as exc_info:
            ConfigLoader().load(tmp_path / "missing.json")
        assert exc_info.value.file_path.endswith("missing.json")

    def test_broken_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(DataLoadingError):
            ConfigLoader().load(path)

    def test_describe(self, school_dict):
        school_dict["class_weekly_hours"] = {"1-2": 0}
        loader = ConfigLoader()
        lines = loader.describe(loader.load_dict(school_dict))
        assert any("クラス: 2" in line for line in lines)
        assert any("1年2組" in line for line in lines)


class TestConstraintLoader:
    """ConstraintLoaderのテスト"""

    def test_co_teaching_aliases(self):
        constraint = ConstraintLoader().build({
            "type": "specific_teacher_co_teaching",
            "mainTeacher": "M",
            "coTeachers": ["X", "Y"],
            "maxTeachersPerClass": 3,
            "weeklyHours": 4,
        })
        assert isinstance(constraint, CoTeachingRequirement)
        assert constraint.kind is ConstraintKind.SPECIFIC_TEACHER_CO_TEACHING
        assert constraint.co_teachers == ("X", "Y")
        assert constraint.max_co_teachers == 2
        assert constraint.weekly_hours == 4

    def test_unavailable_time(self):
        constraint = ConstraintLoader().build({"type": "teacher_unavailable_time", "teacher": "A",
                                               "day": "水曜", "period": 2})
        assert constraint == TeacherUnavailableTime(teacher="A", day="水", period=2)

    def test_concurrency_aliases(self):
        constraint = ConstraintLoader().build({"type": "pe_concurrent_limit", "subject": "体育", "maxClasses": 2})
        assert isinstance(constraint, SubjectConcurrencyLimit)
        assert constraint.max_classes == 2
        assert constraint.kind is ConstraintKind.PE_CONCURRENT_LIMIT

    def test_preference_tags_never_fail(self):
        constraint = ConstraintLoader().build({"type": "teacher_preferred_time", "teacher": "A",
                                               "day": "金", "period": 1})
        assert isinstance(constraint, PreferenceConstraint)
        assert constraint.day == "金"

    def test_teacher_weekly_hours_limit(self):
        constraint = ConstraintLoader().build({"type": "teacher_weekly_hours_limit", "teacher": "A", "maxHours": 12})
        assert constraint == TeacherWeeklyHoursLimit(max_hours=12, teacher="A")

    def test_weekly_hours_limit_caps_teacher(self, school_dict):
        school_dict["constraints"]["must"].append({"type": "teacher_weekly_hours_limit", "max_hours": 4})
        gi = ConfigLoader().load_dict(school_dict).generation_input
        assert gi.teacher("A").max_weekly_hours == 4
        assert gi.teacher("B").max_weekly_hours == 4

    @pytest.mark.parametrize("key", ["teacher", "subject"])
    def test_block_period_teacher_name(self, key):
        constraint = ConstraintLoader().build({"type": "block_period_requirement", key: "A"})
        assert constraint == BlockPeriodRequirement(teacher="A")

    @pytest.mark.parametrize("item", [
        {"type": "teacher_unavailable_time", "teacher": "A", "day": "月"},
        {"type": "teacher_mutual_exclusion", "teachers": ["A"]},
        {"type": "co_teaching_requirement", "co_teachers": ["X"]},
        {"type": "class_max_daily_periods", "max": "many"},
        {"type": "teacher_weekly_hours_limit", "teacher": "A"},
        {"type": "block_period_requirement"},
        {"teacher": "A"},
        "no_duplicate_teachers",
    ])
    def test_invalid_items(self, item):
        with pytest.raises(ConfigurationError):
            ConstraintLoader().build(item)

    def test_empty_section(self):
        assert len(ConstraintLoader().load(None)) == 0
