"""テスト共通のフィクスチャ"""
import logging
import logging.handlers
import random

import pytest

from timetable_engine.domain.constraints.base import ConstraintSet
from timetable_engine.domain.entities.generation_input import GenerationInput
from timetable_engine.domain.services.skeleton_builder import SkeletonBuilder
from timetable_engine.domain.value_objects.school_structure import SchoolStructure
from timetable_engine.domain.value_objects.subject_config import SubjectConfig
from timetable_engine.domain.value_objects.teacher import Teacher
from timetable_engine.domain.value_objects.time_slot import ClassReference
from timetable_engine.infrastructure.config.logging_config import LoggingConfig

C11 = ClassReference(1, 1)
C12 = ClassReference(1, 2)


def build_input(subjects, teachers, classes_per_grade=(1,), periods=None,
                must=(), optional=(), fixed=(), class_weekly_hours=None) -> GenerationInput:
    """1学年（既定）の小さな学校の入力を作成"""
    return GenerationInput(
        structure=SchoolStructure(
            grades=len(classes_per_grade),
            classes_per_grade=tuple(classes_per_grade),
            periods_per_day=dict(periods or {"月": 3}),
        ),
        subjects=tuple(subjects),
        teachers=tuple(teachers),
        constraints=ConstraintSet(must=tuple(must), optional=tuple(optional)),
        fixed_assignments=tuple(fixed),
        class_weekly_hours=dict(class_weekly_hours or {}),
    )


@pytest.fixture
def make_input():
    return build_input


@pytest.fixture
def skeleton():
    """入力から空の時間割を作る関数"""
    return lambda generation_input: SkeletonBuilder().build(generation_input)


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def math_input():
    """1クラス・月曜3コマ・数学2時間（A先生）"""
    return build_input(
        subjects=[SubjectConfig("数学", 2)],
        teachers=[Teacher("A", subjects=("数学",), class_hours={C11: 2})],
    )


@pytest.fixture
def school_dict():
    """設定ファイル相当の辞書"""
    return {
        "base": {"grades": 1, "classes_per_grade": [2], "periods_per_day": {"月": 3, "火": 3}},
        "subjects": [
            {"name": "数学", "weekly_hours": 3},
            {"name": "体育", "weekly_hours": 2, "is_space_limited": True},
        ],
        "teachers": [
            {"name": "A", "subjects": ["数学"], "class_hours": {"1-1": 3, "1-2": 3}},
            {"name": "B", "subjects": ["体育"], "classWeeklyHours": {"1-1": 2, "1-2": 2},
             "unavailable": [["月", 1]]},
        ],
        "constraints": {
            "must": [
                {"type": "no_duplicate_teachers"},
                {"type": "teacher_same_class_daily_limit", "teacher": "A", "max_per_day": 2},
            ],
            "optional": [
                {"type": "morning_priority_subjects", "subjects": ["数学"]},
            ],
        },
        "fixed_classes": [
            {"class": "1-1", "day": "火", "period": 3, "subject": "数学", "teacher": "A"},
        ],
        "options": {"maxAttempts": 20, "seed": 7},
    }


@pytest.fixture(autouse=True)
def restore_logging_levels():
    """CLIテストで変更したロガーのレベルとハンドラを元に戻す"""
    root = logging.getLogger()
    names = list(LoggingConfig.MODULE_LEVELS)
    saved_root = root.level
    saved_handlers = list(root.handlers)
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    root.setLevel(saved_root)
    for handler in list(root.handlers):
        if handler not in saved_handlers and type(handler) in (logging.StreamHandler, logging.handlers.RotatingFileHandler):
            root.removeHandler(handler)
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
