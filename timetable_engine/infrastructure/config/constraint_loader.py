"""制約定義の読み込み

設定ファイルの `constraints.must` / `constraints.optional` の各要素を
`type` タグに応じた制約データクラスへ変換します。
"""
from typing import Any, Callable, Dict, List, Optional

from ...domain.constants import ALL_SUBJECTS, DEFAULT_MAX_TEACHERS_PER_SLOT
from ...domain.constraints.base import (
    BlockPeriodRequirement,
    ClassDailySubjectOnce,
    ClassMaxDailyPeriods,
    ClassWeeklyHoursLimit,
    Constraint,
    ConstraintKind,
    ConstraintSet,
    CoTeachingRequirement,
    NoDuplicateTeachers,
    PreferenceConstraint,
    SubjectConcurrencyLimit,
    SubjectFixedOnly,
    TeacherMaxDailyHours,
    TeacherMutualExclusion,
    TeacherSameClassDailyLimit,
    TeacherUnavailableTime,
    TeacherWeeklyHoursLimit,
)
from ...domain.exceptions import ConfigurationError
from ...domain.value_objects.time_slot import ClassReference, normalize_day
from ...shared.mixins.logging_mixin import LoggingMixin


def pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """snake_case / camelCase のどちらかで指定された値を取り出す"""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _require(data: Dict[str, Any], *keys: str) -> Any:
    value = pick(data, *keys)
    if value is None or value == "":
        raise ConfigurationError(
            f"制約 {data.get('type')} に {keys[0]} がありません",
            config_key=f"constraints.{data.get('type')}.{keys[0]}"
        )
    return value


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _class_ref(value: Any) -> Optional[ClassReference]:
    if value is None:
        return None
    return ClassReference.parse(value)


class ConstraintLoader(LoggingMixin):
    """制約定義の辞書から ConstraintSet を組み立てる"""

    def __init__(self) -> None:
        self._builders: Dict[ConstraintKind, Callable[[ConstraintKind, Dict[str, Any], str], Constraint]] = {
            ConstraintKind.NO_DUPLICATE_TEACHERS: self._no_duplicate_teachers,
            ConstraintKind.TEACHER_SAME_CLASS_DAILY_LIMIT: self._same_class_daily_limit,
            ConstraintKind.CLASS_DAILY_SUBJECT_ONCE: self._daily_subject_once,
            ConstraintKind.DAILY_SUBJECT_ONCE: self._daily_subject_once,
            ConstraintKind.SPECIFIC_TEACHER_CO_TEACHING: self._co_teaching,
            ConstraintKind.CO_TEACHING_REQUIREMENT: self._co_teaching,
            ConstraintKind.TEACHER_UNAVAILABLE_TIME: self._teacher_unavailable,
            ConstraintKind.TEACHER_MAX_DAILY_HOURS: self._teacher_max_daily_hours,
            ConstraintKind.TEACHER_WEEKLY_HOURS_LIMIT: self._teacher_weekly_hours_limit,
            ConstraintKind.BLOCK_PERIOD_REQUIREMENT: self._block_period,
            ConstraintKind.CLASS_MAX_DAILY_PERIODS: self._class_max_daily_periods,
            ConstraintKind.CLASS_MAX_PERIODS: self._class_max_daily_periods,
            ConstraintKind.CLASS_WEEKLY_HOURS_LIMIT: self._class_weekly_hours_limit,
            ConstraintKind.SUBJECT_FIXED_ONLY: self._subject_fixed_only,
            ConstraintKind.TEACHER_MUTUAL_EXCLUSION: self._mutual_exclusion,
            ConstraintKind.SPECIAL_ROOM_CAPACITY: self._concurrency_limit,
            ConstraintKind.SPACE_CONSTRAINT: self._concurrency_limit,
            ConstraintKind.PE_CONCURRENT_LIMIT: self._concurrency_limit,
        }

    def load(self, data: Optional[Dict[str, Any]]) -> ConstraintSet:
        """`{"must": [...], "optional": [...]}` を読み込む

        Raises:
            ConfigurationError: 未知のタグや必須項目の欠落がある場合
        """
        if not data:
            return ConstraintSet()
        if not isinstance(data, dict):
            raise ConfigurationError("constraints は must / optional を持つオブジェクトで指定してください",
                                     config_key="constraints")
        unknown = set(data) - {"must", "optional"}
        if unknown:
            raise ConfigurationError(f"constraints に未知のキーがあります: {', '.join(sorted(unknown))}",
                                     config_key="constraints")

        must = [self.build(item, "must") for item in as_list(data.get("must"))]
        optional = [self.build(item, "optional") for item in as_list(data.get("optional"))]
        self.log_debug(f"制約を読み込みました: 必須{len(must)}件, 任意{len(optional)}件")
        return ConstraintSet(must=tuple(must), optional=tuple(optional))

    def build(self, item: Dict[str, Any], group: str = "must") -> Constraint:
        if not isinstance(item, dict):
            raise ConfigurationError(f"制約の形式が不正です: {item!r}", config_key=f"constraints.{group}")
        tag = item.get("type")
        kind = ConstraintKind.from_tag(tag) if isinstance(tag, str) else None
        if kind is None:
            raise ConfigurationError(f"未知の制約タイプです: {tag!r}", config_key=f"constraints.{group}")

        builder = self._builders.get(kind, self._preference)
        try:
            return builder(kind, item, str(pick(item, "description", default="")))
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"制約 {tag} の値が不正です: {e}",
                config_key=f"constraints.{group}.{tag}"
            ) from e

    # ---- タグ別の変換 ----

    def _no_duplicate_teachers(self, kind, item, description):
        return NoDuplicateTeachers(description=description)

    def _same_class_daily_limit(self, kind, item, description):
        return TeacherSameClassDailyLimit(
            teacher=pick(item, "teacher"),
            max_per_day=int(pick(item, "max_per_day", "maxPerDay", "max", default=1)),
            description=description,
        )

    def _daily_subject_once(self, kind, item, description):
        return ClassDailySubjectOnce(
            subject=str(pick(item, "subject", default=ALL_SUBJECTS)),
            kind=kind,
            description=description,
        )

    def _co_teaching(self, kind, item, description):
        weekly_hours = pick(item, "weekly_hours", "weeklyHours")
        return CoTeachingRequirement(
            main_teacher=str(_require(item, "main_teacher", "mainTeacher")),
            co_teachers=tuple(str(t) for t in as_list(pick(item, "co_teachers", "coTeachers"))),
            subject=pick(item, "subject"),
            weekly_hours=int(weekly_hours) if weekly_hours is not None else None,
            max_teachers_per_slot=int(pick(item, "max_teachers_per_slot", "maxTeachersPerClass",
                                           "maxTeachers", default=DEFAULT_MAX_TEACHERS_PER_SLOT)),
            kind=kind,
            description=description,
        )

    def _teacher_unavailable(self, kind, item, description):
        return TeacherUnavailableTime(
            teacher=str(_require(item, "teacher")),
            day=normalize_day(_require(item, "day")),
            period=int(_require(item, "period")),
            description=description,
        )

    def _teacher_max_daily_hours(self, kind, item, description):
        return TeacherMaxDailyHours(
            max_hours=int(_require(item, "max_hours", "maxHours", "max")),
            teacher=pick(item, "teacher"),
            description=description,
        )

    def _teacher_weekly_hours_limit(self, kind, item, description):
        return TeacherWeeklyHoursLimit(
            max_hours=int(_require(item, "max_hours", "maxHours", "max")),
            teacher=pick(item, "teacher"),
            description=description,
        )

    def _block_period(self, kind, item, description):
        # 教員名は subject に書かれていることがある
        return BlockPeriodRequirement(
            teacher=str(_require(item, "teacher", "subject")),
            description=description,
        )

    def _class_max_daily_periods(self, kind, item, description):
        return ClassMaxDailyPeriods(
            max_periods=int(_require(item, "max_periods", "maxPeriods", "max")),
            class_ref=_class_ref(pick(item, "class", "class_name", "className")),
            kind=kind,
            description=description,
        )

    def _class_weekly_hours_limit(self, kind, item, description):
        return ClassWeeklyHoursLimit(
            max_hours=int(_require(item, "max_hours", "maxHours", "max")),
            class_ref=_class_ref(pick(item, "class", "class_name", "className")),
            description=description,
        )

    def _subject_fixed_only(self, kind, item, description):
        subjects = as_list(pick(item, "subjects", "subject"))
        if not subjects:
            raise ConfigurationError("subject_fixed_only に教科がありません", config_key="constraints.subject_fixed_only")
        return SubjectFixedOnly(subjects=tuple(str(s) for s in subjects), description=description)

    def _mutual_exclusion(self, kind, item, description):
        return TeacherMutualExclusion(
            teachers=tuple(str(t) for t in as_list(_require(item, "teachers"))),
            description=description,
        )

    def _concurrency_limit(self, kind, item, description):
        return SubjectConcurrencyLimit(
            subject=str(_require(item, "subject")),
            max_classes=int(pick(item, "max_classes", "maxClasses", "max_classes_at_once",
                                 "maxConcurrent", "max", default=1)),
            kind=kind,
            description=description,
        )

    def _preference(self, kind, item, description):
        day = pick(item, "day")
        period = pick(item, "period")
        return PreferenceConstraint(
            kind=kind,
            subjects=tuple(str(s) for s in as_list(pick(item, "subjects", "subject"))),
            teacher=pick(item, "teacher"),
            day=normalize_day(day) if day is not None else None,
            period=int(period) if period is not None else None,
            description=description,
        )
