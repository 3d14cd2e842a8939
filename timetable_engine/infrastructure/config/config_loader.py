"""学校設定ローダー

JSONファイルから学校構成・教科・教員・制約・固定授業・生成オプションを読み込み、
GenerationInput と GenerationOptions を作成します。
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...domain.constants import DEFAULT_PERIODS_PER_DAY, DEFAULT_TEACHER_MAX_WEEKLY_HOURS, WEEKDAYS
from ...domain.entities.generation_input import GenerationInput
from ...domain.exceptions import ConfigurationError, DataLoadingError
from ...domain.value_objects.fixed_assignment import FixedAssignment
from ...domain.value_objects.generation_options import GenerationOptions
from ...domain.value_objects.school_structure import SchoolStructure
from ...domain.value_objects.subject_config import SubjectCategory, SubjectConfig
from ...domain.value_objects.teacher import Teacher
from ...domain.value_objects.time_slot import ClassReference, normalize_day
from ...shared.mixins.logging_mixin import LoggingMixin
from .constraint_loader import ConstraintLoader, pick, as_list


@dataclass
class LoadedConfiguration:
    """読み込み済みの設定"""
    generation_input: GenerationInput
    options: GenerationOptions
    source: Optional[Path] = None


class ConfigLoader(LoggingMixin):
    """学校設定をJSONファイルから読み込むローダー"""

    def __init__(self, constraint_loader: Optional[ConstraintLoader] = None):
        super().__init__()
        self.constraint_loader = constraint_loader or ConstraintLoader()

    def load(self, file_path: Union[str, Path]) -> LoadedConfiguration:
        """設定ファイルを読み込む

        Raises:
            DataLoadingError: ファイルが無い、またはJSONとして読めない場合
            ConfigurationError: 内容に不備がある場合
        """
        path = Path(file_path)
        if not path.exists():
            raise DataLoadingError(f"設定ファイルが見つかりません: {path}", file_path=str(path))

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"JSONパースエラー: {e}")
            raise DataLoadingError(f"設定ファイルのJSONが不正です: {e}", file_path=str(path)) from e
        except OSError as e:
            raise DataLoadingError(f"設定ファイルを読み込めません: {e}", file_path=str(path)) from e

        loaded = self.load_dict(data)
        loaded.source = path
        self.logger.info(f"設定ファイルを読み込みました: {path}")
        return loaded

    def load_dict(self, data: Dict[str, Any]) -> LoadedConfiguration:
        """辞書から設定を作成"""
        if not isinstance(data, dict):
            raise ConfigurationError("設定のトップレベルはオブジェクトで指定してください")

        try:
            structure = self._load_structure(data.get("base"))
            generation_input = GenerationInput(
                structure=structure,
                subjects=tuple(self._load_subject(item) for item in as_list(data.get("subjects"))),
                teachers=tuple(self._load_teacher(item) for item in as_list(data.get("teachers"))),
                constraints=self.constraint_loader.load(data.get("constraints")),
                fixed_assignments=tuple(self._load_fixed(item) for item in
                                        as_list(pick(data, "fixed_classes", "fixedClasses"))),
                class_weekly_hours=self._load_class_hours(
                    pick(data, "class_weekly_hours", "classWeeklyHours", default={}), "class_weekly_hours"),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError, KeyError) as e:
            raise ConfigurationError(f"設定の値が不正です: {e}") from e

        options = GenerationOptions.from_dict(data.get("options"))
        self.log_debug(
            f"教科{len(generation_input.subjects)}件, 教員{len(generation_input.teachers)}名, "
            f"制約{len(generation_input.constraints)}件, 固定授業{len(generation_input.fixed_assignments)}件"
        )
        return LoadedConfiguration(generation_input=generation_input, options=options)

    # ---- 各セクション ----

    def _load_structure(self, base: Optional[Dict[str, Any]]) -> SchoolStructure:
        if not base:
            raise ConfigurationError("base（学校構成）がありません", config_key="base")

        grades = int(pick(base, "grades", default=0))
        if grades < 1:
            raise ConfigurationError("学年数は1以上を指定してください", config_key="base.grades")

        classes = pick(base, "classes_per_grade", "classesPerGrade")
        if isinstance(classes, int):
            classes = [classes] * grades
        classes = [int(c) for c in as_list(classes)]
        if len(classes) != grades:
            raise ConfigurationError(
                f"classes_per_grade の個数({len(classes)})が学年数({grades})と一致しません",
                config_key="base.classes_per_grade"
            )

        raw_periods = pick(base, "periods_per_day", "periodsPerDay")
        if raw_periods is None:
            periods = {day: DEFAULT_PERIODS_PER_DAY for day in WEEKDAYS}
        elif isinstance(raw_periods, int):
            periods = {day: raw_periods for day in WEEKDAYS}
        else:
            periods = {normalize_day(day): int(count) for day, count in raw_periods.items()}

        try:
            return SchoolStructure(grades=grades, classes_per_grade=tuple(classes), periods_per_day=periods)
        except ValueError as e:
            raise ConfigurationError(str(e), config_key="base") from e

    def _load_subject(self, item: Dict[str, Any]) -> SubjectConfig:
        name = pick(item, "name")
        if not name:
            raise ConfigurationError(f"教科名がありません: {item!r}", config_key="subjects")
        max_concurrent = pick(item, "max_concurrent_classes", "max_classes_at_once", "maxClassesAtOnce")
        try:
            return SubjectConfig(
                name=str(name),
                weekly_hours=int(pick(item, "weekly_hours", "weeklyHours", default=0)),
                is_merged=bool(pick(item, "is_merged", "isMerged", default=False)),
                is_space_limited=bool(pick(item, "is_space_limited", "isSpaceLimited", default=False)),
                max_concurrent_classes=int(max_concurrent) if max_concurrent is not None else None,
                requires_co_teaching=bool(pick(item, "requires_co_teaching", "requiresCoTeaching", default=False)),
                category=SubjectCategory.parse(pick(item, "category")),
                priority=int(pick(item, "priority", default=0)),
            )
        except ValueError as e:
            raise ConfigurationError(str(e), config_key=f"subjects.{name}") from e

    def _load_teacher(self, item: Dict[str, Any]) -> Teacher:
        name = pick(item, "name")
        if not name:
            raise ConfigurationError(f"教員名がありません: {item!r}", config_key="teachers")

        unavailable = set()
        for entry in as_list(pick(item, "unavailable", default=[])):
            if isinstance(entry, dict):
                day, period = entry.get("day"), entry.get("period")
            else:
                day, period = entry
            unavailable.add((normalize_day(day), int(period)))

        daily = pick(item, "max_daily_hours", "maxDailyHours")
        try:
            return Teacher(
                name=str(name),
                subjects=tuple(str(s) for s in as_list(pick(item, "subjects", default=[]))),
                class_hours=self._load_class_hours(
                    pick(item, "class_hours", "classWeeklyHours", default={}), f"teachers.{name}"),
                max_weekly_hours=int(pick(item, "max_weekly_hours", "max_hours_per_week", "maxHours",
                                          default=DEFAULT_TEACHER_MAX_WEEKLY_HOURS)),
                unavailable=frozenset(unavailable),
                max_daily_hours=int(daily) if daily is not None else None,
            )
        except ValueError as e:
            raise ConfigurationError(str(e), config_key=f"teachers.{name}") from e

    def _load_fixed(self, item: Dict[str, Any]) -> FixedAssignment:
        class_value = pick(item, "class_ref", "className", "class_name")
        if class_value is not None:
            class_ref = ClassReference.parse(class_value)
        else:
            class_ref = ClassReference(int(item["grade"]), int(item["class"]))
        return FixedAssignment(
            class_ref=class_ref,
            day=item["day"],
            period=int(item["period"]),
            subject=str(item["subject"]),
            teacher=str(item["teacher"]),
            co_teachers=tuple(str(t) for t in as_list(pick(item, "co_teachers", "coTeachers"))),
        )

    def _load_class_hours(self, mapping: Dict[str, Any], config_key: str) -> Dict[ClassReference, int]:
        if not isinstance(mapping, dict):
            raise ConfigurationError("クラス別時数はオブジェクトで指定してください", config_key=config_key)
        hours: Dict[ClassReference, int] = {}
        for key, value in mapping.items():
            hours[ClassReference.parse(key)] = int(value)
        return hours

    def describe(self, loaded: LoadedConfiguration) -> List[str]:
        """設定の概要（CLIの validate 表示用）"""
        gi = loaded.generation_input
        structure = gi.structure
        periods = ", ".join(f"{day}{structure.periods_on(day)}" for day in WEEKDAYS)
        excluded = [c.full_name for c in structure.class_refs() if gi.is_zero_hours_class(c)]
        lines = [
            f"学年: {structure.grades} / クラス: {len(structure.class_refs())}",
            f"校時: {periods}（週{structure.total_periods}コマ）",
            f"教科: {len(gi.subjects)}件 / 教員: {len(gi.teachers)}名",
            f"制約: 必須{len(gi.constraints.must)}件, 任意{len(gi.constraints.optional)}件",
            f"固定授業: {len(gi.fixed_assignments)}件",
        ]
        if excluded:
            lines.append(f"生成対象外（週時数0）: {', '.join(excluded)}")
        return lines
