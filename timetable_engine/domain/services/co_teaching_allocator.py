"""協力授業の配置サービス

主担当教員の配置可能なコマを、主担当にクラス別時数が割り当てられた全クラスから集めて
無作為に1つ選び、そのコマに入れる協力教員を参加回数の少ない順に選びます。
協力教員は協力授業の教科を担当できる教員に限ります。
一定回数進まなければ無作為選択に切り替えて、均等さより配置完了を優先します。
"""
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ...shared.mixins.logging_mixin import LoggingMixin
from ..constraints.base import CoTeachingRequirement
from ..entities.generation_input import GenerationInput
from ..entities.schedule import Schedule
from ..value_objects.assignment import Assignment, SlotOrigin
from ..value_objects.generation_options import GenerationOptions
from ..value_objects.time_slot import TimeSlot, ClassReference
from .availability_evaluator import AvailabilityEvaluator


class SelectionPolicy(Enum):
    """協力教員の選び方"""
    FAIR_SHARE = "fair_share"            # 参加回数の少ない順
    UNIFORM_RANDOM = "uniform_random"    # 無作為


@dataclass
class CoTeachingReport:
    """協力授業1件分の配置結果"""
    main_teacher: str
    subject: str
    target_hours: int
    placed_hours: int = 0
    attempts: int = 0
    participation: Dict[str, int] = field(default_factory=dict)
    relaxed_at: Optional[int] = None

    @property
    def shortfall(self) -> int:
        return max(0, self.target_hours - self.placed_hours)

    @property
    def is_complete(self) -> bool:
        return self.placed_hours >= self.target_hours


class CoTeachingAllocator(LoggingMixin):
    """協力授業の必須制約ごとに主担当＋協力教員のコマを配置する"""

    def __init__(self, generation_input: GenerationInput, evaluator: AvailabilityEvaluator,
                 options: GenerationOptions, rng: random.Random):
        self.input = generation_input
        self.evaluator = evaluator
        self.options = options
        self.rng = rng

    def allocate(self, schedule: Schedule) -> List[CoTeachingReport]:
        reports = []
        for requirement in self.input.co_teaching_requirements():
            reports.append(self.allocate_requirement(schedule, requirement))
        return reports

    def allocate_requirement(self, schedule: Schedule, requirement: CoTeachingRequirement) -> CoTeachingReport:
        subject = self.input.co_teaching_subject(requirement)
        target = self.input.co_teaching_target_hours(requirement)
        main = requirement.main_teacher
        report = CoTeachingReport(main_teacher=main, subject=subject, target_hours=target)

        pool = []
        for name in dict.fromkeys(requirement.co_teachers):
            teacher = self.input.teacher(name)
            if teacher is None:
                self.log_warning(f"協力教員が見つかりません: {name}")
            elif not teacher.teaches(subject):
                self.log_warning(f"{name}先生は{subject}を担当しないため協力教員から除きます")
            elif name != main:
                pool.append(name)
        if not pool:
            self.log_warning(f"{main}先生の協力授業に協力教員がいないため配置をスキップします")
            return report

        report.participation = {name: 0 for name in pool}
        policy = SelectionPolicy.FAIR_SHARE
        max_attempts = target * self.options.co_teaching_attempt_factor

        while report.placed_hours < target and report.attempts < max_attempts:
            report.attempts += 1

            if policy is SelectionPolicy.FAIR_SHARE and report.attempts > self.options.co_teaching_relax_after:
                policy = SelectionPolicy.UNIFORM_RANDOM
                report.relaxed_at = report.attempts
                self.log_debug(
                    f"{main}先生の協力授業: {self.options.co_teaching_relax_after}回で目標に届かないため"
                    f"協力教員の均等配分を緩和します"
                )

            candidates = self._main_teacher_slots(schedule, main, subject)
            if not candidates:
                self.log_debug(f"{main}先生の協力授業を置けるコマがありません")
                break

            class_ref, time_slot = self.rng.choice(candidates)
            available = [
                name for name in pool
                if self.evaluator.is_legal(schedule, class_ref, time_slot, name, subject, co_teaching=True)
            ]
            if not available:
                continue

            chosen = self._select(available, report.participation, policy, requirement.max_co_teachers)
            schedule.assign(time_slot, class_ref, Assignment(
                subject=subject,
                teachers=(main,) + tuple(chosen),
                is_co_teaching=True,
                origin=SlotOrigin.CO_TEACHING,
            ))
            for name in chosen:
                report.participation[name] += 1
            report.placed_hours += 1

        if report.shortfall:
            self.log_warning(
                f"{main}先生の協力授業が目標に届きませんでした"
                f"（{report.placed_hours}/{target}時間, {report.attempts}回試行）"
            )
        else:
            self.log_debug(f"{main}先生の協力授業を{report.placed_hours}時間配置しました: {report.participation}")
        return report

    def _main_teacher_slots(self, schedule: Schedule, main: str, subject: str) -> List[Tuple[ClassReference, TimeSlot]]:
        teacher = self.input.teacher(main)
        return [
            (class_ref, time_slot)
            for class_ref in schedule.classes
            if teacher is not None and teacher.has_allocation(class_ref)
            for time_slot in self.evaluator.legal_slots(
                schedule, class_ref, main, subject, co_teaching=True, allow_unallocated=False)
        ]

    def _select(self, available: List[str], participation: Dict[str, int],
                policy: SelectionPolicy, limit: int) -> List[str]:
        if policy is SelectionPolicy.FAIR_SHARE:
            ordered = sorted(available, key=lambda name: (participation[name], self.rng.random()))
            return ordered[:limit]
        return self.rng.sample(available, min(limit, len(available)))
