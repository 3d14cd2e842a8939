"""通常授業の配置サービス

各クラス・各教科の不足時数1時間ごとに配置単位を作り、優先度の高い順に配置します。
配置できなかった単位は優先度を下げて再投入し、上限回数を超えたら諦めます。
ブロック授業の教員は、前後の校時に相方の1時間を続けて配置します。
"""
import heapq
import itertools
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ...shared.mixins.logging_mixin import LoggingMixin
from ..constants import PlacementPriority
from ..entities.generation_input import GenerationInput
from ..entities.schedule import Schedule
from ..value_objects.assignment import Assignment, SlotOrigin
from ..value_objects.generation_options import GenerationOptions
from ..value_objects.subject_config import SubjectConfig, SubjectCategory
from ..value_objects.time_slot import TimeSlot, ClassReference
from .availability_evaluator import AvailabilityEvaluator


@dataclass
class PlacementUnit:
    """1時間分の配置要求"""
    class_ref: ClassReference
    subject: str
    candidates: List[str]
    priority: float
    retries: int = 0

    def __str__(self) -> str:
        return f"{self.class_ref} {self.subject}"


@dataclass
class PlacementReport:
    planned: int = 0
    placed: int = 0
    retried: int = 0
    paired: int = 0
    dropped: List[PlacementUnit] = field(default_factory=list)


class PlacementEngine(LoggingMixin):
    """週時数の不足分を配置する"""

    def __init__(self, generation_input: GenerationInput, evaluator: AvailabilityEvaluator,
                 options: GenerationOptions, rng: random.Random):
        self.input = generation_input
        self.evaluator = evaluator
        self.options = options
        self.rng = rng
        self._fixed_only = generation_input.fixed_only_subjects()
        self._co_teaching_mains = generation_input.co_teaching_main_teachers()
        # 主担当が協力授業でのみ教える教科（単独配置しない）
        self._co_teaching_only = {
            (c.main_teacher, generation_input.co_teaching_subject(c))
            for c in generation_input.co_teaching_requirements()
        }
        self._block_teachers = generation_input.block_period_teachers(must_only=False)
        self._must_block_teachers = generation_input.block_period_teachers()

    # ---- 配置単位の作成 ----

    def build_worklist(self, schedule: Schedule) -> List[PlacementUnit]:
        units: List[PlacementUnit] = []
        for class_ref in schedule.classes:
            for subject in self.input.subjects:
                if subject.name in self._fixed_only:
                    continue
                missing = subject.weekly_hours - schedule.subject_hours(class_ref, subject.name)
                if missing <= 0:
                    continue

                candidates = self.candidate_teachers(class_ref, subject.name)
                if not candidates:
                    self.log_warning(f"{class_ref}の{subject.name}を担当できる教員がいません（不足{missing}時間）")
                    continue

                base = self._base_priority(subject, candidates)
                for _ in range(missing):
                    units.append(PlacementUnit(
                        class_ref=class_ref,
                        subject=subject.name,
                        candidates=candidates,
                        priority=base + self.rng.random() * PlacementPriority.JITTER,
                    ))
        return units

    def candidate_teachers(self, class_ref: ClassReference, subject: str) -> List[str]:
        """クラス・教科の担当候補（協力授業専用の組み合わせを除く）"""
        return [
            t.name
            for t in self.input.eligible_teachers(class_ref, subject, self.options.allow_secondary_teachers)
            if (t.name, subject) not in self._co_teaching_only
        ]

    def _base_priority(self, subject: SubjectConfig, candidates: List[str]) -> float:
        p = PlacementPriority
        scarcity = p.TEACHER_SCARCITY_BASE - min(len(candidates), p.TEACHER_SCARCITY_BASE)
        priority = float(scarcity * p.TEACHER_SCARCITY_WEIGHT)
        if subject.is_space_limited:
            priority += p.SPACE_LIMITED_BONUS
        if subject.requires_co_teaching:
            priority += p.CO_TEACHING_SUBJECT_BONUS
        priority += subject.weekly_hours * p.WEEKLY_HOURS_WEIGHT
        if subject.category is SubjectCategory.CORE:
            priority += p.CORE_CATEGORY_BONUS
        priority += subject.priority
        if any(name in self._co_teaching_mains for name in candidates):
            priority += p.CO_TEACHING_MAIN_TEACHER_BONUS
        if any(name in self._must_block_teachers for name in candidates):
            priority += p.BLOCK_PERIOD_TEACHER_BONUS
        return priority

    # ---- 配置 ----

    def run(self, schedule: Schedule) -> PlacementReport:
        """配置単位を優先度順に処理する"""
        units = self.build_worklist(schedule)
        report = PlacementReport(planned=len(units))

        counter = itertools.count()
        heap: List[Tuple[float, int, PlacementUnit]] = [(-u.priority, next(counter), u) for u in units]
        heapq.heapify(heap)

        while heap:
            _, _, unit = heapq.heappop(heap)
            if self._demand_met(schedule, unit):
                # ブロック授業の相方として配置済み
                report.paired += 1
                continue
            if self.place_unit(schedule, unit):
                report.placed += 1
                continue

            if unit.retries < self.options.placement_max_retries:
                unit.retries += 1
                unit.priority -= (PlacementPriority.RETRY_DECAY_BASE
                                  + self.rng.random() * PlacementPriority.RETRY_DECAY_RANDOM)
                heapq.heappush(heap, (-unit.priority, next(counter), unit))
                report.retried += 1
            else:
                report.dropped.append(unit)
                self.log_debug(f"{unit}を配置できませんでした（再試行{unit.retries}回）")

        if report.dropped:
            self.log_warning(f"通常配置で{len(report.dropped)}時間分を配置できませんでした")
        self.log_debug(f"通常配置: {report.placed + report.paired}/{report.planned}時間（うちブロック授業の相方{report.paired}時間）")
        return report

    def place_unit(self, schedule: Schedule, unit: PlacementUnit) -> bool:
        for teacher in self.rank_teachers(schedule, unit.candidates):
            slots = self.evaluator.legal_slots(schedule, unit.class_ref, teacher, unit.subject)
            if not slots:
                continue
            if teacher in self._block_teachers:
                self._place_block(schedule, unit, teacher, slots)
            else:
                self._assign(schedule, unit, teacher, self._choose_slot(slots))
            return True
        return False

    def _assign(self, schedule: Schedule, unit: PlacementUnit, teacher: str, time_slot: TimeSlot) -> None:
        schedule.assign(time_slot, unit.class_ref, Assignment(
            subject=unit.subject,
            teachers=(teacher,),
            origin=SlotOrigin.PLACEMENT,
        ))

    def _place_block(self, schedule: Schedule, unit: PlacementUnit, teacher: str,
                     slots: List[TimeSlot]) -> None:
        """ブロック授業の教員を連続2コマになるように配置する

        既存の授業に隣接する時間枠があればそこへ置き、なければ
        相方を置ける時間枠を探して2コマ続けて配置します。
        """
        adjacent = [s for s in slots if schedule.has_adjacent_lesson(unit.class_ref, s, teacher)]
        if adjacent:
            self._assign(schedule, unit, teacher, self._choose_slot(adjacent))
            return

        first = self._choose_slot(slots)
        for time_slot in [first] + [s for s in slots if s != first]:
            partner = self._partner_slot(schedule, unit, teacher, time_slot)
            if partner is not None:
                self._assign(schedule, unit, teacher, time_slot)
                self._assign(schedule, unit, teacher, partner)
                self.log_debug(f"{teacher}先生の{unit}を{time_slot}と{partner}に連続配置しました")
                return

        self.log_debug(f"{teacher}先生の{unit}の相方を置ける時間枠がありません")
        self._assign(schedule, unit, teacher, first)

    def _partner_slot(self, schedule: Schedule, unit: PlacementUnit, teacher: str,
                      time_slot: TimeSlot) -> Optional[TimeSlot]:
        """time_slot に置いたとき、前後で相方を置ける時間枠"""
        trial = schedule.clone()
        self._assign(trial, unit, teacher, time_slot)
        for neighbor in trial.adjacent_slots(time_slot):
            if self.evaluator.is_legal(trial, unit.class_ref, neighbor, teacher, unit.subject):
                return neighbor
        return None

    def _demand_met(self, schedule: Schedule, unit: PlacementUnit) -> bool:
        config = self.input.subject(unit.subject)
        return config is not None and schedule.subject_hours(unit.class_ref, unit.subject) >= config.weekly_hours

    def rank_teachers(self, schedule: Schedule, candidates: List[str]) -> List[str]:
        """担当時数に余裕のある教員から順に並べる

        協力授業の主担当は後回しにして、協力授業用のコマを残します。
        """
        ranked: List[Tuple[float, str]] = []
        for name in candidates:
            teacher = self.input.teacher(name)
            if teacher is None:
                continue
            remaining = teacher.max_weekly_hours - schedule.teacher_hours(name)
            if remaining <= 0:
                continue
            load = schedule.teacher_hours(name) / teacher.max_weekly_hours
            score = load * 100 + self.rng.random() * 10
            if name in self._co_teaching_mains:
                score += PlacementPriority.CO_TEACHING_MAIN_TEACHER_BONUS
            ranked.append((score, name))
        ranked.sort()
        return [name for _, name in ranked]

    def _choose_slot(self, slots: List[TimeSlot]) -> TimeSlot:
        """優先順に並んだ時間枠から、前方ほど選ばれやすく1つ選ぶ"""
        weights = [len(slots) - index for index in range(len(slots))]
        return self.rng.choices(slots, weights=weights, k=1)[0]

    def eligible_teacher_for(self, schedule: Schedule, class_ref: ClassReference, time_slot: TimeSlot,
                             subject: str) -> Optional[str]:
        """そのコマに置ける担当教員を1人返す（空きコマ補充用）"""
        for teacher in self.rank_teachers(schedule, self.candidate_teachers(class_ref, subject)):
            if self.evaluator.is_legal(schedule, class_ref, time_slot, teacher, subject):
                return teacher
        return None
