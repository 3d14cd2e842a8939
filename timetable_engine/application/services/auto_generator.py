"""時間割の自動生成（試行の繰り返しと最良解の保持）

1回の試行は 骨組み→固定授業→協力授業→通常配置→空きコマ補充→検証 の順に進み、
充足率から違反数に応じた減点を引いた値で採点します。
最良の時間割は複製して保持し、目標到達・試行回数の上限・中止要求で終了します。
"""
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, TypeVar

from ...domain.entities.generation_input import GenerationInput
from ...domain.entities.schedule import Schedule
from ...domain.exceptions import (
    ConfigurationError,
    PhaseExecutionError,
    ScheduleAssignmentError,
    TimetableGenerationError,
)
from ...domain.services.availability_evaluator import AvailabilityEvaluator
from ...domain.services.co_teaching_allocator import CoTeachingAllocator, CoTeachingReport
from ...domain.services.empty_slot_filler import EmptySlotFiller
from ...domain.services.fixed_assignment_applier import FixedAssignmentApplier
from ...domain.services.placement_engine import PlacementEngine, PlacementReport
from ...domain.services.skeleton_builder import SkeletonBuilder
from ...domain.services.validators.schedule_validator import ScheduleValidator, ValidationReport
from ...domain.value_objects.generation_options import GenerationOptions
from ...infrastructure.config.logging_config import GenerationPhaseLogger
from ...shared.mixins.logging_mixin import LoggingMixin


class GeneratorState(Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SCORED = "scored"
    DONE = "done"
    CANCELLED = "cancelled"


class StopReason(Enum):
    TARGET_REACHED = "target_reached"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class CancellationToken:
    """外部から生成を中止するためのフラグ（試行の区切りでのみ参照される）"""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


class ProgressListener:
    """進捗の通知先（必要なメソッドだけ上書きする）"""

    def on_attempt(self, attempt: int, best_score: float, fill_rate: float) -> None:
        pass


@dataclass
class ScheduleSummary:
    fill_rate: float
    total_slots: int
    filled_slots: int
    empty_slots: int
    violation_count: int
    had_errors: bool

    @classmethod
    def from_schedule(cls, schedule: Schedule, report: ValidationReport) -> 'ScheduleSummary':
        total, filled = schedule.fill_statistics()
        return cls(
            fill_rate=filled / total * 100.0 if total > 0 else 0.0,
            total_slots=total,
            filled_slots=filled,
            empty_slots=total - filled,
            violation_count=report.violation_count,
            had_errors=not report.is_valid,
        )


@dataclass
class AttemptResult:
    """1回の試行の結果"""
    attempt: int
    schedule: Schedule
    report: ValidationReport
    summary: ScheduleSummary
    score: float
    co_teaching: List[CoTeachingReport] = field(default_factory=list)
    placement: Optional[PlacementReport] = None
    filled_by_sweep: int = 0


@dataclass
class GenerationResult:
    """生成結果（最良の時間割と統計）"""
    schedule: Schedule
    summary: ScheduleSummary
    best_score: float
    attempts: int
    stop_reason: StopReason
    validation_report: ValidationReport
    teacher_hours: Dict[str, int]
    best_attempt: Optional[int] = None
    score_history: List[float] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def is_perfect(self) -> bool:
        return self.summary.fill_rate >= 100.0 and self.summary.violation_count == 0


ProgressCallback = Callable[[int, float, float], None]
T = TypeVar("T")


class AutoGenerator(LoggingMixin):
    """試行を繰り返して最良の時間割を返す

    呼び出しごとに状態と乱数を初期化するため、同じシードなら同じ結果になります。
    """

    def __init__(self,
                 generation_input: GenerationInput,
                 options: Optional[GenerationOptions] = None,
                 cancellation=None,
                 progress: Optional[ProgressListener] = None,
                 on_progress: Optional[ProgressCallback] = None):
        self.input = generation_input
        self.options = options or GenerationOptions()
        self.cancellation = cancellation
        self.progress = progress
        self.on_progress = on_progress
        self._state = GeneratorState.IDLE
        self.phase_logger = GenerationPhaseLogger(self.logger)

    @property
    def state(self) -> GeneratorState:
        return self._state

    def generate(self) -> GenerationResult:
        """時間割を生成する

        Raises:
            ConfigurationError: 入力に致命的な不備がある場合（試行開始前に送出）
        """
        started = time.perf_counter()
        self._state = GeneratorState.IDLE

        self.input.validate()
        skeleton = SkeletonBuilder().build(self.input)

        rng = random.Random(self.options.seed)
        evaluator = AvailabilityEvaluator(self.input, self.options)
        validator = ScheduleValidator(self.input)

        self.log_operation_start("時間割の自動生成", {
            'classes': len(skeleton.classes),
            'slots': skeleton.fill_statistics()[0],
            'max_attempts': self.options.max_attempts,
            'seed': self.options.seed,
        })

        best: Optional[AttemptResult] = None
        best_schedule: Optional[Schedule] = None
        history: List[float] = []
        attempts = 0
        stop_reason = StopReason.EXHAUSTED

        for attempt in range(1, self.options.max_attempts + 1):
            if self._is_cancelled():
                stop_reason = StopReason.CANCELLED
                self.log_warning(f"中止要求により{attempts}回で生成を終了します")
                break

            self._state = GeneratorState.ATTEMPTING
            result = self._run_attempt_safely(attempt, rng, evaluator, validator)
            attempts = attempt
            self._state = GeneratorState.SCORED

            if result is not None and (best is None or result.score > best.score):
                best = result
                best_schedule = result.schedule.clone()
                self.log_debug(f"試行{attempt}: 最良スコアを更新しました ({result.score:.2f})")

            best_score = best.score if best is not None else float('-inf')
            history.append(best_score)
            self._notify(attempt, best_score, result.summary.fill_rate if result is not None else 0.0)

            if result is not None and self._target_reached(result):
                stop_reason = StopReason.TARGET_REACHED
                self.log_info(f"試行{attempt}で目標に到達しました")
                break

        if best is None:
            # 1回も試行できなかった場合は空の時間割を返す
            report = validator.validate(skeleton)
            best_schedule = skeleton
            summary = ScheduleSummary.from_schedule(skeleton, report)
            best_score = self._score(summary, report)
        else:
            report = best.report
            summary = best.summary
            best_score = best.score

        self._state = GeneratorState.CANCELLED if stop_reason is StopReason.CANCELLED else GeneratorState.DONE
        elapsed = time.perf_counter() - started

        self.log_operation_end("時間割の自動生成", details={
            'attempts': attempts,
            'best_score': round(best_score, 2),
            'fill_rate': round(summary.fill_rate, 1),
            'violations': summary.violation_count,
            'stop_reason': stop_reason.value,
        })

        return GenerationResult(
            schedule=best_schedule,
            summary=summary,
            best_score=best_score,
            attempts=attempts,
            stop_reason=stop_reason,
            validation_report=report,
            teacher_hours=best_schedule.teacher_hour_totals(),
            best_attempt=best.attempt if best is not None else None,
            score_history=history,
            elapsed_seconds=elapsed,
        )

    def run_attempt(self, attempt: int, rng: random.Random,
                    evaluator: Optional[AvailabilityEvaluator] = None,
                    validator: Optional[ScheduleValidator] = None) -> AttemptResult:
        """1回分の試行を実行する

        Raises:
            PhaseExecutionError: いずれかのフェーズで割り当てに失敗した場合
        """
        evaluator = evaluator or AvailabilityEvaluator(self.input, self.options)
        validator = validator or ScheduleValidator(self.input)
        self.phase_logger.set_context(attempt=attempt)

        schedule = SkeletonBuilder().build(self.input)
        placement = PlacementEngine(self.input, evaluator, self.options, rng)

        self._run_phase("固定授業の配置", attempt,
                        lambda: FixedAssignmentApplier().apply(schedule, self.input))
        co_reports = self._run_phase(
            "協力授業の配置", attempt,
            lambda: CoTeachingAllocator(self.input, evaluator, self.options, rng).allocate(schedule))
        placement_report = self._run_phase("通常配置", attempt, lambda: placement.run(schedule))
        filled = self._run_phase("空きコマ補充", attempt, lambda: EmptySlotFiller(placement).fill(schedule))
        self.phase_logger.clear_context()

        with self.log_timing(f"試行{attempt}の検証"):
            report = validator.validate(schedule)
        summary = ScheduleSummary.from_schedule(schedule, report)
        return AttemptResult(
            attempt=attempt,
            schedule=schedule,
            report=report,
            summary=summary,
            score=self._score(summary, report),
            co_teaching=co_reports,
            placement=placement_report,
            filled_by_sweep=filled,
        )

    def _run_phase(self, phase_name: str, attempt: int, action: Callable[[], T]) -> T:
        self.phase_logger.phase_start(phase_name, attempt=attempt)
        try:
            result = action()
        except ScheduleAssignmentError as e:
            self.phase_logger.phase_end(phase_name, success=False)
            raise PhaseExecutionError(
                f"{phase_name}に失敗しました: {e.message}",
                phase_name=phase_name,
                details={'attempt': attempt, 'slot': str(e.time_slot), 'class': str(e.class_ref)},
            ) from e
        self.phase_logger.phase_end(phase_name)
        return result

    def _run_attempt_safely(self, attempt, rng, evaluator, validator) -> Optional[AttemptResult]:
        try:
            result = self.run_attempt(attempt, rng, evaluator, validator)
        except ConfigurationError:
            raise
        except TimetableGenerationError as e:
            self.log_error(f"試行{attempt}でエラーが発生しました: {e.message}", exc_info=True)
            return None

        if self.options.progress_log_interval and attempt % self.options.progress_log_interval == 0:
            self.log_info(
                f"試行{attempt}/{self.options.max_attempts}: 充足率{result.summary.fill_rate:.1f}%, "
                f"違反{result.summary.violation_count}件, スコア{result.score:.2f}"
            )
        return result

    def _score(self, summary: ScheduleSummary, report: ValidationReport) -> float:
        penalty = (report.ordinary_count * self.options.violation_penalty
                   + report.zero_hours_count * self.options.zero_hours_penalty)
        return summary.fill_rate - penalty

    def _target_reached(self, result: AttemptResult) -> bool:
        if result.summary.violation_count > 0:
            return False
        if result.summary.fill_rate >= 100.0:
            return True
        return self.options.stop_on_target and result.summary.fill_rate >= self.options.target_fill_rate

    def _is_cancelled(self) -> bool:
        return bool(self.cancellation is not None and getattr(self.cancellation, 'is_cancelled', False))

    def _notify(self, attempt: int, best_score: float, fill_rate: float) -> None:
        if self.progress is not None:
            self.progress.on_attempt(attempt, best_score, fill_rate)
        if self.on_progress is not None:
            self.on_progress(attempt, best_score, fill_rate)
