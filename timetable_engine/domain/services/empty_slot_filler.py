"""空きコマ補充サービス

通常配置の処理順の都合で残った空きコマを、週時数に達していない教科で埋めます。
"""
from typing import List, Tuple

from ...shared.mixins.logging_mixin import LoggingMixin
from ..entities.schedule import Schedule
from ..value_objects.assignment import Assignment, SlotOrigin
from ..value_objects.time_slot import ClassReference
from .placement_engine import PlacementEngine


class EmptySlotFiller(LoggingMixin):
    """残りの空きコマを1つずつ走査して埋める

    候補は週時数の不足が大きい教科から順に試し、配置可否の判定は
    通常配置と同じ AvailabilityEvaluator を使います。
    """

    def __init__(self, placement_engine: PlacementEngine):
        self.placement = placement_engine
        self.input = placement_engine.input

    def fill(self, schedule: Schedule) -> int:
        """空きコマを埋め、埋めたコマ数を返す"""
        filled = 0
        for class_ref, time_slot in schedule.get_empty_slots():
            for subject in self._subjects_under_target(schedule, class_ref):
                teacher = self.placement.eligible_teacher_for(schedule, class_ref, time_slot, subject)
                if teacher is None:
                    continue
                schedule.assign(time_slot, class_ref, Assignment(
                    subject=subject,
                    teachers=(teacher,),
                    origin=SlotOrigin.FILL,
                ))
                filled += 1
                self.log_debug(f"空きコマ補充: {class_ref} {time_slot} {subject}({teacher})")
                break

        if filled:
            self.log_info(f"空きコマを{filled}コマ補充しました")
        return filled

    def _subjects_under_target(self, schedule: Schedule, class_ref: ClassReference) -> List[str]:
        fixed_only = self.input.fixed_only_subjects()
        remaining: List[Tuple[int, str]] = []
        for subject in self.input.subjects:
            if subject.name in fixed_only:
                continue
            missing = subject.weekly_hours - schedule.subject_hours(class_ref, subject.name)
            if missing > 0:
                remaining.append((missing, subject.name))
        remaining.sort(key=lambda item: -item[0])
        return [name for _, name in remaining]
