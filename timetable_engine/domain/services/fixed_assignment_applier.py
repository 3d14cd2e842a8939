"""固定授業を配置するサービス"""
from typing import Iterable

from ...shared.mixins.logging_mixin import LoggingMixin
from ..entities.generation_input import GenerationInput
from ..entities.schedule import Schedule
from ..value_objects.assignment import Assignment, SlotOrigin
from ..value_objects.fixed_assignment import FixedAssignment


class FixedAssignmentApplier(LoggingMixin):
    """生成前に固定授業を書き込む

    教員の勤務可否などは確認しません（固定授業は外部で検証済みとみなす）。
    確認するのはコマの空きと週時数0クラスの除外だけです。
    """

    def apply(self, schedule: Schedule, generation_input: GenerationInput,
              fixed_assignments: Iterable[FixedAssignment] = None) -> int:
        """固定授業を配置し、配置できた件数を返す"""
        if fixed_assignments is None:
            fixed_assignments = generation_input.fixed_assignments

        applied = 0
        for fixed in fixed_assignments:
            if generation_input.is_zero_hours_class(fixed.class_ref):
                self.log_warning(f"固定授業を無視しました（{fixed.class_ref}は週時数0のクラス）: {fixed}")
                continue
            if not schedule.has_class(fixed.class_ref):
                self.log_warning(f"固定授業を無視しました（クラスが存在しません）: {fixed}")
                continue

            time_slot = fixed.time_slot
            if not schedule.contains_slot(time_slot):
                self.log_warning(f"固定授業を無視しました（校時が範囲外です）: {fixed}")
                continue

            current = schedule.get_assignment(time_slot, fixed.class_ref)
            if current is not None:
                self.log_warning(f"固定授業を無視しました（既に{current}が配置済み）: {fixed}")
                continue

            schedule.assign(time_slot, fixed.class_ref, Assignment(
                subject=fixed.subject,
                teachers=fixed.teachers,
                is_fixed=True,
                is_co_teaching=fixed.is_co_teaching,
                origin=SlotOrigin.FIXED,
            ))
            applied += 1

        self.log_debug(f"固定授業を{applied}件配置しました")
        return applied
