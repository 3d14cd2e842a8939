"""ドメインサービス"""

from .availability_evaluator import AvailabilityEvaluator, AvailabilityResult
from .skeleton_builder import SkeletonBuilder
from .fixed_assignment_applier import FixedAssignmentApplier
from .co_teaching_allocator import CoTeachingAllocator, CoTeachingReport, SelectionPolicy
from .placement_engine import PlacementEngine, PlacementUnit, PlacementReport
from .empty_slot_filler import EmptySlotFiller
from .validators import ScheduleValidator, ValidationReport

__all__ = [
    'AvailabilityEvaluator',
    'AvailabilityResult',
    'SkeletonBuilder',
    'FixedAssignmentApplier',
    'CoTeachingAllocator',
    'CoTeachingReport',
    'SelectionPolicy',
    'PlacementEngine',
    'PlacementUnit',
    'PlacementReport',
    'EmptySlotFiller',
    'ScheduleValidator',
    'ValidationReport',
]
