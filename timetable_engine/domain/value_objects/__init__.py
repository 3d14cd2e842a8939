"""値オブジェクト"""

from .time_slot import TimeSlot, ClassReference, normalize_day
from .subject_config import SubjectConfig, SubjectCategory
from .school_structure import SchoolStructure
from .teacher import Teacher
from .fixed_assignment import FixedAssignment
from .assignment import (
    Assignment,
    SlotOrigin,
    ConstraintViolation,
    ViolationKind,
    Severity,
)
from .generation_options import GenerationOptions

__all__ = [
    'TimeSlot',
    'ClassReference',
    'normalize_day',
    'SubjectConfig',
    'SubjectCategory',
    'SchoolStructure',
    'Teacher',
    'FixedAssignment',
    'Assignment',
    'SlotOrigin',
    'ConstraintViolation',
    'ViolationKind',
    'Severity',
    'GenerationOptions',
]
