"""制約定義"""

from .base import (
    ConstraintType,
    ConstraintKind,
    Constraint,
    ConstraintSet,
    NoDuplicateTeachers,
    TeacherSameClassDailyLimit,
    ClassDailySubjectOnce,
    CoTeachingRequirement,
    TeacherUnavailableTime,
    TeacherMaxDailyHours,
    TeacherWeeklyHoursLimit,
    ClassMaxDailyPeriods,
    ClassWeeklyHoursLimit,
    SubjectFixedOnly,
    TeacherMutualExclusion,
    SubjectConcurrencyLimit,
    BlockPeriodRequirement,
    PreferenceConstraint,
)

__all__ = [
    'ConstraintType',
    'ConstraintKind',
    'Constraint',
    'ConstraintSet',
    'NoDuplicateTeachers',
    'TeacherSameClassDailyLimit',
    'ClassDailySubjectOnce',
    'CoTeachingRequirement',
    'TeacherUnavailableTime',
    'TeacherMaxDailyHours',
    'TeacherWeeklyHoursLimit',
    'ClassMaxDailyPeriods',
    'ClassWeeklyHoursLimit',
    'SubjectFixedOnly',
    'TeacherMutualExclusion',
    'SubjectConcurrencyLimit',
    'BlockPeriodRequirement',
    'PreferenceConstraint',
]
