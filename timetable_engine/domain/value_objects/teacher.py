"""教員を表す値オブジェクト"""
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from ..constants import DEFAULT_TEACHER_MAX_WEEKLY_HOURS
from .time_slot import ClassReference


@dataclass(frozen=True)
class Teacher:
    """教員の担当教科・クラス別時数・勤務不可時間

    class_hours はクラスごとの担当時数の上限です。
    0 はそのクラスを担当できないことを、キーが無いことは割り当て未設定を表します。
    """
    name: str
    subjects: Tuple[str, ...] = ()
    class_hours: Dict[ClassReference, int] = field(default_factory=dict)
    max_weekly_hours: int = DEFAULT_TEACHER_MAX_WEEKLY_HOURS
    unavailable: FrozenSet[Tuple[str, int]] = frozenset()
    max_daily_hours: Optional[int] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("教員名が空です")
        object.__setattr__(self, 'subjects', tuple(self.subjects))
        if self.max_weekly_hours < 0:
            raise ValueError(f"{self.name}先生の週時数上限が負です")
        if any(hours < 0 for hours in self.class_hours.values()):
            raise ValueError(f"{self.name}先生のクラス別時数に負の値があります")

    def __str__(self) -> str:
        return self.name

    def teaches(self, subject: str) -> bool:
        return subject in self.subjects

    def class_cap(self, class_ref: ClassReference) -> Optional[int]:
        """クラス別時数の上限（未設定ならNone）"""
        return self.class_hours.get(class_ref)

    def is_forbidden_for(self, class_ref: ClassReference) -> bool:
        """時数0が明示されたクラスかどうか"""
        return self.class_hours.get(class_ref) == 0

    def has_allocation(self, class_ref: ClassReference) -> bool:
        return self.class_hours.get(class_ref, 0) > 0

    def is_unavailable(self, day: str, period: int) -> bool:
        return (day, period) in self.unavailable

    @property
    def allocated_hours(self) -> int:
        """クラス別時数の合計"""
        return sum(self.class_hours.values())

    def with_unavailable(self, slots: Iterable[Tuple[str, int]]) -> 'Teacher':
        """勤務不可時間を追加した教員を返す"""
        return replace(self, unavailable=self.unavailable | frozenset(slots))

    def with_daily_cap(self, cap: int) -> 'Teacher':
        """1日の担当時数上限を設定した教員を返す（既存の上限より緩くはしない）"""
        if self.max_daily_hours is not None:
            cap = min(cap, self.max_daily_hours)
        return replace(self, max_daily_hours=cap)

    def with_weekly_cap(self, cap: int) -> 'Teacher':
        """週当たりの担当時数上限を設定した教員を返す（既存の上限より緩くはしない）"""
        return replace(self, max_weekly_hours=min(cap, self.max_weekly_hours))
