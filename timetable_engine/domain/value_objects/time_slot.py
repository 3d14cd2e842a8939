"""時間枠とクラス参照を表す値オブジェクト"""
import re
from dataclasses import dataclass
from typing import Tuple, Union

from ..constants import WEEKDAYS, WEEKDAY_SET, WEEKDAY_ALIASES, MORNING_LAST_PERIOD


def normalize_day(day: str) -> str:
    """曜日表記を「月」〜「金」に正規化する

    Raises:
        ValueError: 曜日として解釈できない場合
    """
    if not isinstance(day, str):
        raise ValueError(f"曜日が不正です: {day!r}")
    text = day.strip()
    if text in WEEKDAY_SET:
        return text
    alias = WEEKDAY_ALIASES.get(text) or WEEKDAY_ALIASES.get(text.lower())
    if alias is None:
        raise ValueError(f"曜日が不正です: {day!r}")
    return alias


@dataclass(frozen=True)
class TimeSlot:
    """時間枠（曜日・校時）を表す不変オブジェクト"""

    day: str
    period: int

    def __post_init__(self):
        day = normalize_day(self.day)
        if day != self.day:
            object.__setattr__(self, 'day', day)
        if isinstance(self.period, bool) or not isinstance(self.period, int) or self.period < 1:
            raise ValueError(f"校時が不正です: {self.period!r}")

    def __str__(self) -> str:
        return f"{self.day}曜{self.period}校時"

    @property
    def day_index(self) -> int:
        return WEEKDAYS.index(self.day)

    @property
    def sort_key(self) -> Tuple[int, int]:
        """曜日順・校時順の並び替えキー"""
        return (self.day_index, self.period)

    def is_same_day(self, other: 'TimeSlot') -> bool:
        return self.day == other.day

    def is_morning(self) -> bool:
        """午前の時間帯かどうか判定"""
        return self.period <= MORNING_LAST_PERIOD


_CLASS_PATTERNS = (
    re.compile(r'^\s*(\d+)\s*年\s*(\d+)\s*組\s*$'),
    re.compile(r'^\s*(\d+)\s*[-_/]\s*(\d+)\s*$'),
)


@dataclass(frozen=True, order=True)
class ClassReference:
    """クラス（学年・組）を表す値オブジェクト"""

    grade: int
    class_number: int

    def __post_init__(self):
        if self.grade < 1 or self.class_number < 1:
            raise ValueError(f"クラス指定が不正です: {self.grade}年{self.class_number}組")

    @classmethod
    def parse(cls, text: Union[str, 'ClassReference']) -> 'ClassReference':
        """「1-2」「1年2組」形式の文字列からクラス参照を生成

        Raises:
            ValueError: 解釈できない場合
        """
        if isinstance(text, ClassReference):
            return text
        for pattern in _CLASS_PATTERNS:
            match = pattern.match(str(text))
            if match:
                return cls(int(match.group(1)), int(match.group(2)))
        raise ValueError(f"クラス指定が不正です: {text!r}")

    @property
    def full_name(self) -> str:
        return f"{self.grade}年{self.class_number}組"

    @property
    def key(self) -> str:
        """設定ファイルで使うキー表記（例: 1-2）"""
        return f"{self.grade}-{self.class_number}"

    def __str__(self) -> str:
        return self.full_name
