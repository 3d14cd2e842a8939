"""教科設定を表す値オブジェクト"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SubjectCategory(Enum):
    """教科の区分"""
    CORE = "core"                # 通常教科
    ENRICHMENT = "enrichment"    # 創造的活動など

    @classmethod
    def parse(cls, value: Optional[str]) -> 'SubjectCategory':
        if value is None or value == "":
            return cls.CORE
        for member in cls:
            if member.value == str(value).strip().lower():
                return member
        raise ValueError(f"教科区分が不正です: {value!r}")


@dataclass(frozen=True)
class SubjectConfig:
    """教科ごとの週時数と配置属性

    Attributes:
        name: 教科名
        weekly_hours: 各クラスでの週当たり目標時数
        is_merged: 合同授業かどうか
        is_space_limited: 特別教室など同時実施数に制限があるか
        max_concurrent_classes: 同一時間枠で実施できるクラス数の上限
        requires_co_teaching: 協力授業が必要な教科か
        category: 教科区分
        priority: 配置優先度の補正値
    """
    name: str
    weekly_hours: int
    is_merged: bool = False
    is_space_limited: bool = False
    max_concurrent_classes: Optional[int] = None
    requires_co_teaching: bool = False
    category: SubjectCategory = SubjectCategory.CORE
    priority: int = 0

    def __post_init__(self):
        if not self.name:
            raise ValueError("教科名が空です")
        if self.weekly_hours < 0:
            raise ValueError(f"{self.name}の週時数が負です: {self.weekly_hours}")
        if self.max_concurrent_classes is not None and self.max_concurrent_classes < 1:
            raise ValueError(f"{self.name}の同時実施上限が不正です: {self.max_concurrent_classes}")

    @property
    def concurrency_limit(self) -> Optional[int]:
        """同時実施上限（教室制限がある教科は未指定でも1）"""
        if self.max_concurrent_classes is not None:
            return self.max_concurrent_classes
        return 1 if self.is_space_limited else None
