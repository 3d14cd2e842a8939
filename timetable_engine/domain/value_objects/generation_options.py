"""生成処理のオプション"""
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class GenerationOptions:
    """時間割生成の試行回数・採点・探索パラメータ

    Attributes:
        max_attempts: 最大試行回数
        target_fill_rate: 早期終了する充足率（%）
        stop_on_target: 目標充足率かつ違反なしで終了するか
        seed: 乱数シード（Noneなら毎回異なる結果）
        violation_penalty: 通常の違反1件あたりの減点
        zero_hours_penalty: 週時数0クラスへの配置違反1件あたりの減点
        allow_secondary_teachers: クラス別時数が未設定の教員も配置候補にするか
        enforce_teacher_conflicts: 教員の重複配置を常に禁止するか
        co_teaching_relax_after: 協力授業で均等配分をやめるまでの試行数
        co_teaching_attempt_factor: 協力授業の目標時数あたりの試行数
        placement_max_retries: 通常配置で1単位を再試行する回数
        progress_log_interval: 進捗ログを出力する試行間隔
    """
    max_attempts: int = 200
    target_fill_rate: float = 100.0
    stop_on_target: bool = True
    seed: Optional[int] = None
    violation_penalty: float = 5.0
    zero_hours_penalty: float = 50.0
    allow_secondary_teachers: bool = True
    enforce_teacher_conflicts: bool = True
    co_teaching_relax_after: int = 30
    co_teaching_attempt_factor: int = 50
    placement_max_retries: int = 3
    progress_log_interval: int = 10

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"最大試行回数は1以上を指定してください: {self.max_attempts}",
                config_key="max_attempts"
            )
        if not 0.0 <= self.target_fill_rate <= 100.0:
            raise ConfigurationError(
                f"目標充足率は0〜100で指定してください: {self.target_fill_rate}",
                config_key="target_fill_rate"
            )
        for name in ("violation_penalty", "zero_hours_penalty"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name}は0以上を指定してください", config_key=name)
        for name in ("co_teaching_relax_after", "co_teaching_attempt_factor",
                     "placement_max_retries", "progress_log_interval"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name}は0以上を指定してください", config_key=name)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'GenerationOptions':
        """辞書から生成（camelCaseのキーも受け付ける）"""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _to_snake_case(key)
            if name not in known:
                raise ConfigurationError(f"未知のオプションです: {key}", config_key=f"options.{key}")
            values[name] = value
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigurationError(f"オプションの型が不正です: {e}", config_key="options") from e

    def merged(self, **overrides: Any) -> 'GenerationOptions':
        """Noneでない値だけを上書きした新しいオプションを返す"""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return GenerationOptions(**values)


def _to_snake_case(name: str) -> str:
    chars = []
    for char in name:
        if char.isupper():
            chars.append('_')
            chars.append(char.lower())
        else:
            chars.append(char)
    return ''.join(chars)
