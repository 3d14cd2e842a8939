"""時間割生成・設定検証のリクエスト/レスポンスモデル"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..services.auto_generator import GenerationResult


@dataclass
class GenerateScheduleRequest:
    """時間割生成リクエスト"""
    config_file: Path
    output_file: Optional[Path] = None
    teacher_hours_file: Optional[Path] = None

    # 設定ファイルの options を上書きする値（Noneなら上書きしない）
    max_attempts: Optional[int] = None
    seed: Optional[int] = None
    target_fill_rate: Optional[float] = None


@dataclass
class GenerateScheduleResult:
    """時間割生成結果"""
    generation: GenerationResult
    success: bool
    message: str
    execution_time: float
    output_file: Optional[Path] = None

    @property
    def violations_count(self) -> int:
        return self.generation.summary.violation_count


@dataclass
class ValidateConfigurationRequest:
    """設定検証リクエスト"""
    config_file: Path


@dataclass
class ValidateConfigurationResult:
    """設定検証結果"""
    is_valid: bool
    message: str
    class_count: int = 0
    slot_count: int = 0
    details: List[str] = field(default_factory=list)
