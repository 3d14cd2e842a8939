"""アプリケーションサービス"""

from .auto_generator import (
    AutoGenerator,
    AttemptResult,
    CancellationToken,
    GenerationResult,
    GeneratorState,
    ProgressListener,
    ScheduleSummary,
    StopReason,
)

__all__ = [
    'AutoGenerator',
    'AttemptResult',
    'CancellationToken',
    'GenerationResult',
    'GeneratorState',
    'ProgressListener',
    'ScheduleSummary',
    'StopReason',
]
