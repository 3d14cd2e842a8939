"""時間割生成ユースケース"""
import time
from typing import Optional

from ...infrastructure.config.config_loader import ConfigLoader
from ...infrastructure.repositories.csv_schedule_writer import CSVScheduleWriter
from ...shared.mixins.logging_mixin import LoggingMixin
from ..services.auto_generator import AutoGenerator, ProgressListener
from .request_models import GenerateScheduleRequest, GenerateScheduleResult


class GenerateScheduleUseCase(LoggingMixin):
    """設定を読み込み、時間割を生成して出力する"""

    def __init__(self,
                 config_loader: Optional[ConfigLoader] = None,
                 writer: Optional[CSVScheduleWriter] = None,
                 progress: Optional[ProgressListener] = None,
                 cancellation=None):
        super().__init__()
        self.config_loader = config_loader or ConfigLoader()
        self.writer = writer or CSVScheduleWriter()
        self.progress = progress
        self.cancellation = cancellation

    def execute(self, request: GenerateScheduleRequest) -> GenerateScheduleResult:
        """時間割を生成する

        設定の不備（ConfigurationError / DataLoadingError）はそのまま送出します。
        """
        started = time.time()
        loaded = self.config_loader.load(request.config_file)
        options = loaded.options.merged(
            max_attempts=request.max_attempts,
            seed=request.seed,
            target_fill_rate=request.target_fill_rate,
        )

        generator = AutoGenerator(
            loaded.generation_input,
            options,
            cancellation=self.cancellation,
            progress=self.progress,
        )
        generation = generator.generate()

        if request.output_file is not None:
            self.writer.write(generation.schedule, request.output_file)
        if request.teacher_hours_file is not None:
            self.writer.write_teacher_hours(generation.schedule, request.teacher_hours_file)

        summary = generation.summary
        success = summary.violation_count == 0 and summary.fill_rate >= options.target_fill_rate
        message = (
            f"充足率{summary.fill_rate:.1f}% ({summary.filled_slots}/{summary.total_slots}コマ), "
            f"違反{summary.violation_count}件, 試行{generation.attempts}回"
        )
        return GenerateScheduleResult(
            generation=generation,
            success=success,
            message=message,
            execution_time=time.time() - started,
            output_file=request.output_file,
        )
