"""設定検証ユースケース"""
from ...domain.exceptions import ConfigurationError, DataLoadingError
from ...domain.services.skeleton_builder import SkeletonBuilder
from ...infrastructure.config.config_loader import ConfigLoader
from ...shared.mixins.logging_mixin import LoggingMixin
from .request_models import ValidateConfigurationRequest, ValidateConfigurationResult


class ValidateConfigurationUseCase(LoggingMixin):
    """設定ファイルが生成可能な内容か確認する（時間割は生成しない）"""

    def __init__(self, config_loader: ConfigLoader = None):
        super().__init__()
        self.config_loader = config_loader or ConfigLoader()

    def execute(self, request: ValidateConfigurationRequest) -> ValidateConfigurationResult:
        try:
            loaded = self.config_loader.load(request.config_file)
            loaded.generation_input.validate()
            skeleton = SkeletonBuilder().build(loaded.generation_input)
        except (ConfigurationError, DataLoadingError) as e:
            self.log_warning(f"設定検証エラー: {e.message}")
            return ValidateConfigurationResult(is_valid=False, message=e.message)

        total, _ = skeleton.fill_statistics()
        return ValidateConfigurationResult(
            is_valid=True,
            message="設定は有効です",
            class_count=len(skeleton.classes),
            slot_count=total,
            details=self.config_loader.describe(loaded),
        )
