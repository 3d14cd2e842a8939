"""ロギング機能を提供するミックスイン

生成パイプラインの各サービスに共通のロガーを持たせます。
"""
import logging
import time
from contextlib import contextmanager
from typing import Optional, Any, Dict, Iterator


class LoggingMixin:
    """ロギング機能を提供するミックスイン

    ロガー名はクラスのモジュール名とクラス名から決まるため、
    LoggingConfig.MODULE_LEVELS のモジュール別レベル設定がそのまま効きます。

    使用例:
        class PlacementEngine(LoggingMixin):
            def run(self, schedule):
                self.log_operation_start("通常配置")
    """

    @property
    def logger(self) -> logging.Logger:
        """クラス名を使用したロガーを取得"""
        if not hasattr(self, '_logger'):
            self._logger = logging.getLogger(
                f"{self.__class__.__module__}.{self.__class__.__name__}"
            )
        return self._logger

    def log_debug(self, message: str, *args, **kwargs) -> None:
        self.logger.debug(message, *args, **kwargs)

    def log_info(self, message: str, *args, **kwargs) -> None:
        self.logger.info(message, *args, **kwargs)

    def log_warning(self, message: str, *args, **kwargs) -> None:
        self.logger.warning(message, *args, **kwargs)

    def log_error(self, message: str, *args, **kwargs) -> None:
        self.logger.error(message, *args, **kwargs)

    def log_operation_start(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """操作開始のログを出力

        Args:
            operation: 操作名
            details: 詳細情報
        """
        message = f"{operation}を開始"
        if details:
            message += f" - {details}"
        self.log_info(message)

    def log_operation_end(
        self,
        operation: str,
        success: bool = True,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """操作終了のログを出力

        失敗した場合はエラーレベルで出力します。
        """
        status = "成功" if success else "失敗"
        message = f"{operation}が{status}"
        if details:
            message += f" - {details}"

        if success:
            self.log_info(message)
        else:
            self.log_error(message)

    @contextmanager
    def log_timing(self, operation: str) -> Iterator[None]:
        """ブロックの処理時間をデバッグログに出力"""
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - started
            self.log_debug(f"{operation} - 処理時間: {elapsed:.3f}秒")
