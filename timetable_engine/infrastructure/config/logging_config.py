"""ロギング設定の統一管理

このモジュールは、エンジン全体のロギング設定を一元管理します。
"""
import json
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Dict, Any


class LoggingConfig:
    """ロギング設定クラス"""

    LEVELS = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }

    # モジュール別のログレベル設定
    MODULE_LEVELS = {
        'timetable_engine.application': 'INFO',
        'timetable_engine.domain.services': 'INFO',
        # 試行ごとの配置ログは量が多い
        'timetable_engine.domain.services.placement_engine': 'WARNING',
        'timetable_engine.domain.services.empty_slot_filler': 'WARNING',
        'timetable_engine.infrastructure': 'WARNING',
    }

    @classmethod
    def setup_logging(cls,
                      log_level: str = 'INFO',
                      log_file: Optional[Path] = None,
                      console_output: bool = True,
                      simple_format: bool = False) -> None:
        """ロギングを設定

        Args:
            log_level: デフォルトのログレベル
            log_file: ログファイルのパス（Noneの場合はファイル出力なし）
            console_output: コンソール出力を有効にするか
            simple_format: シンプルなフォーマットを使用するか
        """
        level = cls.LEVELS.get(log_level.upper(), logging.INFO)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        if simple_format:
            formatter = logging.Formatter('%(levelname)s: %(message)s')
        else:
            formatter = ContextFormatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

        if console_output:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # DEBUG指定時はモジュール別の抑制をかけない
        for module_name, level_name in cls.MODULE_LEVELS.items():
            module_level = cls.LEVELS.get(level_name, logging.INFO)
            logging.getLogger(module_name).setLevel(min(level, module_level) if level <= logging.DEBUG
                                                    else max(level, module_level))

    @classmethod
    def setup_development_logging(cls, log_file: Optional[Path] = None) -> None:
        """開発環境用のロギング設定"""
        cls.setup_logging(
            log_level='DEBUG',
            log_file=log_file,
            console_output=True,
            simple_format=False
        )

    @classmethod
    def setup_quiet_logging(cls) -> None:
        """静音モード（エラーのみ）"""
        cls.setup_logging(
            log_level='ERROR',
            log_file=None,
            console_output=True,
            simple_format=True
        )


class ContextFormatter(logging.Formatter):
    """コンテキスト情報を含むカスタムフォーマッター"""

    def format(self, record):
        formatted = super().format(record)

        if hasattr(record, 'context'):
            context_str = json.dumps(record.context, ensure_ascii=False, default=str)
            formatted += f"\n  Context: {context_str}"

        if record.levelno >= logging.ERROR and hasattr(record, 'error_details'):
            details = json.dumps(record.error_details, ensure_ascii=False, default=str)
            formatted += f"\n  Error Details: {details}"

        return formatted


class GenerationPhaseLogger:
    """生成フェーズ単位でコンテキストを付けるロガーラッパー"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.context: Dict[str, Any] = {}

    def set_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    def clear_context(self) -> None:
        self.context.clear()

    def _extra(self, **kwargs) -> Dict[str, Any]:
        merged = {**self.context, **kwargs}
        return {'context': merged} if merged else {}

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(message, extra=self._extra(**kwargs))

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(message, extra=self._extra(**kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(message, extra=self._extra(**kwargs))

    def phase_start(self, phase_name: str, **kwargs) -> None:
        """フェーズ開始ログ"""
        self.set_context(phase=phase_name)
        self.debug(f"=== {phase_name} 開始 ===", **kwargs)

    def phase_end(self, phase_name: str, success: bool = True, **kwargs) -> None:
        """フェーズ終了ログ"""
        status = "完了" if success else "失敗"
        self.debug(f"=== {phase_name} {status} ===", **kwargs)
        self.clear_context()


def get_logger(name: str) -> logging.Logger:
    """統一されたロガーを取得

    Args:
        name: ロガー名（通常は__name__）
    """
    return logging.getLogger(name)
