"""時間割生成エンジンのカスタム例外定義

設定不備は生成開始前に致命的エラーとして送出し、
試行中の配置失敗はその試行の中で回復させます。
"""


class TimetableGenerationError(Exception):
    """時間割生成の基底例外クラス"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TimetableGenerationError):
    """設定が無効な場合の例外（生成開始前に送出される）"""
    def __init__(self, message: str, config_key: str = None, details: dict = None):
        super().__init__(message, details)
        self.config_key = config_key


class DataLoadingError(TimetableGenerationError):
    """設定ファイルの読み込み失敗時の例外"""
    def __init__(self, message: str, file_path: str = None, details: dict = None):
        super().__init__(message, details)
        self.file_path = file_path


class ScheduleAssignmentError(TimetableGenerationError):
    """スケジュール割り当て失敗時の例外"""
    def __init__(self, message: str, time_slot=None, class_ref=None, subject=None, details: dict = None):
        super().__init__(message, details)
        self.time_slot = time_slot
        self.class_ref = class_ref
        self.subject = subject


class PhaseExecutionError(TimetableGenerationError):
    """生成フェーズ実行失敗時の例外"""
    def __init__(self, message: str, phase_name: str = None, details: dict = None):
        super().__init__(message, details)
        self.phase_name = phase_name


class ScheduleWriteError(TimetableGenerationError):
    """時間割の出力失敗時の例外"""
    def __init__(self, message: str, file_path: str = None, details: dict = None):
        super().__init__(message, details)
        self.file_path = file_path
