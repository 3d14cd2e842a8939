"""CLIメインインターフェース"""
import argparse
import sys
from pathlib import Path

from ...application.services.auto_generator import ProgressListener
from ...application.use_cases.generate_schedule import GenerateScheduleUseCase
from ...application.use_cases.request_models import (
    GenerateScheduleRequest,
    ValidateConfigurationRequest,
)
from ...application.use_cases.validate_configuration import ValidateConfigurationUseCase
from ...domain.exceptions import ConfigurationError, DataLoadingError, TimetableGenerationError
from ...infrastructure.config.logging_config import LoggingConfig
from ...shared.mixins.logging_mixin import LoggingMixin

EXIT_SUCCESS = 0
EXIT_INCOMPLETE = 1
EXIT_CONFIG_ERROR = 2


class ConsoleProgress(ProgressListener):
    """試行の進捗を標準出力に表示する"""

    def __init__(self, interval: int = 10):
        self.interval = max(1, interval)

    def on_attempt(self, attempt: int, best_score: float, fill_rate: float) -> None:
        if attempt % self.interval == 0:
            print(f"  試行{attempt}: 最良スコア {best_score:.2f} (今回の充足率 {fill_rate:.1f}%)")


class TimetableCLI(LoggingMixin):
    """時間割生成システムのCLIインターフェース"""

    def run(self, args=None) -> int:
        """CLIメイン実行"""
        parser = self.create_parser()
        parsed_args = parser.parse_args(args)

        if parsed_args.verbose:
            LoggingConfig.setup_development_logging()
        elif parsed_args.quiet:
            LoggingConfig.setup_quiet_logging()
        else:
            LoggingConfig.setup_logging(log_level='INFO', simple_format=True)

        try:
            if parsed_args.command == "generate":
                return self.handle_generate_command(parsed_args)
            elif parsed_args.command == "validate":
                return self.handle_validate_command(parsed_args)
            else:
                parser.print_help()
                return EXIT_INCOMPLETE
        except (ConfigurationError, DataLoadingError) as e:
            self.log_error(f"設定エラー: {e}")
            print(f"設定エラー: {e.message}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        except TimetableGenerationError as e:
            self.log_error(f"実行エラー: {e}", exc_info=parsed_args.verbose)
            return EXIT_INCOMPLETE

    def create_parser(self) -> argparse.ArgumentParser:
        """コマンドライン引数パーサーを作成"""
        parser = argparse.ArgumentParser(
            description="学校時間割自動生成システム",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
使用例:
  %(prog)s generate --config school.json                     # 時間割を生成して標準出力に表示
  %(prog)s generate --config school.json --output out.csv    # CSVに出力
  %(prog)s generate --config school.json --seed 42           # 乱数シードを固定して再現
  %(prog)s generate --config school.json --max-attempts 500  # 試行回数を増やす
  %(prog)s validate --config school.json                     # 設定ファイルの確認のみ

終了コード:
  0: 違反なしで目標充足率に到達
  1: 生成は完了したが違反または空きコマが残った
  2: 設定ファイルの不備
            """
        )

        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="詳細なログを出力"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="警告以上のログのみ出力"
        )

        subparsers = parser.add_subparsers(dest="command", help="利用可能なコマンド")

        generate_parser = subparsers.add_parser("generate", help="時間割を生成")
        generate_parser.add_argument(
            "--config", "-c",
            type=Path,
            required=True,
            help="学校設定ファイル (JSON)"
        )
        generate_parser.add_argument(
            "--output", "-o",
            type=Path,
            help="時間割の出力先CSV (省略時は標準出力に表示)"
        )
        generate_parser.add_argument(
            "--teacher-hours",
            type=Path,
            help="教員別時数表の出力先CSV"
        )
        generate_parser.add_argument(
            "--max-attempts",
            type=int,
            help="最大試行回数 (省略時は設定ファイルの値、未指定なら200)"
        )
        generate_parser.add_argument(
            "--seed",
            type=int,
            help="乱数シード"
        )
        generate_parser.add_argument(
            "--target-fill-rate",
            type=float,
            help="目標充足率(%%)"
        )
        generate_parser.add_argument(
            "--progress",
            action="store_true",
            help="試行ごとの進捗を表示"
        )

        validate_parser = subparsers.add_parser("validate", help="設定ファイルを検証")
        validate_parser.add_argument(
            "--config", "-c",
            type=Path,
            required=True,
            help="学校設定ファイル (JSON)"
        )

        return parser

    def handle_generate_command(self, args) -> int:
        """generateコマンドの処理"""
        request = GenerateScheduleRequest(
            config_file=args.config,
            output_file=args.output,
            teacher_hours_file=args.teacher_hours,
            max_attempts=args.max_attempts,
            seed=args.seed,
            target_fill_rate=args.target_fill_rate,
        )
        use_case = GenerateScheduleUseCase(progress=ConsoleProgress() if args.progress else None)
        result = use_case.execute(request)
        generation = result.generation

        self.print_header("時間割生成")
        print(result.message)
        print(f"最良スコア: {generation.best_score:.2f} (試行{generation.best_attempt}回目), "
              f"終了理由: {generation.stop_reason.value}, 実行時間: {result.execution_time:.2f}秒")

        if generation.validation_report.violations:
            print()
            print("【制約違反】")
            for violation in generation.validation_report.violations[:20]:
                print(f"  - {violation.description}")
            remaining = len(generation.validation_report.violations) - 20
            if remaining > 0:
                print(f"  ...他{remaining}件")

        print()
        if result.output_file is not None:
            print(f"✓ 時間割を出力しました: {result.output_file}")
        else:
            frame = use_case.writer.schedule_to_frame(generation.schedule)
            print(frame.to_string(index=False, header=False))
        if request.teacher_hours_file is not None:
            print(f"✓ 教員別時数を出力しました: {request.teacher_hours_file}")

        return EXIT_SUCCESS if result.success else EXIT_INCOMPLETE

    def handle_validate_command(self, args) -> int:
        """validateコマンドの処理"""
        result = ValidateConfigurationUseCase().execute(ValidateConfigurationRequest(config_file=args.config))

        self.print_header("設定ファイル検証")
        if not result.is_valid:
            print(f"✗ {result.message}")
            return EXIT_CONFIG_ERROR

        print(f"✓ {result.message}")
        for line in result.details:
            print(f"  {line}")
        print(f"  生成対象: {result.class_count}クラス / {result.slot_count}コマ")
        return EXIT_SUCCESS

    def print_header(self, title: str) -> None:
        print("=" * 60)
        print(title)
        print("=" * 60)


def main(args=None) -> int:
    """メイン関数"""
    cli = TimetableCLI()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
