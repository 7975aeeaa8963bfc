"""
Main entry point for the File Compare Sampler application.

This module handles:
- Command line argument parsing
- Logging configuration
- Settings loading
- Console progress display
- Exception handling
- Exit codes
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional, TextIO

from sampler import APP_NAME, APP_VERSION
from sampler.core.models import ErrorCode, RunResult
from sampler.core.sampling import DEFAULT_NUMBER_OF_SAMPLES, DEFAULT_SAMPLE_SIZE_KB
from sampler.services.dataset_resolver import DatasetPathResolver, JsonDatasetPathResolver
from sampler.services.settings import SamplerSettings, SettingsManager, resolve_sample_size
from sampler.workers.base_worker import ProgressInfo
from sampler.workers.compare_worker import SampledCompareWorker


# =============================================================================
# Enums
# =============================================================================

class RunMode(Enum):
    """What the invocation compares."""
    PATHS = auto()      # Two files, two directories, or a file spec and a directory
    DATASET = auto()    # Storage and archive directories of a dataset


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    base_path: str = ""
    comparison_path: str = ""
    mode: RunMode = RunMode.PATHS
    dataset_name: Optional[str] = None
    dataset_catalog: Optional[str] = None
    number_of_samples: Optional[int] = None
    sample_size_bytes: Optional[int] = None
    log_to_file: bool = False
    log_file_path: str = ""
    log_directory: str = ""
    config_file: Optional[str] = None
    save_settings: bool = False
    log_level: str = "INFO"


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Custom log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def default_log_file_name() -> str:
    """Name of the log file when only a log directory is given."""
    return f"{APP_NAME}_log_{datetime.now():%Y-%m-%d}.txt"


def resolve_log_file(args: CommandLineArgs) -> Optional[Path]:
    """
    Work out where log messages should be written.

    Returns:
        Log file path, or None when logging to a file is disabled
    """
    if not args.log_to_file:
        return None

    log_file = Path(args.log_file_path) if args.log_file_path else Path(default_log_file_name())
    if args.log_directory and not log_file.is_absolute():
        log_file = Path(args.log_directory) / log_file
    return log_file


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    # Get numeric level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Create root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Exception Handling
# =============================================================================

class ExceptionHandler:
    """
    Global exception handler for unhandled exceptions.

    Logs the exception with its traceback.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle_exception(
        self,
        exc_type: type,
        exc_value: BaseException,
        exc_tb
    ) -> None:
        """Handle an unhandled exception."""
        # Don't handle keyboard interrupt
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return

        self.logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_tb)
        )

    def install(self) -> None:
        sys.excepthook = self.handle_exception


# =============================================================================
# Console Progress
# =============================================================================

class ConsoleProgressReporter:
    """
    Writes comparison progress to the console.

    Directory runs print "Processing: N%" every 25 percent and a dot at
    most every 250 ms in between; long file sections print their own
    percentage.
    """

    PERCENT_REPORT_INTERVAL = 25
    PROGRESS_DOT_INTERVAL = 0.25

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.reset()

    def reset(self) -> None:
        self._next_report_value = 0
        self._last_report_time = time.monotonic()
        self._line_open = False

    def on_progress(self, info: ProgressInfo) -> None:
        """Slot for the worker's progress_detail signal."""
        if info.phase == 'section':
            self._end_line()
            self.stream.write(f"   {info.label}, {info.percent:.1f}%")
            self._line_open = True
        elif info.percent >= self._next_report_value:
            reached = int(min(info.percent, 100) // self.PERCENT_REPORT_INTERVAL) * self.PERCENT_REPORT_INTERVAL
            self._end_line()
            self.stream.write(f"Processing: {reached}% ")
            self._line_open = True
            self._next_report_value = reached + self.PERCENT_REPORT_INTERVAL
            self._last_report_time = time.monotonic()
        elif time.monotonic() - self._last_report_time > self.PROGRESS_DOT_INTERVAL:
            self._last_report_time = time.monotonic()
            self.stream.write(".")
        self.stream.flush()

    def finish(self) -> None:
        """Terminate the progress line, if one was started."""
        self._end_line()
        self.stream.flush()

    def _end_line(self) -> None:
        if self._line_open:
            self.stream.write("\n")
            self._line_open = False


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "Compares two files (typically in separate directories) to check whether the start "
            "of the files match, the end of the files match, and selected sections inside the "
            "files also match. Useful for comparing large files without reading the entire file."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s file1.raw file2.raw              Compare two files
  %(prog)s dir1 dir2                        Compare two directories (including subdirectories)
  %(prog)s "dir1/*.raw" dir2                Compare matching files to same-named files in dir2
  %(prog)s --dataset NAME --dataset-catalog datasets.json
                                            Compare a dataset's storage directory to its archive
        """
    )

    # Positional arguments
    parser.add_argument(
        'base',
        nargs='?',
        default='',
        help='Base file, directory, or wildcard file spec'
    )
    parser.add_argument(
        'comparison',
        nargs='?',
        default='',
        help='Comparison file or directory'
    )

    # Dataset mode
    parser.add_argument(
        '--dataset',
        metavar='NAME',
        help="Compare a dataset's storage directory to its archive directory"
    )
    parser.add_argument(
        '--dataset-catalog',
        metavar='FILE',
        help='JSON catalog mapping dataset names to storage and archive paths'
    )

    # Sampling options
    parser.add_argument(
        '-n', '--samples',
        type=int,
        default=None,
        help=(f'Number of portions of each file to examine (default {DEFAULT_NUMBER_OF_SAMPLES}; '
              f'minimum 2, indicating the beginning and the end)')
    )
    size_group = parser.add_argument_group(
        'sample size',
        f'Bytes to read from each file portion (default {DEFAULT_SAMPLE_SIZE_KB} KB). '
        'If more than one is given, the largest byte value is used.'
    )
    size_group.add_argument('--bytes', type=int, default=None, help='Sample size in bytes')
    size_group.add_argument('--kb', type=int, default=None, help='Sample size in kilobytes')
    size_group.add_argument('--mb', type=int, default=None, help='Sample size in megabytes')
    size_group.add_argument('--gb', type=int, default=None, help='Sample size in gigabytes')

    # Configuration
    parser.add_argument(
        '-c', '--config',
        help='Settings file path'
    )
    parser.add_argument(
        '--save-settings',
        action='store_true',
        help='Save the sample and logging settings of this invocation as the new defaults'
    )

    # Logging
    parser.add_argument(
        '-L', '--log',
        nargs='?',
        const='',
        default=None,
        metavar='LOG_FILE',
        help='Log messages to a file; optionally give the file path'
    )
    parser.add_argument(
        '--log-dir',
        metavar='DIR',
        help='Directory where the log file should be written'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        help='Log level'
    )

    # Version
    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {APP_VERSION}'
    )

    # Parse
    parsed = parser.parse_args(args)

    paths_given = bool(parsed.base) and bool(parsed.comparison)
    if parsed.dataset is None and not paths_given and not (parsed.save_settings and not parsed.base):
        parser.error(
            "You must specify two files, two directories, a file spec and a directory, "
            "or --dataset followed by a dataset name"
        )

    # Build result
    result = CommandLineArgs()
    result.base_path = parsed.base
    result.comparison_path = parsed.comparison
    result.dataset_catalog = parsed.dataset_catalog
    result.config_file = parsed.config
    result.save_settings = parsed.save_settings
    result.number_of_samples = parsed.samples

    if parsed.dataset is not None:
        result.mode = RunMode.DATASET
        result.dataset_name = parsed.dataset

    if any(value is not None for value in (parsed.bytes, parsed.kb, parsed.mb, parsed.gb)):
        result.sample_size_bytes = resolve_sample_size(parsed.bytes, parsed.kb, parsed.mb, parsed.gb)

    # Log file
    if parsed.log is not None or parsed.log_dir:
        result.log_to_file = True
        result.log_file_path = parsed.log or ""
        result.log_directory = parsed.log_dir or ""

    # Log level
    if parsed.verbose:
        result.log_level = 'DEBUG'
    else:
        result.log_level = parsed.log_level

    return result


# =============================================================================
# Application Setup
# =============================================================================

def setup_settings(args: CommandLineArgs) -> SamplerSettings:
    """
    Load settings and apply command line overrides.

    Args:
        args: Parsed command line arguments

    Returns:
        Settings for this run
    """
    manager = SettingsManager(Path(args.config_file) if args.config_file else None)
    stored = manager.settings

    return SamplerSettings(
        number_of_samples=(args.number_of_samples
                           if args.number_of_samples is not None else stored.number_of_samples),
        sample_size_bytes=(args.sample_size_bytes
                           if args.sample_size_bytes is not None else stored.sample_size_bytes),
        log_to_file=args.log_to_file or stored.log_to_file,
        log_file_path=args.log_file_path or stored.log_file_path,
        log_directory=args.log_directory or stored.log_directory,
        dataset_catalog=args.dataset_catalog or stored.dataset_catalog,
    )


def setup_resolver(settings: SamplerSettings) -> Optional[DatasetPathResolver]:
    """Create the dataset resolver, if a catalog is configured."""
    if not settings.dataset_catalog:
        return None
    return JsonDatasetPathResolver(settings.dataset_catalog)


def run_comparison(
    args: CommandLineArgs,
    settings: SamplerSettings,
    reporter: Optional[ConsoleProgressReporter] = None
) -> RunResult:
    """
    Run one comparison on the calling thread.

    Returns:
        RunResult of the worker, or an UNSPECIFIED_ERROR result if it failed
    """
    reporter = reporter or ConsoleProgressReporter()

    worker = SampledCompareWorker(
        base_arg=args.base_path,
        compare_arg=args.comparison_path,
        settings=settings,
        dataset_name=args.dataset_name if args.mode == RunMode.DATASET else None,
        resolver=setup_resolver(settings),
    )
    worker.signals.progress_detail.connect(reporter.on_progress)
    worker.signals.status.connect(lambda message: logging.debug(message))

    worker.run()
    reporter.finish()

    if worker.error is not None:
        error_type, message = worker.error
        logging.error(f"Error while processing: {error_type}: {message}")
        return RunResult(False, ErrorCode.UNSPECIFIED_ERROR, message)

    return worker.result


def main(argv: Optional[List[str]] = None) -> int:
    """
    Application entry point.

    Returns:
        Exit code (0 if the files or directories match)
    """
    args = parse_arguments(argv)
    settings = setup_settings(args)

    args.log_to_file = settings.log_to_file
    args.log_file_path = settings.log_file_path
    args.log_directory = settings.log_directory

    logger = setup_logging(args.log_level, resolve_log_file(args))
    ExceptionHandler(logger).install()

    logging.debug(f"{APP_NAME} {APP_VERSION} starting")

    if args.save_settings:
        saved = SettingsManager(Path(args.config_file) if args.config_file else None).save(settings)
        if args.mode == RunMode.PATHS and not args.base_path:
            return int(ErrorCode.NO_ERROR) if saved else int(ErrorCode.UNSPECIFIED_ERROR)

    result = run_comparison(args, settings)

    if not result.matched and result.error_code not in (ErrorCode.NO_ERROR, ErrorCode.MISMATCH):
        logging.error(f"Error while processing: {result.detail}")

    return result.exit_code


if __name__ == '__main__':
    sys.exit(main())
