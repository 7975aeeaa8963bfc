"""
Comparison entry points.

Dispatches one invocation to the right comparison:
- Two files (or a file and a directory holding a file of the same name)
- Two directory trees
- A wildcard file spec and a directory
- A dataset name resolved to its storage and archive directories
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Callable, Optional

from sampler.core.file_comparer import FileComparator
from sampler.core.models import (
    CompareProgress,
    ErrorCode,
    ReconcileTally,
    ResultKind,
    RunResult,
)
from sampler.core.reconciler import DirectoryReconciler
from sampler.core.sampling import (
    DEFAULT_NUMBER_OF_SAMPLES,
    DEFAULT_SAMPLE_SIZE_BYTES,
    bytes_to_human_readable,
    clamp_sample_count,
    clamp_sample_size,
)
from sampler.services.dataset_resolver import DatasetLookupError, DatasetPathResolver


WILDCARD_CHARACTERS = ('*', '?')


def has_wildcard(path: str) -> bool:
    """Check if the file name part of a path contains wildcard characters."""
    return any(c in Path(path).name for c in WILDCARD_CHARACTERS)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class SampledFileComparer:
    """
    Compares files or directories by sampling.

    Usage:
        comparer = SampledFileComparer(number_of_samples=10, sample_size_bytes=512 * 1024)
        result = comparer.run("/data/run1.raw", "/archive/run1.raw")
        sys.exit(result.exit_code)
    """

    def __init__(
        self,
        number_of_samples: int = DEFAULT_NUMBER_OF_SAMPLES,
        sample_size_bytes: int = DEFAULT_SAMPLE_SIZE_BYTES,
        resolver: Optional[DatasetPathResolver] = None,
        progress_callback: Optional[Callable[[CompareProgress], None]] = None,
        comparator: Optional[FileComparator] = None
    ):
        self.number_of_samples = clamp_sample_count(number_of_samples)
        self.sample_size_bytes = clamp_sample_size(sample_size_bytes)
        self.resolver = resolver
        self.comparator = comparator or FileComparator(progress_callback)
        self.reconciler = DirectoryReconciler(self.comparator, progress_callback)
        self._last_parameter_display_values = ""

    def run(self, base_arg: str, compare_arg: str) -> RunResult:
        """
        Compare two files, two directories, or a file spec against a directory.

        Args:
            base_arg: Base file, directory or wildcard file spec
            compare_arg: Comparison file or directory

        Returns:
            RunResult with the verdict and error code
        """
        try:
            if _is_blank(base_arg):
                return self._fail(ErrorCode.INVALID_INPUT_PATH, "Base file or directory to compare is empty")

            base_path = Path(base_arg)
            if base_path.is_dir():
                return self.compare_directories(base_arg, compare_arg)

            # An existing file is never treated as a file spec
            if not base_path.exists() and has_wildcard(base_arg):
                return self.compare_file_spec(base_arg, compare_arg)

            return self.compare_file(base_arg, compare_arg)

        except Exception as e:
            logging.exception(f"SampledFileComparer - Error comparing {base_arg} and {compare_arg}")
            return RunResult(False, ErrorCode.UNSPECIFIED_ERROR, f"Error in run: {e}")

    def run_dataset(self, dataset_name: str) -> RunResult:
        """
        Compare the storage directory of a dataset to its archive directory.

        A failed lookup stops the run before any file is compared.
        """
        if self.resolver is None:
            return self._fail(ErrorCode.DATASET_LOOKUP_FAILED, "No dataset resolver configured")

        try:
            storage_path, archive_path = self.resolver.resolve(dataset_name)
        except DatasetLookupError as e:
            return self._fail(ErrorCode.DATASET_LOOKUP_FAILED, str(e))

        return self.run(storage_path, archive_path)

    def compare_directories(self, base_dir: str, compare_dir: str) -> RunResult:
        """Reconcile two directory trees."""
        if _is_blank(compare_dir):
            return self._fail(
                ErrorCode.INVALID_INPUT_PATH,
                f"Base item is a directory ({base_dir}), but the comparison item is empty; unable to continue"
            )

        if not Path(compare_dir).is_dir():
            return self._fail(
                ErrorCode.COMPARISON_NOT_FOUND,
                f"Base item is a directory ({base_dir}), but the comparison directory was not found: {compare_dir}"
            )

        self.show_parameters()
        result = self.reconciler.reconcile(
            base_dir, compare_dir,
            self.number_of_samples, self.sample_size_bytes
        )
        return RunResult(result.matched, result.error_code, result.detail, result.tally)

    def compare_file(self, base_file: str, compare_arg: str) -> RunResult:
        """
        Compare a single file.

        If compare_arg is a directory, the file with the same name in that
        directory is used.
        """
        base_path = Path(base_file)
        if not base_path.is_file():
            return self._fail(ErrorCode.BASE_NOT_FOUND, f"Base file to compare not found: {base_file}")

        if _is_blank(compare_arg):
            return self._fail(
                ErrorCode.INVALID_INPUT_PATH,
                f"Base item is a file ({base_file}), but the comparison item is empty; unable to continue"
            )

        compare_path = Path(compare_arg)
        if compare_path.is_dir():
            compare_path = compare_path / base_path.name
        elif not compare_path.is_file():
            return self._fail(
                ErrorCode.COMPARISON_NOT_FOUND,
                f"Base item is a file ({base_file}), but the comparison item was not found: {compare_arg}"
            )

        self.show_parameters()
        result = self.comparator.compare(
            base_path, compare_path,
            self.number_of_samples, self.sample_size_bytes,
            report_on_match=True
        )

        if result.matched:
            error_code = ErrorCode.NO_ERROR
        elif result.kind == ResultKind.ERROR:
            error_code = ErrorCode.READ_ERROR
        elif result.kind == ResultKind.NOT_FOUND:
            error_code = ErrorCode.COMPARISON_NOT_FOUND
        else:
            error_code = ErrorCode.MISMATCH

        return RunResult(result.matched, error_code, result.detail)

    def compare_file_spec(self, file_spec: str, compare_dir: str) -> RunResult:
        """
        Compare every file matching a wildcard spec to the same-named file in compare_dir.

        Only the directory named by the spec is searched (no recursion).
        """
        spec_path = Path(file_spec)
        source_dir = spec_path.parent
        pattern = spec_path.name

        if _is_blank(compare_dir) or not Path(compare_dir).is_dir():
            return self._fail(
                ErrorCode.COMPARISON_NOT_FOUND,
                f"Comparison directory not found: {compare_dir}"
            )

        if not source_dir.is_dir():
            return self._fail(ErrorCode.BASE_NOT_FOUND, f"Base directory to compare not found: {source_dir}")

        base_files = sorted(
            p for p in source_dir.iterdir()
            if p.is_file() and fnmatch.fnmatch(p.name, pattern)
        )
        if not base_files:
            return self._fail(ErrorCode.INVALID_INPUT_PATH, f"No files match the file spec: {file_spec}")

        self.show_parameters()
        tally = ReconcileTally()
        total_files = len(base_files)

        for processed, base_file in enumerate(base_files, start=1):
            self.reconciler.compare_pair(
                base_file, Path(compare_dir) / base_file.name, tally,
                self.number_of_samples, self.sample_size_bytes
            )
            self.reconciler.report_progress(str(base_file), processed, total_files)

        result = self.reconciler.summarize(source_dir, tally)
        return RunResult(result.matched, result.error_code, result.detail, result.tally)

    def show_parameters(self) -> None:
        """Log the sample parameters, once per distinct set of values."""
        display_values = f"{self.number_of_samples}_{self.sample_size_bytes}"
        if display_values == self._last_parameter_display_values:
            return

        logging.info(f"Number of samples: {self.number_of_samples}")
        logging.info(f"Sample Size:       {bytes_to_human_readable(self.sample_size_bytes)}")
        self._last_parameter_display_values = display_values

    @staticmethod
    def _fail(error_code: ErrorCode, detail: str) -> RunResult:
        logging.error(detail)
        return RunResult(False, error_code, detail)
