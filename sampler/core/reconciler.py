"""
Directory tree reconciliation.

Walks a base directory tree and checks that every file has an identical
counterpart at the same relative path in a comparison tree:
- Recursive, depth-first traversal with consistent ordering
- Missing file accounting
- Per-file sampled comparison
- Error resilience (one bad file never aborts the walk)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterator, Optional

from sampler.core.file_comparer import FileComparator
from sampler.core.models import (
    CompareProgress,
    ErrorCode,
    ReconcileResult,
    ReconcileTally,
)
from sampler.core.sampling import DEFAULT_NUMBER_OF_SAMPLES, DEFAULT_SAMPLE_SIZE_BYTES


def trim_trailing_separators(path: Path | str) -> str:
    """Remove trailing path separators, keeping a bare root intact."""
    text = str(path)
    separators = os.sep + (os.altsep or "")
    trimmed = text.rstrip(separators)
    return trimmed or text[:1]


class DirectoryReconciler:
    """
    Matches every file of a base tree to its counterpart in a comparison tree.

    Usage:
        reconciler = DirectoryReconciler()
        result = reconciler.reconcile(base_dir, compare_dir, 10, 512 * 1024)
        print(result.tally.missing_count)
    """

    def __init__(
        self,
        comparator: Optional[FileComparator] = None,
        progress_callback: Optional[Callable[[CompareProgress], None]] = None
    ):
        self.comparator = comparator or FileComparator()
        self._progress_callback = progress_callback

    def reconcile(
        self,
        base_dir: Path | str,
        compare_dir: Path | str,
        sample_count: int = DEFAULT_NUMBER_OF_SAMPLES,
        sample_size_bytes: int = DEFAULT_SAMPLE_SIZE_BYTES
    ) -> ReconcileResult:
        """
        Compare each file in base_dir to the file at the same relative path in compare_dir.

        Args:
            base_dir: Base directory tree
            compare_dir: Comparison directory tree
            sample_count: Number of samples per file
            sample_size_bytes: Bytes per sample

        Returns:
            ReconcileResult with the verdict and the final tally
        """
        tally = ReconcileTally()

        base_root = Path(trim_trailing_separators(base_dir))
        compare_root = Path(trim_trailing_separators(compare_dir))

        if not base_root.is_dir():
            detail = f"Base directory to compare not found: {base_root}"
            logging.error(f"DirectoryReconciler - {detail}")
            return ReconcileResult(False, tally, detail, ErrorCode.BASE_NOT_FOUND)

        if not compare_root.is_dir():
            detail = f"Comparison directory not found: {compare_root}"
            logging.error(f"DirectoryReconciler - {detail}")
            return ReconcileResult(False, tally, detail, ErrorCode.COMPARISON_NOT_FOUND)

        logging.info("Comparing directories: ")
        logging.info(f"    {base_root.resolve()}")
        logging.info(f"vs. {compare_root.resolve()}")

        base_files = list(self._walk_files(base_root, tally))
        total_files = len(base_files)

        for processed, (relative_dir, base_file) in enumerate(base_files, start=1):
            if relative_dir == Path('.'):
                comparison_file = compare_root / base_file.name
            else:
                comparison_file = compare_root / relative_dir / base_file.name

            self.compare_pair(base_file, comparison_file, tally, sample_count, sample_size_bytes)
            self.report_progress(str(base_file), processed, total_files)

        return self.summarize(base_root, tally)

    def compare_pair(
        self,
        base_file: Path,
        comparison_file: Path,
        tally: ReconcileTally,
        sample_count: int,
        sample_size_bytes: int
    ) -> None:
        """Compare one base file to its expected counterpart and count the outcome."""
        if not comparison_file.is_file():
            logging.warning(f"  File {base_file.name} not found in the comparison directory")
            tally.missing_count += 1
        else:
            result = self.comparator.compare(
                base_file, comparison_file,
                sample_count, sample_size_bytes,
                report_on_match=True
            )
            if result.matched:
                tally.matched_count += 1
            else:
                tally.mismatched_count += 1

        tally.total_source_files += 1

    def _walk_files(self, base_root: Path, tally: ReconcileTally) -> Iterator[tuple[Path, Path]]:
        """Yield (relative subdirectory, file path) for every file under base_root."""

        def on_walk_error(error: OSError):
            tally.skipped_count += 1
            tally.unreadable_dir_count += 1
            logging.error(f"DirectoryReconciler - Cannot read directory {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(base_root, topdown=True, onerror=on_walk_error):
            # Sort for consistent ordering
            dirnames.sort()
            filenames.sort()

            current_dir = Path(dirpath)
            try:
                relative_dir = current_dir.relative_to(base_root)
            except ValueError:
                for filename in filenames:
                    tally.skipped_count += 1
                    logging.warning(
                        f"Cannot determine the parent directory path; skipping {current_dir / filename}"
                    )
                continue

            for filename in filenames:
                file_path = current_dir / filename
                if file_path.is_file():
                    yield relative_dir, file_path

    def summarize(self, base_root: Path, tally: ReconcileTally) -> ReconcileResult:
        """
        Turn the finished tally into a verdict.

        A base subdirectory that could not be listed fails the run.
        """
        logging.debug(f"DirectoryReconciler - {tally}")

        if tally.unreadable_dir_count > 0:
            detail = (f"Could not read {tally.unreadable_dir_count} directory(ies) under {base_root}; "
                      f"Mis-matched file count: {tally.mismatched_count}; "
                      f"Matched file count: {tally.matched_count}")
            logging.error(detail)
            return ReconcileResult(False, tally, detail, ErrorCode.READ_ERROR)

        if tally.total_source_files == 0:
            detail = f"Base directory was empty; nothing to compare: {base_root}"
            logging.warning(detail)
            return ReconcileResult(True, tally, detail)

        if tally.all_matched:
            detail = f"Directories match; checked {tally.total_source_files} file(s)"
            logging.info(detail)
            return ReconcileResult(True, tally, detail)

        counts = (f"Mis-matched file count: {tally.mismatched_count}; "
                  f"Matched file count: {tally.matched_count}")

        if tally.missing_count > 0:
            detail = (f"Comparison directory is missing {tally.missing_count} file(s) "
                      f"that the base directory contains")
            logging.warning(detail)
            logging.warning(counts)
            return ReconcileResult(False, tally, f"{detail}; {counts}", ErrorCode.MISMATCH)

        detail = f"Directories do not match; {counts}"
        logging.warning(detail)
        return ReconcileResult(False, tally, detail, ErrorCode.MISMATCH)

    def report_progress(self, current_path: str, processed: int, total: int) -> None:
        """Notify the progress callback that another file has been handled."""
        if self._progress_callback:
            self._progress_callback(CompareProgress(
                phase='comparing',
                current_path=current_path,
                items_processed=processed,
                total_items=total,
                percent=processed / total * 100 if total else 100.0
            ))
