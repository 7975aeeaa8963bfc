"""
File pair comparison.

Decides whether two files match by:
- Checking that both exist and have the same length
- Comparing the whole file when that is cheaper than sampling
- Otherwise comparing the start, the end and interior sample windows
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from sampler.core.byte_range import ByteRangeComparator, CHUNK_SIZE_BYTES
from sampler.core.models import (
    ComparisonResult,
    CompareProgress,
    ProgressThrottle,
    ResultKind,
    SampledComparison,
    WindowPosition,
)
from sampler.core.sampling import (
    DEFAULT_NUMBER_OF_SAMPLES,
    DEFAULT_SAMPLE_SIZE_BYTES,
    SampleSelector,
    clamp_sample_count,
    clamp_sample_size,
    use_full_comparison,
)


def file_lengths_match(base_file: Path, comparison_file: Path) -> ComparisonResult:
    """
    Check that both files exist and have the same size.

    Returns:
        A matching result with "File lengths match", or the reason they differ
    """
    if not base_file.is_file():
        return ComparisonResult.failure(
            ResultKind.NOT_FOUND, f"Base file to compare not found: {base_file}"
        )

    if not comparison_file.is_file():
        return ComparisonResult.failure(
            ResultKind.NOT_FOUND, f"Comparison file not found: {comparison_file}"
        )

    base_length = base_file.stat().st_size
    comparison_length = comparison_file.stat().st_size
    if base_length != comparison_length:
        return ComparisonResult.failure(
            ResultKind.LENGTH_MISMATCH,
            f"Base file is {base_length / 1024.0:,.1f} KB; "
            f"comparison file is {comparison_length / 1024.0:,.1f} KB"
        )

    return ComparisonResult.match("File lengths match")


def _kind_for(result: ComparisonResult, mismatch_kind: ResultKind) -> ResultKind:
    """Read errors keep their kind; content differences get the window-specific kind."""
    return ResultKind.ERROR if result.is_error else mismatch_kind


class FileComparator:
    """
    Compares one pair of files, fully or by sampling.

    Each call opens and closes its own file handles, so one instance
    can be reused for any number of pairs.
    """

    def __init__(
        self,
        progress_callback: Optional[Callable[[CompareProgress], None]] = None,
        chunk_size: int = CHUNK_SIZE_BYTES
    ):
        self.progress_callback = progress_callback
        self.chunk_size = chunk_size

    def compare(
        self,
        base_path: Path | str,
        compare_path: Path | str,
        sample_count: int = DEFAULT_NUMBER_OF_SAMPLES,
        sample_size_bytes: int = DEFAULT_SAMPLE_SIZE_BYTES,
        report_on_match: bool = True
    ) -> ComparisonResult:
        """
        Compare two files.

        Args:
            base_path: Base file
            compare_path: File to compare against the base file
            sample_count: Number of samples; minimum 2 (beginning and end)
            sample_size_bytes: Bytes per sample; clamped to 64 bytes .. 512 MB
            report_on_match: Log the detail when the files match
                (mismatches are always logged)

        Returns:
            ComparisonResult with the verdict and a human-readable detail
        """
        sample_count = clamp_sample_count(sample_count)
        sample_size_bytes = clamp_sample_size(sample_size_bytes)

        if base_path is None or not str(base_path).strip():
            return ComparisonResult.failure(ResultKind.INVALID_PATH, "Base input file path is empty")
        if compare_path is None or not str(compare_path).strip():
            return ComparisonResult.failure(ResultKind.INVALID_PATH, "Input file path to compare is empty")

        base_file = Path(base_path)
        comparison_file = Path(compare_path)

        try:
            lengths = file_lengths_match(base_file, comparison_file)
            if not lengths.matched:
                result = lengths
            elif use_full_comparison(base_file.stat().st_size, sample_count, sample_size_bytes):
                result = self.compare_full(base_file, comparison_file)
            else:
                result = self.compare_sampled(base_file, comparison_file, sample_count, sample_size_bytes)
        except OSError as e:
            logging.error(f"FileComparator - Error comparing {base_file} and {comparison_file}: {e}")
            result = ComparisonResult.failure(ResultKind.ERROR, f"Error comparing files: {e}")

        paths_compared = f"{base_file}  vs. {comparison_file}"
        if not result.matched:
            logging.warning(f"{result.detail}: {paths_compared}")
        elif report_on_match:
            logging.info(f"{result.detail}: {paths_compared}")

        return result

    def compare_full(self, base_file: Path, comparison_file: Path) -> ComparisonResult:
        """Byte-by-byte comparison of the entire file."""
        lengths = file_lengths_match(base_file, comparison_file)
        if not lengths.matched:
            return lengths

        comparator = ByteRangeComparator(self.chunk_size, self.progress_callback)
        with open(base_file, 'rb') as base_stream, open(comparison_file, 'rb') as compare_stream:
            return comparator.compare_section(
                base_stream, compare_stream, -1, -1, "Full comparison", ProgressThrottle()
            )

    def compare_sampled(
        self,
        base_file: Path,
        comparison_file: Path,
        sample_count: int,
        sample_size_bytes: int
    ) -> ComparisonResult:
        """
        Compare the beginning, the end and the interior windows of two files.

        The start and end windows are evaluated first; any failure there
        stops the comparison before the interior windows are read.
        """
        lengths = file_lengths_match(base_file, comparison_file)
        if not lengths.matched:
            return lengths

        file_length = base_file.stat().st_size
        windows = SampleSelector(sample_count, sample_size_bytes).select(file_length)
        sampled = SampledComparison(file_length)

        comparator = ByteRangeComparator(self.chunk_size, self.progress_callback)
        throttle = ProgressThrottle()
        sample_total = clamp_sample_count(sample_count)

        with open(base_file, 'rb') as base_stream, open(comparison_file, 'rb') as compare_stream:
            for window in windows:
                description = f"Sample {window.index} of {sample_total}"
                result = comparator.compare_section(
                    base_stream, compare_stream,
                    window.offset, window.length,
                    description, throttle
                )
                sampled.add(window, result)

                if window.position == WindowPosition.END:
                    verdict = self._check_ends(sampled)
                    if verdict is not None:
                        return verdict
                elif window.position == WindowPosition.INTERIOR and not result.matched:
                    return result.with_detail(
                        _kind_for(result, ResultKind.MIDDLE_MISMATCH),
                        f"Files match at the beginning and end, but not in the middle; {result.detail}"
                    )

        percent = sampled.percent_examined
        return ComparisonResult.match(
            f"Files match (examined {percent:.2f}% of the file)", percent
        )

    def _check_ends(self, sampled: SampledComparison) -> Optional[ComparisonResult]:
        """Verdict after the start and end windows, or None to continue."""
        start, end = sampled.outcomes[0], sampled.outcomes[1]

        if start.matched and end.matched:
            return None

        if start.matched:
            return end.result.with_detail(
                _kind_for(end.result, ResultKind.END_MISMATCH),
                f"Files match at the beginning but not at the end; {end.result.detail}"
            )

        if end.matched:
            return start.result.with_detail(
                _kind_for(start.result, ResultKind.START_MISMATCH),
                f"Files match at the end but not at the beginning; {start.result.detail}"
            )

        earliest = sampled.earliest_mismatch()
        either_error = start.result.is_error or end.result.is_error
        return earliest.result.with_detail(
            ResultKind.ERROR if either_error else ResultKind.BOTH_ENDS_MISMATCH,
            f"Files do not match at the beginning or the end; {earliest.result.detail}"
        )
