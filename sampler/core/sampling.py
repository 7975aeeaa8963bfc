"""
Sample window selection.

Chooses which byte ranges of a file are compared:
- The start of the file
- The end of the file
- Evenly spaced, center-aligned interior windows
"""

from __future__ import annotations

from sampler.core.models import SampleWindow, WindowPosition


DEFAULT_NUMBER_OF_SAMPLES = 10
DEFAULT_SAMPLE_SIZE_KB = 512
DEFAULT_SAMPLE_SIZE_BYTES = DEFAULT_SAMPLE_SIZE_KB * 1024

MINIMUM_NUMBER_OF_SAMPLES = 2  # Beginning and end
MINIMUM_SAMPLE_SIZE_BYTES = 64
MAXIMUM_SAMPLE_SIZE_BYTES = 512 * 1024 * 1024


def clamp_sample_count(sample_count: int) -> int:
    """Clamp the number of samples to at least 2."""
    return max(MINIMUM_NUMBER_OF_SAMPLES, int(sample_count))


def clamp_sample_size(sample_size_bytes: int) -> int:
    """Clamp the sample size to the range 64 bytes .. 512 MB."""
    return min(MAXIMUM_SAMPLE_SIZE_BYTES, max(MINIMUM_SAMPLE_SIZE_BYTES, int(sample_size_bytes)))


def bytes_to_human_readable(size: int) -> str:
    """Format a byte count; values below 10000 are shown as-is."""
    if size < 10000:
        return str(size)

    scaled = float(size)
    units = ["", "KB", "MB", "GB", "TB", "PB"]
    index = 0
    while scaled >= 10000 and index < len(units) - 1:
        scaled /= 1024
        index += 1

    return f"{round(scaled)} {units[index]}"


def use_full_comparison(file_length: int, sample_count: int, sample_size_bytes: int) -> bool:
    """
    Decide whether a full sequential comparison is cheaper than sampling.

    When the samples would cover the whole file anyway, reading it
    sequentially avoids the seek bookkeeping.
    """
    return sample_count * sample_size_bytes >= file_length


class SampleSelector:
    """
    Computes the ordered list of windows to examine for a file.

    The order is significant: the start window first, then the end
    window, then the interior windows left to right.
    """

    def __init__(self, sample_count: int = DEFAULT_NUMBER_OF_SAMPLES,
                 sample_size_bytes: int = DEFAULT_SAMPLE_SIZE_BYTES):
        self.sample_count = clamp_sample_count(sample_count)
        self.sample_size_bytes = clamp_sample_size(sample_size_bytes)

    def select(self, file_length: int) -> list[SampleWindow]:
        """
        Select the windows for a file of the given length.

        Args:
            file_length: Size of the file in bytes

        Returns:
            Windows in evaluation order (start, end, interior...)
        """
        if file_length <= 0:
            return []

        size = self.sample_size_bytes
        windows = [
            SampleWindow(0, min(size, file_length), WindowPosition.START, 1),
        ]

        end_offset = max(0, file_length - size)
        windows.append(
            SampleWindow(end_offset, file_length - end_offset, WindowPosition.END, 2)
        )

        if self.sample_count > 2 and file_length > size * 2:
            windows.extend(self._interior_windows(file_length))

        return windows

    def _interior_windows(self, file_length: int) -> list[SampleWindow]:
        """Center-aligned windows on the boundaries of equal segments."""
        size = self.sample_size_bytes
        mid_section_samples = self.sample_count - 2
        segment_length = file_length / (mid_section_samples + 1)

        windows = []
        for k in range(1, mid_section_samples + 1):
            offset = max(0, int(round(k * segment_length - size / 2.0)))
            if offset >= file_length:
                break
            windows.append(SampleWindow(
                offset,
                min(size, file_length - offset),
                WindowPosition.INTERIOR,
                k + 2
            ))
        return windows


def select_windows(file_length: int, sample_count: int, sample_size_bytes: int) -> list[SampleWindow]:
    """Convenience wrapper around SampleSelector.select."""
    return SampleSelector(sample_count, sample_size_bytes).select(file_length)
