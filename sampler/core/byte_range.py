"""
Byte range comparison.

Compares a section of two open binary streams with:
- Chunk-based reads to bound memory use
- Absolute offset of the first difference
- Throttled progress reporting
"""

from __future__ import annotations

import logging
import os
from typing import BinaryIO, Callable, Optional

from sampler.core.models import (
    ComparisonResult,
    CompareProgress,
    ProgressThrottle,
    ResultKind,
)


CHUNK_SIZE_BYTES = 50 * 1024 * 1024


def stream_length(stream: BinaryIO) -> int:
    """Length of a seekable stream; the current position is preserved."""
    position = stream.tell()
    length = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return length


def first_difference(left: bytes, right: bytes) -> Optional[int]:
    """Index of the first differing byte, or None if the chunks are equal."""
    if left == right:
        return None
    for i, (lb, rb) in enumerate(zip(left, right)):
        if lb != rb:
            return i
    # One chunk is a prefix of the other
    return min(len(left), len(right))


class ByteRangeComparator:
    """
    Compares `[start_offset, start_offset + length)` of two streams.

    A negative start offset compares the entire stream.
    """

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE_BYTES,
        progress_callback: Optional[Callable[[CompareProgress], None]] = None
    ):
        self.chunk_size = max(1, chunk_size)
        self.progress_callback = progress_callback

    def compare_section(
        self,
        base_stream: BinaryIO,
        compare_stream: BinaryIO,
        start_offset: int = -1,
        length: int = -1,
        description: str = "Full comparison",
        throttle: Optional[ProgressThrottle] = None
    ) -> ComparisonResult:
        """
        Compare a section of two streams byte by byte.

        Args:
            base_stream: Base file, opened for binary reading
            compare_stream: Comparison file, opened for binary reading
            start_offset: First byte to compare; negative for the whole stream
            length: Bytes to compare; ignored when start_offset is negative
            description: Label used in progress reports
            throttle: Shared progress throttle for the enclosing comparison

        Returns:
            ComparisonResult with "Files match" or "Mismatch at offset N"
        """
        throttle = throttle or ProgressThrottle()

        try:
            base_length = stream_length(base_stream)

            if start_offset < 0:
                start_offset = 0
                end_offset = base_length
            else:
                end_offset = min(start_offset + max(1, length), base_length)

                if start_offset > base_length:
                    return ComparisonResult.failure(
                        ResultKind.ERROR, "StartOffset is beyond the end of the base file"
                    )
                if start_offset > stream_length(compare_stream):
                    return ComparisonResult.failure(
                        ResultKind.ERROR, "StartOffset is beyond the end of the comparison file"
                    )

            base_stream.seek(start_offset)
            compare_stream.seek(start_offset)

            position = start_offset
            while position < end_offset:
                bytes_to_read = min(self.chunk_size, end_offset - position)

                base_chunk = base_stream.read(bytes_to_read)
                compare_chunk = compare_stream.read(bytes_to_read)
                if not base_chunk:
                    break

                index = first_difference(base_chunk, compare_chunk)
                if index is not None:
                    offset = position + index
                    return ComparisonResult.failure(
                        ResultKind.MISMATCH, f"Mismatch at offset {offset}", offset
                    )

                position += len(base_chunk)
                self._report_progress(description, position - start_offset,
                                      end_offset - start_offset, throttle)

        except OSError as e:
            logging.error(f"ByteRangeComparator - Error comparing {description.lower()}: {e}")
            return ComparisonResult.failure(ResultKind.ERROR, f"Error comparing file section: {e}")

        return ComparisonResult.match()

    def _report_progress(
        self,
        description: str,
        processed: int,
        total: int,
        throttle: ProgressThrottle
    ) -> None:
        if self.progress_callback is None or not throttle.ready():
            return
        percent = processed / total * 100 if total > 0 else 100.0
        self.progress_callback(CompareProgress(
            phase='section',
            current_path=description,
            items_processed=processed,
            total_items=total,
            percent=percent
        ))
