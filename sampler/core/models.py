"""
Core data models for the sampled file comparison.

This module defines the data structures shared by the comparison engine:
- Sample window models
- File comparison result models
- Directory reconciliation models
- Progress reporting models

All models are UI-agnostic and type-hinted; value objects are frozen.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Optional


# =============================================================================
# Enumerations
# =============================================================================

class WindowPosition(Enum):
    """Where a sample window sits in the file."""
    START = auto()      # First bytes of the file
    END = auto()        # Last bytes of the file
    INTERIOR = auto()   # Evenly spaced window between start and end


class ResultKind(Enum):
    """Classification of a file comparison outcome."""
    MATCH = auto()               # Everything examined was identical
    INVALID_PATH = auto()        # Empty or blank path supplied
    NOT_FOUND = auto()           # One of the files does not exist
    LENGTH_MISMATCH = auto()     # File sizes differ
    MISMATCH = auto()            # Full comparison found a difference
    END_MISMATCH = auto()        # Start window matched, end window did not
    START_MISMATCH = auto()      # End window matched, start window did not
    BOTH_ENDS_MISMATCH = auto()  # Neither the start nor the end matched
    MIDDLE_MISMATCH = auto()     # Start and end matched, an interior window did not
    ERROR = auto()               # I/O error while reading


class ErrorCode(IntEnum):
    """Error codes reported by a comparison run (used as process exit codes)."""
    NO_ERROR = 0
    MISMATCH = 1
    INVALID_INPUT_PATH = 2
    BASE_NOT_FOUND = 3
    COMPARISON_NOT_FOUND = 4
    READ_ERROR = 5
    DATASET_LOOKUP_FAILED = 6
    UNSPECIFIED_ERROR = -1


# =============================================================================
# Sampling Models
# =============================================================================

@dataclass(frozen=True)
class SampleWindow:
    """A contiguous byte range selected for comparison."""
    offset: int                 # Byte position of the first byte
    length: int                 # Number of bytes to compare
    position: WindowPosition
    index: int = 0              # 1-based sample number

    @property
    def end(self) -> int:
        """Offset one past the last byte of the window."""
        return self.offset + self.length


# =============================================================================
# File Comparison Models
# =============================================================================

@dataclass(frozen=True)
class ComparisonResult:
    """
    Result of comparing two files or a section of two files.

    `detail` is always populated with a human-readable explanation;
    when `matched` is False it names the specific reason.
    """
    matched: bool
    detail: str
    kind: ResultKind = ResultKind.MATCH
    offset: Optional[int] = None            # First mismatching byte, if known
    percent_examined: Optional[float] = None

    @classmethod
    def match(cls, detail: str = "Files match", percent_examined: Optional[float] = None) -> 'ComparisonResult':
        return cls(True, detail, ResultKind.MATCH, percent_examined=percent_examined)

    @classmethod
    def failure(cls, kind: ResultKind, detail: str, offset: Optional[int] = None) -> 'ComparisonResult':
        return cls(False, detail, kind, offset)

    @property
    def is_error(self) -> bool:
        return self.kind == ResultKind.ERROR

    def with_detail(self, kind: ResultKind, detail: str) -> 'ComparisonResult':
        """Copy of this result reclassified with a new detail string."""
        return ComparisonResult(
            matched=self.matched,
            detail=detail,
            kind=kind,
            offset=self.offset,
            percent_examined=self.percent_examined,
        )


@dataclass(frozen=True)
class SampleOutcome:
    """One evaluated window and its result."""
    window: SampleWindow
    result: ComparisonResult

    @property
    def matched(self) -> bool:
        return self.result.matched


@dataclass
class SampledComparison:
    """Every window evaluated during a sampled comparison, in order."""
    file_length: int
    outcomes: list[SampleOutcome] = field(default_factory=list)

    def add(self, window: SampleWindow, result: ComparisonResult) -> SampleOutcome:
        outcome = SampleOutcome(window, result)
        self.outcomes.append(outcome)
        return outcome

    @property
    def bytes_examined(self) -> int:
        return sum(outcome.window.length for outcome in self.outcomes)

    @property
    def percent_examined(self) -> float:
        if self.file_length <= 0:
            return 100.0
        return min(100.0, self.bytes_examined / self.file_length * 100)

    def mismatches(self) -> list[SampleOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.matched]

    def earliest_mismatch(self) -> Optional[SampleOutcome]:
        """The failed window whose mismatch lies closest to the start of the file."""
        failed = self.mismatches()
        if not failed:
            return None
        return min(
            failed,
            key=lambda o: o.result.offset if o.result.offset is not None else o.window.offset
        )


# =============================================================================
# Directory Reconciliation Models
# =============================================================================

@dataclass
class ReconcileTally:
    """Running counts for one directory walk."""
    total_source_files: int = 0
    matched_count: int = 0
    missing_count: int = 0
    mismatched_count: int = 0
    skipped_count: int = 0
    unreadable_dir_count: int = 0   # Base subdirectories that could not be listed

    @property
    def all_matched(self) -> bool:
        return (self.missing_count == 0 and self.mismatched_count == 0
                and self.unreadable_dir_count == 0)

    def __str__(self) -> str:
        return (f"files={self.total_source_files} matched={self.matched_count} "
                f"missing={self.missing_count} mismatched={self.mismatched_count} "
                f"skipped={self.skipped_count} unreadable_dirs={self.unreadable_dir_count}")


@dataclass(frozen=True)
class ReconcileResult:
    """Final verdict of a directory reconciliation."""
    matched: bool
    tally: ReconcileTally
    detail: str
    error_code: ErrorCode = ErrorCode.NO_ERROR


@dataclass(frozen=True)
class RunResult:
    """Outcome of one invocation of the comparer."""
    matched: bool
    error_code: ErrorCode
    detail: str = ""
    tally: Optional[ReconcileTally] = None

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 on match, otherwise non-zero."""
        if self.matched:
            return 0
        if self.error_code == ErrorCode.NO_ERROR:
            return int(ErrorCode.MISMATCH)
        return int(self.error_code)


# =============================================================================
# Progress Models
# =============================================================================

@dataclass
class CompareProgress:
    """Progress of a comparison operation."""
    phase: str          # 'section', 'comparing'
    current_path: str
    items_processed: int
    total_items: int
    percent: float


@dataclass
class ProgressThrottle:
    """
    Limits how often progress is reported.

    One instance is shared by every section of a single file comparison.
    """
    interval: float = 2.0
    last_time: float = field(default_factory=time.monotonic)

    def ready(self) -> bool:
        """Return True (and restart the interval) if enough time has passed."""
        now = time.monotonic()
        if now - self.last_time >= self.interval:
            self.last_time = now
            return True
        return False
