"""
Core comparison engine.

Provides:
- Sample window selection
- Chunked byte range comparison
- Full and sampled file comparison
- Directory tree reconciliation
"""

from sampler.core.models import (
    ComparisonResult,
    CompareProgress,
    ErrorCode,
    ReconcileResult,
    ReconcileTally,
    ResultKind,
    RunResult,
    SampleWindow,
    WindowPosition,
)
from sampler.core.sampling import (
    SampleSelector,
    select_windows,
    DEFAULT_NUMBER_OF_SAMPLES,
    DEFAULT_SAMPLE_SIZE_BYTES,
)
from sampler.core.byte_range import ByteRangeComparator
from sampler.core.file_comparer import FileComparator
from sampler.core.reconciler import DirectoryReconciler
from sampler.core.processor import SampledFileComparer

__all__ = [
    # Models
    'ComparisonResult',
    'CompareProgress',
    'ErrorCode',
    'ReconcileResult',
    'ReconcileTally',
    'ResultKind',
    'RunResult',
    'SampleWindow',
    'WindowPosition',
    # Sampling
    'SampleSelector',
    'select_windows',
    'DEFAULT_NUMBER_OF_SAMPLES',
    'DEFAULT_SAMPLE_SIZE_BYTES',
    # Comparison
    'ByteRangeComparator',
    'FileComparator',
    'DirectoryReconciler',
    'SampledFileComparer',
]
