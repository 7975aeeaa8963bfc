"""
Workers for comparison runs.

Workers wrap the comparison engine and publish its progress through
Qt signals, so any front end can observe a run.
"""

from sampler.workers.base_worker import BaseWorker, ProgressInfo, RunSignals, WorkerState
from sampler.workers.compare_worker import SampledCompareWorker

__all__ = [
    'BaseWorker',
    'ProgressInfo',
    'RunSignals',
    'WorkerState',
    'SampledCompareWorker',
]
