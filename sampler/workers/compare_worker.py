"""
Worker for sampled file and folder comparison.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import QObject

from sampler.core.models import RunResult
from sampler.core.processor import SampledFileComparer
from sampler.services.dataset_resolver import DatasetPathResolver
from sampler.services.settings import SamplerSettings
from sampler.workers.base_worker import BaseWorker


class SampledCompareWorker(BaseWorker):
    """
    Worker for one comparison invocation.

    Compares two paths, or the two directories of a dataset when
    `dataset_name` is given.
    """

    def __init__(
        self,
        base_arg: str = "",
        compare_arg: str = "",
        settings: Optional[SamplerSettings] = None,
        dataset_name: Optional[str] = None,
        resolver: Optional[DatasetPathResolver] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.base_arg = base_arg
        self.compare_arg = compare_arg
        self.settings = settings or SamplerSettings()
        self.dataset_name = dataset_name
        self.resolver = resolver

    def do_work(self) -> RunResult:
        comparer = SampledFileComparer(
            number_of_samples=self.settings.number_of_samples,
            sample_size_bytes=self.settings.sample_size_bytes,
            resolver=self.resolver,
            progress_callback=self.forward_progress
        )

        if self.dataset_name:
            self.report_status(f"Comparing dataset {self.dataset_name}...")
            result = comparer.run_dataset(self.dataset_name)
        else:
            self.report_status(f"Comparing {self.base_arg}...")
            result = comparer.run(self.base_arg, self.compare_arg)

        self.report_status("Complete" if result.matched else f"Complete: {result.detail}")
        return result
