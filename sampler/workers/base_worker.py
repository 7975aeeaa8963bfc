"""
Qt worker base for comparison runs.

A worker owns a single run and publishes what happens during it as Qt
signals:
- Per-file progress through directory and file spec runs
- Byte-level progress through long file sections
- Status messages
- The final RunResult, or the exception that ended the run

Workers can be called directly on the current thread (the command line
does this) or moved to a QThread by a front end.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from PyQt6.QtCore import QObject, QMutex, QMutexLocker, pyqtSignal, pyqtSlot

from sampler.core.models import CompareProgress


class WorkerState(Enum):
    """Lifecycle of a worker."""
    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()


@dataclass
class ProgressInfo:
    """A progress notification as seen by signal listeners."""
    phase: str                  # 'comparing' (files) or 'section' (bytes of one file)
    label: str                  # Current file path, or e.g. "Sample 3 of 10"
    processed: int
    total: int
    percent_hint: Optional[float] = None

    @classmethod
    def from_progress(cls, progress: CompareProgress) -> 'ProgressInfo':
        return cls(
            phase=progress.phase,
            label=progress.current_path,
            processed=progress.items_processed,
            total=progress.total_items,
            percent_hint=progress.percent,
        )

    @property
    def percent(self) -> float:
        if self.percent_hint is not None:
            return self.percent_hint
        if self.total <= 0:
            return 0.0
        return self.processed / self.total * 100

    @property
    def is_file_progress(self) -> bool:
        return self.phase == 'comparing'


class RunSignals(QObject):
    """
    Signals emitted during a comparison run.

    Listeners only observe; nothing they do changes the verdict.
    """
    # Files handled so far: (processed, total, current path)
    files_progress = pyqtSignal(int, int, str)

    # Every progress notification, as a ProgressInfo
    progress_detail = pyqtSignal(object)

    # Status message
    status = pyqtSignal(str)

    # Run started
    started = pyqtSignal()

    # Run finished with a RunResult
    finished = pyqtSignal(object)

    # Run ended by an exception: (exception type, message)
    failed = pyqtSignal(str, str)

    # WorkerState
    state_changed = pyqtSignal(object)


class WorkerMeta(type(QObject), type(ABC)):
    pass


class BaseWorker(QObject, ABC, metaclass=WorkerMeta):
    """
    Base class for comparison workers.

    Subclasses implement `do_work` and pass `forward_progress` to the
    comparison engine as its progress callback.

    Usage:
        worker = SampledCompareWorker(base, comparison, settings)
        worker.signals.finished.connect(on_finished)
        worker.run()
    """

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.signals = RunSignals()
        self._mutex = QMutex()
        self._state = WorkerState.PENDING
        self._result: Any = None
        self._error: Optional[tuple[str, str]] = None
        self.elapsed_seconds = 0.0

    @property
    def state(self) -> WorkerState:
        with QMutexLocker(self._mutex):
            return self._state

    @state.setter
    def state(self, value: WorkerState) -> None:
        with QMutexLocker(self._mutex):
            self._state = value
        self.signals.state_changed.emit(value)

    @property
    def result(self) -> Any:
        """Outcome of `do_work`, once the run completed."""
        return self._result

    @property
    def error(self) -> Optional[tuple[str, str]]:
        """(exception type, message), once the run failed."""
        return self._error

    @pyqtSlot()
    def run(self) -> None:
        """Execute the run and publish its outcome."""
        self.state = WorkerState.RUNNING
        self.signals.started.emit()
        start_time = time.monotonic()

        try:
            outcome = self.do_work()
        except Exception as e:
            logging.exception(f"{type(self).__name__} - Run failed")
            self._error = (type(e).__name__, str(e))
            self.state = WorkerState.FAILED
            self.signals.failed.emit(*self._error)
        else:
            self._result = outcome
            self.state = WorkerState.COMPLETED
            self.signals.finished.emit(outcome)
        finally:
            self.elapsed_seconds = time.monotonic() - start_time
            logging.debug(f"{type(self).__name__} - Finished in {self.elapsed_seconds:.1f} s")

    @abstractmethod
    def do_work(self) -> Any:
        """
        Perform the run.

        Returns:
            The outcome published through the `finished` signal
        """
        pass

    def forward_progress(self, progress: CompareProgress) -> None:
        """Publish a progress notification from the comparison engine."""
        info = ProgressInfo.from_progress(progress)
        if info.is_file_progress:
            self.signals.files_progress.emit(info.processed, info.total, info.label)
        self.signals.progress_detail.emit(info)

    def report_status(self, message: str) -> None:
        self.signals.status.emit(message)
