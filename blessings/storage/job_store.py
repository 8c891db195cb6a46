"""Storage for batch jobs."""

import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

from blessings.models.schemas import BatchJob


class JobStore(ABC):
    """Keyed storage of batch jobs."""

    @abstractmethod
    def get(self, batch_id: str) -> Optional[BatchJob]:
        """Return the job or None."""

    @abstractmethod
    def set(self, batch_id: str, job: BatchJob) -> None:
        """Insert or replace a job."""

    @abstractmethod
    def delete(self, batch_id: str) -> bool:
        """Remove a job; returns True if it existed."""

    @abstractmethod
    def has(self, batch_id: str) -> bool:
        """Return True if a job is stored under batch_id."""

    @abstractmethod
    def items(self) -> list[tuple[str, BatchJob]]:
        """Return a snapshot of (batch_id, job) pairs, safe to iterate while the store changes."""


class InMemoryJobStore(JobStore):
    """Process-local job store. Jobs do not survive a restart."""

    def __init__(self, logger: Optional[Any] = None):
        """
        Initialize the store.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger
        self._jobs: dict[str, BatchJob] = {}
        self._lock = threading.Lock()

    def get(self, batch_id: str) -> Optional[BatchJob]:
        with self._lock:
            return self._jobs.get(batch_id)

    def set(self, batch_id: str, job: BatchJob) -> None:
        with self._lock:
            self._jobs[batch_id] = job
        if self.logger is not None:
            self.logger.debug(f"Stored batch {batch_id} ({len(job.items)} items)")

    def delete(self, batch_id: str) -> bool:
        with self._lock:
            removed = self._jobs.pop(batch_id, None) is not None
        if removed and self.logger is not None:
            self.logger.debug(f"Removed batch {batch_id}")
        return removed

    def has(self, batch_id: str) -> bool:
        with self._lock:
            return batch_id in self._jobs

    def items(self) -> list[tuple[str, BatchJob]]:
        with self._lock:
            return list(self._jobs.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
