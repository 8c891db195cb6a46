"""Expiry Sweeper - evicts old batches and releases what they still hold."""

import threading
import time
from typing import Any, Optional

from blessings.core.config import Settings
from blessings.services.batch_resources import release_batch_resources
from blessings.services.voice_provider import VoiceProvider
from blessings.storage.job_store import JobStore


class ExpirySweeper:
    """Periodically removes batches older than the expiry window."""

    def __init__(self, settings: Settings, logger: Any, job_store: JobStore, voice_provider: Optional[VoiceProvider] = None):
        """
        Initialize the sweeper.

        Args:
            settings: Application settings (expiry window and sweep interval)
            logger: Logger instance
            job_store: Store to sweep
            voice_provider: Provider owning voice clones of evicted batches
        """
        self.settings = settings
        self.logger = logger
        self.job_store = job_store
        self.voice_provider = voice_provider
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sweep(self, now: Optional[float] = None) -> list[str]:
        """
        Evict every batch created more than the expiry window ago.

        Args:
            now: Current epoch seconds (defaults to time.time())

        Returns:
            Evicted batch ids
        """
        now = time.time() if now is None else now
        expired = []
        for batch_id, job in self.job_store.items():
            if now - job.created_at <= self.settings.job_expiry_seconds:
                continue
            try:
                release_batch_resources(job, self.voice_provider, self.logger)
            except Exception as e:
                self.logger.warning(f"Releasing resources of expired batch {batch_id} failed: {e}")
            self.job_store.delete(batch_id)
            expired.append(batch_id)

        if expired:
            self.logger.info(f"Evicted {len(expired)} expired batches")
        return expired

    def _loop(self) -> None:
        while not self._stop_event.wait(self.settings.job_cleanup_interval_seconds):
            try:
                self.sweep()
            except Exception as e:
                self.logger.exception(f"Expiry sweep failed: {e}")

    def start(self) -> None:
        """Start the background sweep thread (no-op if already running)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="expiry-sweeper", daemon=True)
        self._thread.start()
        self.logger.info(
            f"Expiry sweeper started (interval {self.settings.job_cleanup_interval_seconds:.0f}s, "
            f"expiry {self.settings.job_expiry_seconds:.0f}s)"
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the background thread and wait for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
