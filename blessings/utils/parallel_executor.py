"""Parallel Executor - runs the independent provider calls of one recipient concurrently."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional

TaskResult = tuple[Any, Optional[Exception]]


class ParallelExecutor:
    """Fan-out/join over a small thread pool with per-task error capture."""

    def __init__(self, logger: Any, max_workers: int = 2):
        """
        Initialize parallel executor.

        Args:
            logger: Logger instance
            max_workers: Pool size (two speech segments per recipient)
        """
        self.logger = logger
        self.max_workers = max_workers

    def run_all(
        self,
        tasks: list[Callable[[], Any]],
        task_names: Optional[list[str]] = None,
        batch_id: Optional[str] = None,
    ) -> list[TaskResult]:
        """
        Run tasks and wait for all of them.

        Results keep the order of tasks; a failing task yields (None, exception)
        and never affects the others.

        Args:
            tasks: Zero-argument callables
            task_names: Optional names used in log lines
            batch_id: Optional batch ID for log context

        Returns:
            One (result, exception) tuple per task
        """
        if not tasks:
            return []

        prefix = f"[{batch_id}] " if batch_id else ""
        names = [
            task_names[i] if task_names and i < len(task_names) else f"task {i + 1}" for i in range(len(tasks))
        ]

        start_time = time.time()
        results: list[TaskResult] = [(None, None)] * len(tasks)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(task): index for index, task in enumerate(tasks)}
            for future in as_completed(futures):
                index = futures[future]
                elapsed = time.time() - start_time
                try:
                    results[index] = (future.result(), None)
                    self.logger.debug(f"{prefix}✅ {names[index]} finished in {elapsed:.2f}s")
                except Exception as e:
                    self.logger.warning(f"{prefix}❌ {names[index]} failed after {elapsed:.2f}s: {e}")
                    results[index] = (None, e)

        failed = sum(1 for _, error in results if error is not None)
        self.logger.debug(f"{prefix}{len(tasks) - failed}/{len(tasks)} tasks succeeded")
        return results
