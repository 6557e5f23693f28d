"""
Fixed-size worker pool draining a queue of tasks
"""

import logging
import threading
from dataclasses import dataclass, field
from queue import Queue
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_CONCURRENCY = 10

_STOP = object()


@dataclass
class TaskFailure(Generic[T]):
    """A task whose handler raised"""

    task: T
    error: BaseException


@dataclass
class BatchResult(Generic[T]):
    """Outcome of one WorkerPool.run call"""

    succeeded: List[T] = field(default_factory=list)
    failed: List[TaskFailure] = field(default_factory=list)
    cancelled: List[T] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cancelled

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def merge(self, other: 'BatchResult') -> None:
        self.succeeded.extend(other.succeeded)
        self.failed.extend(other.failed)
        self.cancelled.extend(other.cancelled)


class WorkerPool(Generic[T]):
    """Runs a handler over a batch of tasks with at most `concurrency` at once.

    Every task is handed to exactly one worker and attempted once. A handler
    exception is recorded for that task and the worker moves on, so one
    failure never stops the rest of the batch.
    """

    def __init__(self, concurrency: int = DEFAULT_CONCURRENCY, name: str = "worker"):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.concurrency = concurrency
        self.name = name

    def run(
        self,
        tasks: Iterable[T],
        handler: Callable[[T], object],
        cancel_event: Optional[threading.Event] = None,
        on_result: Optional[Callable[[T, Optional[BaseException]], None]] = None,
    ) -> BatchResult:
        """Process all tasks and return once every worker has exited.

        cancel_event is checked before each task; tasks taken after it is set
        are reported as cancelled without calling the handler.
        on_result(task, error) is called from the worker thread after each
        attempt, error being None on success.
        """
        queue: Queue = Queue()
        for task in tasks:
            queue.put(task)
        for _ in range(self.concurrency):
            queue.put(_STOP)

        results = [BatchResult() for _ in range(self.concurrency)]
        threads = []
        for worker_id in range(self.concurrency):
            t = threading.Thread(
                target=self._work,
                args=(worker_id, queue, handler, results[worker_id], cancel_event, on_result),
                name=f"{self.name}-{worker_id}",
                daemon=True,
            )
            t.start()
            threads.append(t)

        for t in threads:
            t.join()

        total = BatchResult()
        for result in results:
            total.merge(result)
        return total

    def _work(self, worker_id, queue, handler, result, cancel_event, on_result):
        while True:
            task = queue.get()
            if task is _STOP:
                return

            if cancel_event is not None and cancel_event.is_set():
                result.cancelled.append(task)
                continue

            error = None
            try:
                handler(task)
            except Exception as e:
                logger.error(f"{self.name} {worker_id}: task {task} failed: {e}")
                error = e
                result.failed.append(TaskFailure(task, e))
            else:
                result.succeeded.append(task)

            if on_result is not None:
                try:
                    on_result(task, error)
                except Exception:
                    logger.exception(f"{self.name} {worker_id}: result callback failed for {task}")
