"""
=============================================================================
BOUNDED WORKER POOL
=============================================================================

Runs connection handlers on a fixed set of worker threads.

=============================================================================
WHY NOT A THREAD PER CONNECTION?
=============================================================================

    for conn in accept_connections():
        threading.Thread(target=handle, args=(conn,)).start()

is the simplest possible server, and it has no upper bound: every
connection costs a thread stack, and a burst of slow clients can exhaust
memory. The pool puts two hard limits on that:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept loop ──submit()──► [ task queue, maxsize=queue_size ]      │
    │                                     │                                │
    │                                     │ get()                          │
    │                                     ▼                                │
    │                  ┌──────────┐ ┌──────────┐     ┌──────────┐         │
    │                  │ Worker 0 │ │ Worker 1 │ ... │ Worker N │         │
    │                  └──────────┘ └──────────┘     └──────────┘         │
    │                                                                      │
    │   N = max_workers  → at most N connections handled at once         │
    │   queue_size       → at most this many accepted and waiting        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

When the queue is full, submit() blocks the accept loop. New clients then
wait in the kernel's listen backlog instead of inside the process.

Each task is still independent: workers share nothing but the queue.

=============================================================================
SHUTDOWN
=============================================================================

One ``None`` ("poison pill") per worker is queued after the real tasks.
A worker that takes a pill exits its loop.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


def _remaining(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return max(0.0, deadline - time.time())


class WorkerState(Enum):
    """Worker thread states."""
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred call: ``func(*args, **kwargs)``.

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        kwargs: Keyword arguments.
        submitted_at: When the task entered the queue.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Pulls tasks off the shared queue until it receives a poison pill.

    A task that raises is logged with its traceback; the worker keeps
    going. One bad connection never takes a worker down.
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        # daemon=True: a stuck client cannot keep the process alive at exit
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in {time.time() - start_time:.3f}s "
                f"(queued {start_time - task.submitted_at:.3f}s)"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(
                f"Worker {self.worker_id} task failed after {time.time() - start_time:.3f}s: {e}"
            )
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool with a bounded task queue.

    Usage:
        pool = ThreadPool(max_workers=16, queue_size=64)
        pool.start()
        pool.submit(handler.handle, args=(conn,))
        ...
        pool.shutdown(wait=True)
    """

    def __init__(self, max_workers: int = 16, queue_size: int = 64):
        """
        Args:
            max_workers: Number of worker threads, created by start().
            queue_size: Maximum number of tasks waiting for a worker.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        self.max_workers = max_workers
        self.queue_size = queue_size

        # queue.Queue does its own locking; maxsize makes put() block
        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    def start(self):
        """Create and start all worker threads. Idempotent."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.max_workers} workers")
            for worker_id in range(self.max_workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue ``func(*args, **kwargs)`` for a worker.

        Args:
            func: The function to execute.
            args: Positional arguments.
            kwargs: Keyword arguments.
            block: Wait for room when the queue is full.
            queue_timeout: Longest wait for room, None = no limit.

        Returns:
            True if queued, False if the queue stayed full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            return False
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish first. If False, tasks still in
                  the queue are dropped (their connections are NOT closed
                  here; callers that care drain them beforehand).
            timeout: Longest wait for the whole shutdown, queue drain and
                     worker exits together. None = no limit.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        deadline = None if timeout is None else time.time() + timeout

        if wait:
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Thread pool shutdown timed out with tasks pending")
                    break
                time.sleep(0.05)
        else:
            self._discard_pending()

        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                break  # Workers still busy; daemon threads end with the process

        for worker in self._workers:
            worker.join(timeout=_remaining(deadline))

        logger.info(f"Thread pool stopped: {self.stats['tasks']}")
        self._workers.clear()
        self._started = False

    def _discard_pending(self):
        while True:
            try:
                self._task_queue.get_nowait()
            except queue.Empty:
                return
            self._task_queue.task_done()

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def pending_tasks(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logs and tests."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
