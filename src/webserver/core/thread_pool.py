"""
=============================================================================
THREAD POOL (opt-in)
=============================================================================

By default the accept loop handles each connection itself, one at a time.
Setting workers > 0 hands accepted connections to this pool instead:

    accept loop ──put──► ┌──────────────┐ ──get──► Worker-0 ─┐
                         │  task queue  │ ──get──► Worker-1 ─┼─► handler(conn)
                         └──────────────┘ ──get──► Worker-2 ─┘

Each connection is still one strict request → response exchange on one
thread; the pool only lets several connections be in flight at once.

=============================================================================
SHUTDOWN: POISON PILLS
=============================================================================

shutdown() puts one None per worker on the queue. A worker that gets None
exits its loop. Because the queue is FIFO, connections queued before the
shutdown are still handled first.

=============================================================================
"""

import threading
import queue
import logging
from typing import Callable, Optional, Any


logger = logging.getLogger(__name__)


class Worker(threading.Thread):
    """Worker thread that runs tasks pulled from the shared queue."""

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        # daemon=True: a stuck client can't keep the process alive at exit
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                func, args = task
                func(*args)
                self.tasks_completed += 1
            except Exception as e:
                # The connection handler never raises; this is a bug guard
                logger.exception(f"Worker {self.worker_id} task failed: {e}")
                self.tasks_failed += 1
            finally:
                self.task_queue.task_done()

        logger.debug(f"Worker {self.worker_id} stopped")


class ThreadPool:
    """
    Fixed-size pool of worker threads fed by a bounded queue.

    Usage:
        pool = ThreadPool(workers=4)
        pool.start()
        pool.submit(handler, conn)
        ...
        pool.shutdown()
    """

    def __init__(self, workers: int = 4, queue_size: int = 100):
        """
        Args:
            workers: Number of worker threads.
            queue_size: Maximum connections waiting for a worker.
                        submit() blocks when this many are queued, which
                        pushes back on the accept loop.
        """
        self.workers = workers
        self._task_queue: queue.Queue[Optional[tuple]] = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False

    def start(self):
        """Start the worker threads. Calling it twice is a no-op."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.workers} workers")
            for worker_id in range(self.workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True

    def submit(self, func: Callable[..., Any], *args: Any) -> None:
        """
        Queue func(*args) for a worker.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        self._task_queue.put((func, args))

    def shutdown(self, timeout: Optional[float] = None):
        """
        Let queued tasks finish, then stop every worker.

        Args:
            timeout: Seconds to wait for each worker to exit.
        """
        with self._lock:
            if not self._started:
                return
            self._started = False

        logger.info("Shutting down thread pool...")

        for _ in self._workers:
            self._task_queue.put(None)

        for worker in self._workers:
            worker.join(timeout=timeout)

        self._workers.clear()
        logger.info("Thread pool shutdown complete")

    @property
    def stats(self) -> dict:
        """Worker and task counts, for debugging."""
        return {
            "workers": len(self._workers),
            "queued": self._task_queue.qsize(),
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
