"""A pool of worker threads that hand queued log messages to their loggers."""

from __future__ import annotations

import heapq
import itertools
import os
import sys
import threading
import time
from typing import Optional

from flexlog.message_pool import Message, MessagePool, MessageState


def _default_thread_count() -> int:
    return (os.cpu_count() or 2) // 2


class _QueueData:
    """One worker's priority queue; higher priority first, FIFO among equals."""

    __slots__ = ("cond", "heap", "pending", "stopping", "_order")

    def __init__(self) -> None:
        self.cond = threading.Condition(threading.Lock())
        self.heap: list[tuple[int, int, Message]] = []
        self.pending = 0
        self.stopping = False
        self._order = itertools.count()

    def push(self, message: Message, priority: int) -> None:
        heapq.heappush(self.heap, (-priority, next(self._order), message))
        self.pending += 1

    def pop(self) -> Message:
        _, _, message = heapq.heappop(self.heap)
        self.pending -= 1
        return message


class LoggerThreadPool:
    """Worker threads, each with its own priority queue of messages.

    A message is processed by calling ``message.logger.process_message(message)``
    while the message is still active. Messages that cannot be queued are
    released back to the message pool.
    """

    DEFAULT_TIMEOUT = 5.0

    def __init__(self, thread_count: Optional[int] = None, pool: Optional[MessagePool] = None) -> None:
        count = max(1, _default_thread_count() if thread_count is None else thread_count)
        self._pool = pool if pool is not None else MessagePool()
        self._running = True
        self._flushing = False
        self._resize_lock = threading.Lock()
        self._next_queue = itertools.count()
        self._queues = [_QueueData() for _ in range(count)]
        self._workers: list[threading.Thread] = []
        self._active = count
        for index in range(count):
            self._start_worker(index)

    @property
    def pool(self) -> MessagePool:
        return self._pool

    def __enter__(self) -> "LoggerThreadPool":
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()

    def _start_worker(self, index: int) -> None:
        worker = threading.Thread(
            target=self._work, args=(self._queues[index],), name=f"flexlog-worker-{index}", daemon=True
        )
        self._workers.append(worker)
        worker.start()

    def _notify_all_queues(self) -> None:
        for queue in self._queues:
            with queue.cond:
                queue.cond.notify_all()

    def shutdown(self, flush: bool = True, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Stop accepting messages, optionally flush, then stop the workers."""
        if not self._running:
            return
        self._running = False

        if flush:
            self._flushing = True
            self.flush(timeout)
            self._flushing = False

        self._notify_all_queues()

        deadline = time.monotonic() + timeout
        with self._resize_lock:
            workers = list(self._workers)
        for worker in workers:
            if not worker.is_alive():
                continue
            remaining = deadline - time.monotonic()
            if remaining > 0:
                worker.join(remaining)
            if worker.is_alive():
                print("Warning: Thread join timeout in ThreadPool shutdown", file=sys.stderr)

    def flush(self, timeout: float = DEFAULT_TIMEOUT) -> bool:
        """Wait until every queue has been emptied; return False on timeout."""
        deadline = time.monotonic() + timeout
        total = 0
        for queue in self._queues:
            with queue.cond:
                total += queue.pending
                queue.cond.notify()
        if total == 0:
            return True

        while time.monotonic() < deadline:
            time.sleep(0.01)
            if self.pending_count() == 0:
                return True

        print(
            f"Warning: ThreadPool flush timed out with {self.pending_count()} messages remaining",
            file=sys.stderr,
        )
        return False

    def enqueue(self, message: Optional[Message], priority: int = 0) -> None:
        """Queue ``message`` for processing; higher ``priority`` runs first."""
        if not 0 <= priority <= 255:
            raise ValueError("priority must be between 0 and 255")
        if not self._running or self._flushing or message is None or not message.is_active():
            if message is not None:
                self._pool.release(message)
            return

        message.add_ref()
        queue = self._queues[self._select_queue()]
        with queue.cond:
            queue.push(message, priority)
            queue.cond.notify()

    def _select_queue(self) -> int:
        active = self._active
        if active == 1:
            return 0
        return next(self._next_queue) % active

    def pending_count(self) -> int:
        """Messages queued but not yet taken by a worker."""
        total = 0
        for queue in self._queues:
            with queue.cond:
                total += queue.pending
        return total

    def thread_count(self) -> int:
        return len(self._workers)

    def is_running(self) -> bool:
        return self._running

    def resize(self, count: int) -> bool:
        """Change the number of workers; return False once shut down."""
        count = max(1, count)
        with self._resize_lock:
            if not self._running:
                return False
            current = len(self._workers)
            if count == current:
                return True

            if count < current:
                self._active = count
                for queue in self._queues[count:current]:
                    with queue.cond:
                        queue.stopping = True
                        queue.cond.notify_all()
                for worker in self._workers[count:]:
                    worker.join()
                del self._workers[count:]
            else:
                while len(self._queues) < count:
                    self._queues.append(_QueueData())
                for index in range(current, count):
                    self._queues[index].stopping = False
                    self._start_worker(index)
                self._active = count
            return True

    def _should_exit(self, queue: _QueueData) -> bool:
        return queue.stopping or (not self._running and not self._flushing)

    def _work(self, queue: _QueueData) -> None:
        while True:
            with queue.cond:
                queue.cond.wait_for(lambda: bool(queue.heap) or self._should_exit(queue))
                if not queue.heap:
                    if self._should_exit(queue):
                        break
                    continue
                message = queue.pop()
            self._process(message)
        self._drain(queue)

    def _process(self, message: Message) -> None:
        if not message.is_active():
            return
        try:
            logger = message.logger
            if logger is not None:
                logger.process_message(message)
        except Exception as exc:  # a failing logger must not stop the worker
            print(f"Warning: message processing failed: {exc!r}", file=sys.stderr)
        finally:
            self._release_reference(message)

    def _release_reference(self, message: Message) -> None:
        if message.release_ref() and message.state is MessageState.RELEASING:
            self._pool.finalize_release(message)

    def _drain(self, queue: _QueueData) -> None:
        with queue.cond:
            while queue.heap:
                self._release_reference(queue.pop())