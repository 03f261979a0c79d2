from __future__ import annotations

import queue
from concurrent.futures import Future
from dataclasses import dataclass, field

from devctl.transport.commands import CommandDescriptor
from devctl.transport.errors import ExchangeError, QueueOverflow
from devctl.transport.result import Result

DEFAULT_CAPACITY = 32


@dataclass(eq=False)
class Task:
    """
    One submitted command and the single slot its Result lands in.

    The manager thread completes the task exactly once; the submitting
    caller waits on it and reads the Result.
    """
    command: CommandDescriptor
    timeout_ms: int
    future: Future = field(default_factory=Future, repr=False)

    def __post_init__(self) -> None:
        if self.timeout_ms < 0:
            raise ValueError("timeout_ms must not be negative")

    @property
    def done(self) -> bool:
        return self.future.done()

    def complete(self, result: Result) -> None:
        self.future.set_result(result)

    def fail(self, error: ExchangeError) -> None:
        self.complete(Result.failed(error))

    def wait(self, timeout_s: float | None = None) -> Result:
        return self.future.result(timeout=timeout_s)


class CommandQueue:
    """Bounded FIFO of pending tasks shared by callers and the manager."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._q: "queue.Queue[Task]" = queue.Queue(maxsize=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._q.qsize()

    def put(self, task: Task, timeout_s: float = 0.0) -> None:
        """
        Enqueue, failing fast when full. A positive timeout_s blocks for space
        up to that long first. Either way a full queue raises QueueOverflow.
        """
        try:
            if timeout_s > 0:
                self._q.put(task, timeout=timeout_s)
            else:
                self._q.put_nowait(task)
        except queue.Full:
            raise QueueOverflow(
                f"command queue full ({self._capacity} pending), rejected {task.command}"
            ) from None

    def get(self, timeout_s: float) -> Task | None:
        """Next task, or None if none arrived within timeout_s."""
        try:
            return self._q.get(timeout=timeout_s)
        except queue.Empty:
            return None

    def drain(self) -> list[Task]:
        tasks = []
        while True:
            try:
                tasks.append(self._q.get_nowait())
            except queue.Empty:
                return tasks
