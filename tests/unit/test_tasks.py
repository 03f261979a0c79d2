import threading
import time

import pytest

from devctl.control.tasks import CommandQueue, Task
from devctl.transport import commands
from devctl.transport.errors import QueueOverflow
from devctl.transport.result import Result


def test_fifo_order():
    q = CommandQueue(capacity=4)
    tasks = [Task(commands.RESET, 100), Task(commands.STATUS, 100), Task(commands.IMAGE, 100)]
    for t in tasks:
        q.put(t)
    assert len(q) == 3
    assert [q.get(0.1) for _ in tasks] == tasks
    assert q.get(0.01) is None

def test_full_queue_fails_fast():
    q = CommandQueue(capacity=1)
    q.put(Task(commands.RESET, 100))
    start = time.monotonic()
    with pytest.raises(QueueOverflow) as exc:
        q.put(Task(commands.STATUS, 100))
    assert time.monotonic() - start < 0.05
    assert exc.value.partial == b""
    assert "queue full" in str(exc.value)

def test_full_queue_blocks_up_to_timeout():
    q = CommandQueue(capacity=1)
    q.put(Task(commands.RESET, 100))
    start = time.monotonic()
    with pytest.raises(QueueOverflow):
        q.put(Task(commands.STATUS, 100), timeout_s=0.2)
    assert time.monotonic() - start >= 0.15

def test_blocked_put_proceeds_once_space_frees():
    q = CommandQueue(capacity=1)
    first = Task(commands.RESET, 100)
    second = Task(commands.STATUS, 100)
    q.put(first)
    threading.Timer(0.1, q.get, args=(1.0,)).start()
    q.put(second, timeout_s=2.0)
    assert q.drain() == [second]

def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        CommandQueue(capacity=0)

def test_task_completes_once_and_wakes_waiter():
    task = Task(commands.RESET, 100)
    assert not task.done
    threading.Timer(0.05, task.complete, args=(Result.ok(b"ISOK"),)).start()
    result = task.wait(timeout_s=2.0)
    assert task.done
    assert result.data == b"ISOK"

def test_task_rejects_negative_timeout():
    with pytest.raises(ValueError):
        Task(commands.RESET, -1)
