from __future__ import annotations

import logging
import threading
import time

from devctl.control.tasks import CommandQueue, Task
from devctl.transport.commands import MAX_DATAGRAM_SIZE, CommandDescriptor
from devctl.transport.errors import (
    ConnectionClosed,
    EngineClosed,
    ExchangeError,
    IOFailure,
    Timeout,
)
from devctl.transport.result import Result
from devctl.transport.udp import DatagramChannel

# a short read plus one full datagram always fits, so the kernel never truncates
SCRATCH_SIZE = 2 * MAX_DATAGRAM_SIZE
IDLE_POLL_S = 0.1


class Manager:
    """
    The one thread that talks to the device.

    Drains the command queue one task at a time and runs a single
    send/receive exchange per task. Every dequeued task is completed with
    a Result, success or failure; a failing exchange never ends the loop.
    """

    def __init__(
        self,
        channel: DatagramChannel,
        tasks: CommandQueue,
        stop: threading.Event,
        logger: logging.Logger,
        idle_poll_s: float = IDLE_POLL_S,
    ):
        self._channel = channel
        self._tasks = tasks
        self._stop = stop
        self._log = logger
        self._idle_poll_s = idle_poll_s
        self._scratch = bytearray(SCRATCH_SIZE)

    def run(self) -> None:
        self._log.info("manager started for %s", self._channel.endpoint)
        try:
            while not self._stop.is_set():
                task = self._tasks.get(self._idle_poll_s)
                if task is None:
                    continue
                self._execute(task)
        finally:
            for task in self._tasks.drain():
                task.fail(EngineClosed(f"engine closed before {task.command} ran"))
            self._channel.close()
            self._log.info("manager stopped for %s", self._channel.endpoint)

    def _execute(self, task: Task) -> None:
        try:
            result = Result.ok(self.exchange(task.command, task.timeout_ms))
            self._log.debug("%s -> %s", task.command, result)
        except ExchangeError as e:
            self._log.warning("%s failed: %s", task.command, e)
            result = Result.failed(e)
        except Exception as e:
            self._log.exception("unexpected error running %s", task.command)
            result = Result.failed(IOFailure(f"unexpected error: {e}", cause=e))
        task.complete(result)

    def exchange(self, cmd: CommandDescriptor, timeout_ms: int) -> bytes:
        size = cmd.datagram_size
        expected = cmd.expected_total
        data = bytearray(expected)
        scratch = memoryview(self._scratch)
        received = 0
        filled = 0
        packets = 0

        try:
            # leftovers from an earlier (timed out) exchange would corrupt this one
            stale = self._channel.flush(self._scratch)
            if stale:
                self._log.debug("flushed %d stale bytes before %s", stale, cmd)

            self._channel.send(cmd.payload)
            started = time.monotonic()
            deadline = started + timeout_ms / 1000.0

            while received < expected:
                now = time.monotonic()
                if now >= deadline:
                    break
                if not self._channel.wait_readable(deadline - now):
                    self._log.debug("zero-readiness wait for %s", cmd)
                    continue

                try:
                    n = self._channel.read_into(scratch[filled:])
                except BlockingIOError:
                    continue

                filled += n
                if filled < size:
                    # fixed size datagrams; the rest should follow into the same scratch
                    self._log.debug("short data %d bytes (%d/%d) for transfer %d", n, filled, size, packets)
                    continue

                # copy length and offset advance are always the same count
                take = min(filled, expected - received)
                data[received:received + take] = scratch[:take]
                received += take
                filled = 0
                packets += 1

        except (ConnectionRefusedError, ConnectionResetError) as e:
            # nobody is listening at the far end any more
            raise ConnectionClosed(
                f"connection to {self._channel.endpoint} closed, expecting {size} for transfer {packets}",
                bytes(data[:received]),
            ) from e
        except OSError as e:
            raise IOFailure(f"exception: {e}", bytes(data[:received]), cause=e) from e

        if received < expected:
            elapsed_ms = (time.monotonic() - started) * 1000.0
            raise Timeout(
                f"timeout after {elapsed_ms:.0f}ms after transfer {packets}",
                bytes(data[:received]),
                elapsed_ms=elapsed_ms,
            )
        return bytes(data)
