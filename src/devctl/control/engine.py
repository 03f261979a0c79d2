from __future__ import annotations

import logging
import threading

from devctl.config.settings import Settings
from devctl.control.manager import Manager
from devctl.control.tasks import DEFAULT_CAPACITY, CommandQueue, Task
from devctl.transport.commands import CommandDescriptor
from devctl.transport.errors import EngineClosed, QueueOverflow
from devctl.transport.result import Result
from devctl.transport.udp import DEFAULT_RCVBUF, DatagramChannel, UdpEndpoint

DEFAULT_TIMEOUT_MS = 3000


class DeviceControl:
    """
    Runs commands, one at a time, against a single remote device.

    A dedicated manager thread owns the socket; `submit` hands it a task and
    blocks until that task's Result is published. Socket setup happens here,
    so an endpoint that cannot be connected raises OSError from the constructor.

    Usage::

        with DeviceControl(UdpEndpoint("127.0.0.1", 12345)) as ctl:
            result = ctl.submit(commands.RESET, timeout_ms=3000)
    """

    def __init__(
        self,
        endpoint: UdpEndpoint,
        *,
        capacity: int = DEFAULT_CAPACITY,
        rcvbuf: int = DEFAULT_RCVBUF,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        enqueue_timeout_ms: int = 0,
        logger: logging.Logger | None = None,
    ):
        self._endpoint = endpoint
        self._log = logger or logging.getLogger(__name__)
        self._default_timeout_ms = default_timeout_ms
        self._enqueue_timeout_s = max(0, enqueue_timeout_ms) / 1000.0
        self._tasks = CommandQueue(capacity)
        self._stop = threading.Event()
        self._close_lock = threading.Lock()

        channel = DatagramChannel(endpoint, rcvbuf)
        self._manager = Manager(channel, self._tasks, self._stop, self._log)
        self._thread = threading.Thread(
            target=self._manager.run,
            name="device-control-manager",
            daemon=True,
        )
        self._thread.start()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        endpoint: UdpEndpoint | None = None,
        logger: logging.Logger | None = None,
    ) -> "DeviceControl":
        return cls(
            endpoint or UdpEndpoint(settings.sim_udp_host, settings.sim_udp_port),
            capacity=settings.queue_capacity,
            rcvbuf=settings.socket_rcvbuf,
            default_timeout_ms=settings.default_timeout_ms,
            enqueue_timeout_ms=settings.enqueue_timeout_ms,
            logger=logger,
        )

    @property
    def endpoint(self) -> UdpEndpoint:
        return self._endpoint

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def enqueue(self, command: CommandDescriptor, timeout_ms: int | None = None) -> Task:
        """
        Queue a command without waiting for it. The returned task always ends
        up completed, with a failed Result if it could not be queued.
        """
        if timeout_ms is None:
            timeout_ms = self._default_timeout_ms
        task = Task(command, timeout_ms)

        if self._stop.is_set():
            task.fail(EngineClosed(f"engine for {self._endpoint} is closed"))
            return task
        try:
            self._tasks.put(task, self._enqueue_timeout_s)
        except QueueOverflow as e:
            self._log.warning("%s", e)
            task.fail(e)
            return task

        # lost a race with close(); the manager may never pick this up
        if self._stop.is_set():
            self._fail_pending()
        return task

    def submit(self, command: CommandDescriptor, timeout_ms: int | None = None) -> Result:
        """
        Run a command on the device and wait for its Result.

        `timeout_ms` is measured from the moment the command goes on the wire,
        not from submission; time spent queued behind other commands is free.
        """
        return self.enqueue(command, timeout_ms).wait()

    def close(self, timeout_s: float = 5.0) -> None:
        with self._close_lock:
            if self._stop.is_set():
                return
            self._stop.set()
        self._thread.join(timeout_s)
        if self._thread.is_alive():
            self._log.warning("manager for %s still busy after %.1fs", self._endpoint, timeout_s)
        else:
            self._fail_pending()

    def _fail_pending(self) -> None:
        for task in self._tasks.drain():
            task.fail(EngineClosed(f"engine closed before {task.command} ran"))

    def __enter__(self) -> "DeviceControl":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


_controls: dict[UdpEndpoint, DeviceControl] = {}
_controls_lock = threading.Lock()


def get_control(endpoint: UdpEndpoint, **kwargs) -> DeviceControl:
    """
    Process-wide engine for `endpoint`, created on first use.

    `kwargs` go to the DeviceControl constructor and only apply when a new
    engine is created; an existing, open engine is returned as it is.
    """
    with _controls_lock:
        ctl = _controls.get(endpoint)
        if ctl is None or ctl.closed:
            ctl = DeviceControl(endpoint, **kwargs)
            _controls[endpoint] = ctl
        elif kwargs:
            logging.getLogger(__name__).warning(
                "engine for %s already running; ignoring %s", endpoint, ", ".join(sorted(kwargs))
            )
        return ctl
