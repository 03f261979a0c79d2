import asyncio
import socket
import threading
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from devctl.api.client import SimApiClient
from devctl.config.settings import get_settings
from devctl.control.engine import DeviceControl
from devctl.transport.udp import UdpEndpoint
from services.device_sim.app import main as sim_main
from services.device_sim.app.core.faults import FaultConfig
from services.device_sim.app.core.protocol import SimModel
from services.device_sim.app.core.udp import start_udp


class SimulatorThread:
    """
    Runs the simulator's UDP side on an ephemeral loopback port, in a
    background event loop, so tests don't depend on a fixed port being free.
    """

    def __init__(self, model: SimModel):
        self.model = model
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self.loop.run_forever, name="device-sim", daemon=True)
        self.transport = None
        self.endpoint: UdpEndpoint | None = None

    def start(self) -> "SimulatorThread":
        self._thread.start()
        fut = asyncio.run_coroutine_threadsafe(start_udp(self.model, "127.0.0.1", 0), self.loop)
        self.transport = fut.result(timeout=5.0)
        host, port = self.transport.get_extra_info("sockname")[:2]
        self.endpoint = UdpEndpoint(host, port)
        return self

    def stop(self) -> None:
        self.loop.call_soon_threadsafe(self.transport.close)
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5.0)
        self.loop.close()


class ScriptedPeer:
    """
    Bare UDP peer whose replies are chosen by `reply(request) -> [datagrams]`.
    Used where the simulator can't produce the traffic a test needs.
    """

    def __init__(self, reply: Callable[[bytes], list]):
        self.reply = reply
        self.requests: list[bytes] = []
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.settimeout(0.1)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="scripted-peer", daemon=True)
        self.endpoint = UdpEndpoint(*self._sock.getsockname()[:2])

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                data, addr = self._sock.recvfrom(65535)
            except socket.timeout:
                continue
            self.requests.append(data)
            for dgram in self.reply(data):
                self._sock.sendto(dgram, addr)

    def start(self) -> "ScriptedPeer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=2.0)
        self._sock.close()


@pytest.fixture
def settings():
    return get_settings()

@pytest.fixture
def sim():
    """
    Simulator with no drops. Replies go out in small paced bursts so a full
    image fits through loopback even with a clamped socket buffer.
    """
    model = SimModel(faults=FaultConfig(drop_rate=0.0, burst_size=16, burst_gap_ms=1))
    s = SimulatorThread(model).start()
    try:
        yield s
    finally:
        s.stop()

@pytest.fixture
def control(sim):
    ctl = DeviceControl(sim.endpoint)
    try:
        yield ctl
    finally:
        ctl.close()

@pytest.fixture
def scripted_peer():
    peers = []

    def make(reply):
        peer = ScriptedPeer(reply).start()
        peers.append(peer)
        return peer

    yield make
    for peer in peers:
        peer.stop()

@pytest.fixture
def sim_api():
    """
    Control-plane client wired straight into the simulator app. Entering no
    lifespan means no UDP socket is bound for these tests.
    """
    client = SimApiClient(client=TestClient(sim_main.app))
    try:
        yield client
    finally:
        client.close()

@pytest.fixture(autouse=True)
def reset_simulator():
    """
    Ensure each test starts from a clean simulator app state.
    """
    sim_main.MODEL.reset()
    saved = FaultConfig(**sim_main.MODEL.faults.as_dict())
    yield
    sim_main.MODEL.faults = saved
