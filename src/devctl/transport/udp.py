from __future__ import annotations
import selectors
import socket
from dataclasses import dataclass

DEFAULT_RCVBUF = 512 * 1024


@dataclass(frozen=True)
class UdpEndpoint:
    host: str
    port: int

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class DatagramChannel:
    """
    Non-blocking UDP socket connected to one endpoint, plus a bounded readiness wait.

    Only the manager thread may call into a channel once the engine is running.
    """

    def __init__(self, endpoint: UdpEndpoint, rcvbuf: int = DEFAULT_RCVBUF):
        self._endpoint = endpoint
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.setblocking(False)
            # kernel may clamp this (net.core.rmem_max); best effort
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, rcvbuf)
            self._sock.connect(endpoint.address)
            self._selector = selectors.DefaultSelector()
            self._selector.register(self._sock, selectors.EVENT_READ)
        except OSError:
            self._sock.close()
            raise

    @property
    def endpoint(self) -> UdpEndpoint:
        return self._endpoint

    @property
    def local_address(self) -> tuple[str, int]:
        return self._sock.getsockname()

    def flush(self, scratch: bytearray) -> int:
        """
        Discard everything already queued on the socket: late datagrams from an
        earlier exchange and pending ICMP errors alike. Returns bytes discarded.
        """
        view = memoryview(scratch)
        dropped = 0
        while True:
            try:
                dropped += self._sock.recv_into(view)
            except BlockingIOError:
                return dropped
            except (ConnectionRefusedError, ConnectionResetError):
                continue

    def send(self, payload: bytes) -> int:
        return self._sock.send(payload)

    def wait_readable(self, timeout_s: float) -> bool:
        return bool(self._selector.select(max(0.0, timeout_s)))

    def read_into(self, buf: memoryview) -> int:
        """One non-blocking read. Raises BlockingIOError when nothing is queued."""
        return self._sock.recv_into(buf)

    def close(self) -> None:
        try:
            self._selector.close()
        finally:
            self._sock.close()
