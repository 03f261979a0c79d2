from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class Settings:
    sim_http: str
    sim_udp_host: str
    sim_udp_port: int
    queue_capacity: int
    socket_rcvbuf: int
    default_timeout_ms: int
    enqueue_timeout_ms: int


def get_settings() -> Settings:
    """
    Centralized configuration for the control engine, the demo driver and tests.
    Values come from environment variables with safe defaults.
    """
    return Settings(
        sim_http=os.getenv("SIM_HTTP", "http://127.0.0.1:8000"),
        sim_udp_host=os.getenv("SIM_UDP_HOST", "127.0.0.1"),
        sim_udp_port=int(os.getenv("SIM_UDP_PORT", "12345")),
        queue_capacity=int(os.getenv("DEVICE_QUEUE_CAPACITY", "32")),
        # room for a full 480 x 640 image burst plus head-room
        socket_rcvbuf=int(os.getenv("DEVICE_SOCKET_RCVBUF", str(512 * 1024))),
        default_timeout_ms=int(os.getenv("DEVICE_TIMEOUT_MS", "3000")),
        enqueue_timeout_ms=int(os.getenv("DEVICE_ENQUEUE_TIMEOUT_MS", "0")),
    )
