from __future__ import annotations

from dataclasses import dataclass

# largest payload a single IPv4 UDP datagram can carry
MAX_DATAGRAM_SIZE = 65507


@dataclass(frozen=True)
class CommandDescriptor:
    """
    What to send to the device and the shape of the reply.

    The reply has no framing header, so the caller declares it up front:
    `datagram_count` datagrams of exactly `datagram_size` bytes each.
    """
    payload: bytes
    datagram_size: int
    datagram_count: int

    def __post_init__(self) -> None:
        if not isinstance(self.payload, bytes):
            raise TypeError("payload must be bytes")
        if not (0 < self.datagram_size <= MAX_DATAGRAM_SIZE):
            raise ValueError(f"datagram_size must be in 1..{MAX_DATAGRAM_SIZE}")
        if self.datagram_count <= 0:
            raise ValueError("datagram_count must be positive")

    @classmethod
    def named(cls, name: str, count: int, size: int) -> "CommandDescriptor":
        return cls(name.encode("ascii"), datagram_size=size, datagram_count=count)

    @property
    def name(self) -> str:
        return self.payload.decode("ascii", errors="replace")

    @property
    def expected_total(self) -> int:
        return self.datagram_size * self.datagram_count

    def __str__(self) -> str:
        return f"Command {self.name} expect {self.datagram_count} x {self.datagram_size}Bytes"


# Reference camera command table
RESET = CommandDescriptor.named("RESET", 1, 4)
FILTER = CommandDescriptor.named("FILTER", 1, 4)
STATUS = CommandDescriptor.named("STATUS", 1, 8)
IMAGE = CommandDescriptor.named("IMAGE", 480, 640)

CAMERA_COMMANDS = {c.name: c for c in (RESET, FILTER, STATUS, IMAGE)}


def lookup(name: str) -> CommandDescriptor:
    try:
        return CAMERA_COMMANDS[name.upper()]
    except KeyError:
        raise ValueError(f"unknown command {name!r}; known: {', '.join(CAMERA_COMMANDS)}") from None
