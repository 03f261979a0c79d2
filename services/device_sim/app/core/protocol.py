from __future__ import annotations
from dataclasses import dataclass, field
from .commands import SimCommand
from .faults import FaultConfig

REQUEST_LOG_SIZE = 1024

@dataclass
class SimModel:
    faults: FaultConfig = field(default_factory=FaultConfig)
    received: int = 0
    answered: int = 0
    dropped: int = 0
    unknown: int = 0
    reset_count: int = 0
    # most recent command names, in arrival order
    requests: list[str] = field(default_factory=list)

    def reset(self) -> None:
        self.received = 0
        self.answered = 0
        self.dropped = 0
        self.unknown = 0
        self.requests.clear()
        self.reset_count += 1
        # keep faults as-is; tests can choose to reset them explicitly

    def handle(self, name: str) -> list[bytes] | None:
        """
        Decide the reply to one request: the datagrams to send back,
        or None for silence (dropped or unrecognized).
        """
        self.received += 1
        self.requests.append(name)
        del self.requests[:-REQUEST_LOG_SIZE]
        if self.faults.should_drop():
            self.dropped += 1
            return None
        cmd = SimCommand.parse(name)
        if cmd is None:
            self.unknown += 1
            return None
        self.answered += 1
        return cmd.rows

    def counters(self) -> dict:
        return {
            "received": self.received,
            "answered": self.answered,
            "dropped": self.dropped,
            "unknown": self.unknown,
            "reset_count": self.reset_count,
        }
