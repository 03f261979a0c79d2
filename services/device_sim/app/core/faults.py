from __future__ import annotations
from dataclasses import dataclass
import random

@dataclass
class FaultConfig:
    drop_rate: float = 0.0      # 0.0..1.0, requests answered with silence
    delay_ms: int = 0           # add delay before responding
    burst_size: int = 0         # datagrams per burst; 0 sends a reply in one go
    burst_gap_ms: int = 0       # pause between bursts

    def should_drop(self) -> bool:
        return self.drop_rate > 0 and random.random() < self.drop_rate

    @property
    def paced(self) -> bool:
        return self.burst_size > 0 and self.burst_gap_ms > 0

    def as_dict(self) -> dict:
        return {
            "drop_rate": self.drop_rate,
            "delay_ms": self.delay_ms,
            "burst_size": self.burst_size,
            "burst_gap_ms": self.burst_gap_ms,
        }
