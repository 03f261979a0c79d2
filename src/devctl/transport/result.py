from __future__ import annotations

from dataclasses import dataclass

from devctl.transport.errors import ExchangeError


@dataclass(frozen=True)
class Result:
    data: bytes
    error: ExchangeError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, data: bytes) -> "Result":
        return cls(bytes(data))

    @classmethod
    def failed(cls, error: ExchangeError) -> "Result":
        return cls(error.partial, error)

    def __str__(self) -> str:
        head = list(self.data[:8])
        if not self.success:
            return f"Result FAIL: {len(self.data)} bytes: {head} -> {self.error!r}"
        return f"Result SUCCESS: {len(self.data)} bytes: {head}"
