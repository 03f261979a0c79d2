from __future__ import annotations


def _format_sofar(data: bytes) -> str:
    return f" [{len(data)} bytes so far -> {list(data[:8])}]"


class ExchangeError(Exception):
    """
    Base class for every way a command can fail.

    `partial` holds the valid bytes reassembled before the failure, kept for
    diagnostics. It never exceeds the command's expected total.
    """

    def __init__(self, message: str, partial: bytes = b""):
        super().__init__(message + _format_sofar(partial))
        self.partial = bytes(partial)


class ConnectionClosed(ExchangeError):
    pass


class Timeout(ExchangeError):
    def __init__(self, message: str, partial: bytes = b"", elapsed_ms: float = 0.0):
        super().__init__(message, partial)
        self.elapsed_ms = elapsed_ms


class IOFailure(ExchangeError):
    def __init__(self, message: str, partial: bytes = b"", cause: BaseException | None = None):
        super().__init__(message, partial)
        self.cause = cause


class QueueOverflow(ExchangeError):
    pass


class EngineClosed(ExchangeError):
    pass
