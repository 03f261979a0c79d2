from __future__ import annotations
import asyncio
import logging

from .protocol import SimModel

logger = logging.getLogger(__name__)


class DeviceSimProtocol(asyncio.DatagramProtocol):
    """
    Dummy remote device. Each request datagram is an ASCII command name;
    known commands are answered with fixed-size datagrams, a fraction of
    requests (faults.drop_rate) and any unknown command get no reply at all.
    """

    def __init__(self, model: SimModel):
        self.model = model
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport):
        # required: stored transport for later sendto()
        self.transport = transport

    def datagram_received(self, data: bytes, addr):
        name = data.decode("ascii", errors="replace")
        rows = self.model.handle(name)
        if rows is None:
            logger.info("%s from %s error!", name, addr)
            return

        faults = self.model.faults
        if faults.delay_ms > 0 or faults.paced:
            asyncio.get_running_loop().create_task(self._send_later(name, rows, addr))
        else:
            self._send_rows(name, rows, addr)

    def _send_rows(self, name: str, rows: list[bytes], addr) -> None:
        for row in rows:
            self.transport.sendto(row, addr)
        logger.info("%s from %s sent %d bytes in %d datagrams", name, addr, sum(map(len, rows)), len(rows))

    async def _send_later(self, name: str, rows: list[bytes], addr) -> None:
        faults = self.model.faults
        if faults.delay_ms > 0:
            await asyncio.sleep(faults.delay_ms / 1000.0)
        if self.transport is None or self.transport.is_closing():
            return
        if not faults.paced:
            self._send_rows(name, rows, addr)
            return
        # pacing keeps a large reply from overrunning the receiver's socket buffer
        for i in range(0, len(rows), faults.burst_size):
            if self.transport is None or self.transport.is_closing():
                return
            for row in rows[i:i + faults.burst_size]:
                self.transport.sendto(row, addr)
            await asyncio.sleep(faults.burst_gap_ms / 1000.0)
        logger.info("%s from %s sent %d datagrams in bursts of %d", name, addr, len(rows), faults.burst_size)


async def start_udp(model: SimModel, host: str, port: int) -> asyncio.DatagramTransport:
    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(
        lambda: DeviceSimProtocol(model),
        local_addr=(host, port),
    )
    logger.info("device simulator bound to %s", transport.get_extra_info("sockname"))
    return transport
