from __future__ import annotations

import argparse
import logging
from typing import Optional

from devctl.api.client import SimApiClient
from devctl.config.settings import get_settings
from devctl.control.engine import DeviceControl
from devctl.transport import commands
from devctl.transport.udp import UdpEndpoint

DEFAULT_SEQUENCE = ("RESET", "RESET", "IMAGE")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Send a fixed sequence of commands to a remote device over UDP.")
    parser.add_argument("--host", default=settings.sim_udp_host)
    parser.add_argument("--port", default=settings.sim_udp_port, type=int)
    parser.add_argument("--timeout-ms", default=settings.default_timeout_ms, type=int)
    parser.add_argument(
        "--command",
        dest="commands",
        action="append",
        choices=sorted(commands.CAMERA_COMMANDS),
        help="command to send (repeatable); default: RESET RESET IMAGE",
    )
    parser.add_argument("--sim-http", default=None, help="simulator control URL; set faults before running")
    parser.add_argument("--drop-rate", default=None, type=float, help="simulator drop rate (needs --sim-http)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    return parser


def run(args: argparse.Namespace) -> int:
    if args.sim_http and args.drop_rate is not None:
        with SimApiClient(args.sim_http) as api:
            api.set_faults(drop_rate=args.drop_rate)

    settings = get_settings()
    failures = 0
    with DeviceControl.from_settings(settings, endpoint=UdpEndpoint(args.host, args.port)) as ctl:
        for name in args.commands or DEFAULT_SEQUENCE:
            cmd = commands.lookup(name)
            result = ctl.submit(cmd, timeout_ms=args.timeout_ms)
            print(f"{cmd}\n    {result}")
            if not result.success:
                failures += 1
    return 1 if failures else 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(threadName)s %(message)s")
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
