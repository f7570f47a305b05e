from __future__ import annotations

import argparse
from typing import Optional, Sequence

import uvicorn

from .config import parse_listen_addr, settings


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="autotracker", description="Clockify auto time-tracking webhook")
    parser.add_argument(
        "--listen-addr",
        default=f":{settings.port}",
        help="server listen address (default: %(default)s)",
    )
    args = parser.parse_args(argv)
    host, port = parse_listen_addr(args.listen_addr, default_host=settings.host)
    settings.host = host
    settings.port = port

    uvicorn.run(
        "autotracker.main:app",
        host=host,
        port=port,
        reload=False,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=settings.keep_alive_seconds,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )


if __name__ == "__main__":
    main()
