from __future__ import annotations

import argparse
import dataclasses
from typing import Optional, Sequence

import uvicorn

from superside.logging_setup import configure_logging
from superside.main import create_app
from superside.settings import settings


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="superside",
        description="Relay service state changes to live listeners",
    )
    parser.add_argument("--host", default=settings.host, help="Address to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind")
    parser.add_argument("--log-level", default=settings.log_level, help="Root log level")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)
    cfg = dataclasses.replace(settings, host=args.host, port=args.port, log_level=args.log_level)
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_config=None)


if __name__ == "__main__":
    main()
