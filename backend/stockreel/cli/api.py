"""
stockreel-api: run the status API with its watcher and worker.
"""

import argparse
import sys
from typing import List, Optional

import uvicorn

from ..config import ConfigError, from_env, load_config
from ..main import build_app
from .common import CLIError, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockreel-api",
        description="Serve the ingestion status API",
    )
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8085, help="Bind port")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        configure_logging(args.log_level)
        app = build_app(from_env(load_config(args.config)))
    except (CLIError, ConfigError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
