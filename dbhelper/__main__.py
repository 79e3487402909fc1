"""Module entrypoint: `python -m dbhelper CONFIG.toml` checks a configuration."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from fastapi import FastAPI

from .config import load_config
from .errors import ConfigurationError, DatabaseConnectionError
from .plugin import DatabasePlugin


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m dbhelper",
        description="Open every database in a config file and report its helper status.",
    )
    parser.add_argument("config", help="Path to a TOML file with [database] or [databases.<name>] tables")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    plugin = DatabasePlugin()
    app = FastAPI()
    try:
        plugin.register(app, config)
    except DatabaseConnectionError as exc:
        print(f"connection error: {exc}", file=sys.stderr)
        plugin.close()
        return 1

    try:
        for name, spec in config.databases.items():
            handle = app.state.helpers.call(name)
            status = "ok" if not handle.closed else "closed"
            print(f"{name}\t{spec.redacted()}\t{status}")
    finally:
        plugin.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
