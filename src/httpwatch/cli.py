"""Command-line interface for httpwatch.

Usage: ``httpwatch [-flags] -- command ...``

Builds the immutable settings from the config file, the environment and
the flags, then serves the watch page with uvicorn until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import socket
import sys
from pathlib import Path

import uvicorn

from httpwatch import HttpWatchError
from httpwatch.config.settings import (
    LoggingConfig,
    ServerConfig,
    Settings,
    load_settings,
    parse_address,
    parse_duration,
)
from httpwatch.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="httpwatch",
        usage="%(prog)s [-flags] -- command ...",
        description="Execute a program periodically and serve its output over HTTP",
    )
    parser.add_argument(
        "-n", "--interval",
        default=None,
        help=(
            "Update interval, e.g. 2, 0.5, 500ms or 1m (default: 2s). Intervals "
            "below 0.1s are raised to 0.1s. The WATCH_INTERVAL environment "
            "variable sets a persistent default in the same format."
        ),
    )
    parser.add_argument(
        "-t", "--no-title",
        action="store_true",
        default=None,
        help="Turn off the header showing the interval, command and current time",
    )
    parser.add_argument(
        "-c", "--color",
        action="store_true",
        default=None,
        help="Interpret ANSI color and style sequences",
    )
    parser.add_argument(
        "--address",
        default=None,
        help="Address to serve the output of the command to (default: 127.0.0.1:8000)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/httpwatch.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to run, after a -- separator",
    )
    args = parser.parse_args(argv)
    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    return args


def build_settings(args: argparse.Namespace) -> Settings:
    """Load settings and apply the command-line overrides."""
    settings = load_settings(args.config)

    watch: dict = {}
    if args.interval is not None:
        watch["interval"] = parse_duration(args.interval)
    if args.no_title:
        watch["no_title"] = True
    if args.color:
        watch["color"] = True
    if args.command:
        watch["command"] = tuple(args.command)

    server: dict = {}
    if args.address is not None:
        server["host"], server["port"] = parse_address(args.address)

    log: dict = {}
    if args.verbose:
        log["level"] = "DEBUG"

    return settings.with_overrides(watch=watch, server=server, logging=log)


# Extra time, beyond the drain grace period, for the app's own shutdown
# (stopping the watch loop and its command) before giving up.
SHUTDOWN_BACKSTOP = 3.0


class ListenError(HttpWatchError):
    """Raised when the listen address cannot be bound."""


class ShutdownError(HttpWatchError):
    """Raised when the server does not drain within its grace period."""


class WatchServer(uvicorn.Server):
    """uvicorn server whose graceful shutdown is bounded.

    In-flight requests get ``config.timeout_graceful_shutdown`` seconds to
    finish; uvicorn then cancels them and still runs the lifespan shutdown.
    Having had to cancel them, or the whole shutdown taking longer than the
    grace period plus SHUTDOWN_BACKSTOP, raises ShutdownError.
    """

    def __init__(self, config: uvicorn.Config) -> None:
        super().__init__(config)
        self.drain_timed_out = False

    async def _wait_tasks_to_complete(self) -> None:
        # uvicorn cancels this drain step once timeout_graceful_shutdown passes.
        try:
            await super()._wait_tasks_to_complete()
        except asyncio.CancelledError:
            self.drain_timed_out = True
            raise

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        grace = self.config.timeout_graceful_shutdown or 0.0
        try:
            await asyncio.wait_for(
                super().shutdown(sockets=sockets), timeout=grace + SHUTDOWN_BACKSTOP
            )
        except asyncio.TimeoutError:
            raise ShutdownError(
                f"Error shutting down http server: not done after {grace + SHUTDOWN_BACKSTOP:g}s"
            ) from None
        if self.drain_timed_out:
            raise ShutdownError(
                f"Error shutting down http server: requests still running after {grace:g}s"
            )


def bind_socket(config: ServerConfig) -> socket.socket:
    """Bind the listen socket, raising ListenError if the address is unusable."""
    family = socket.AF_INET6 if ":" in config.host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((config.host, config.port))
    except OSError as e:
        sock.close()
        raise ListenError(f"Cannot listen on {config.address}: {e}") from e
    sock.set_inheritable(True)
    return sock


def serve(app, config: ServerConfig) -> None:
    """Serve ``app`` until SIGINT/SIGTERM, then shut down gracefully.

    The socket is bound before the app starts, so a bad address fails
    before the watched command ever runs.
    """
    sock = bind_socket(config)
    server = WatchServer(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level="warning",
            timeout_graceful_shutdown=config.shutdown_grace,
        )
    )
    port = sock.getsockname()[1]
    print(f"Listening at http://{config.host}:{port}", flush=True)
    try:
        asyncio.run(server.serve(sockets=[sock]))
    finally:
        sock.close()


def _fatal(message: str) -> None:
    logger.critical(message)
    raise SystemExit(1)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the httpwatch CLI."""
    args = parse_args(argv)

    setup_logging(LoggingConfig(level="DEBUG" if args.verbose else "INFO"))

    try:
        settings = build_settings(args)
    except (HttpWatchError, ValueError) as e:
        _fatal(str(e))

    setup_logging(settings.logging)

    if not settings.watch.command:
        print("Usage: httpwatch [-flags] -- command ...", file=sys.stderr)
        _fatal("No command specified")

    from httpwatch.server import create_app

    try:
        app = create_app(settings)
    except HttpWatchError as e:
        _fatal(str(e))

    try:
        serve(app, settings.server)
    except HttpWatchError as e:
        _fatal(str(e))
    except KeyboardInterrupt:
        pass
    logger.info("Stopped")


if __name__ == "__main__":
    main()
