#!/usr/bin/env python3
"""
CLI entry point for the filtered stream client.

Applies the configured rules, then streams matching records to stdout as a
single JSON array until the stop file appears.

Usage:
    filtered-stream > tweets.json
    filtered-stream --delete --config config.json --rules rules.json
    touch ./stop    # ask a running client to finish the array and exit
"""

import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Callable, Optional, Sequence, TextIO

from .config import StreamConfig
from .connectors import HttpTransport
from .core.connector import Transport
from .core.exceptions import ConfigError, TransportError, UpstreamError
from .core.logging import configure_logging
from .core.stop_signal import AnyStopSignal, EventStopSignal, FileStopSignal
from .rules import RuleReconciler, RuleStore
from .stream import JsonArrayFramer, ReconnectSupervisor, build_stream_request


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_RULES_FILE = "rules.json"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_UPSTREAM_ERROR = 2

EPILOG = """examples:
  stream until the stop file appears:
      %(prog)s > tweets.json
      touch ./stop
  clear existing rules before submitting the configured ones:
      %(prog)s --delete > tweets.json
  only (re)apply rules, do not stream:
      %(prog)s --delete --rules-only
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="filtered-stream",
        description="Stream tweets matching pre-configured rules as a JSON array on stdout.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete existing rules before submitting the configured rules",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=f"Settings file with the bearer token (default: ./{DEFAULT_CONFIG_FILE} if present)",
    )
    parser.add_argument(
        "--rules",
        type=Path,
        help=f"Rules file, JSON or YAML list of {{value, tag}} (default: ./{DEFAULT_RULES_FILE} if present)",
    )
    parser.add_argument(
        "--stop-file",
        type=Path,
        help="Sentinel file whose presence stops the stream (default: ./stop)",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--skip-rules",
        action="store_true",
        help="Keep the rules already active and start streaming",
    )
    mode.add_argument(
        "--rules-only",
        action="store_true",
        help="Reconcile rules and exit without streaming",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--structured-logs",
        action="store_true",
        help="Emit JSON log lines on stderr",
    )
    return parser


def _default_path(explicit: Optional[Path], default: str) -> Optional[Path]:
    if explicit is not None:
        return explicit
    candidate = Path(default)
    return candidate if candidate.exists() else None


def load_config(args: argparse.Namespace) -> StreamConfig:
    """Load configuration from the parsed arguments."""
    config = StreamConfig(
        config_path=_default_path(args.config, DEFAULT_CONFIG_FILE),
        rules_path=_default_path(args.rules, DEFAULT_RULES_FILE),
    )
    if args.stop_file is not None:
        config.config["stop_file"] = str(args.stop_file)
    return config


def run_stream(
    config: StreamConfig,
    transport: Transport,
    output: TextIO,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Stream records to ``output`` until stopped by file or SIGINT/SIGTERM."""
    interrupted = EventStopSignal()
    stop_signal = AnyStopSignal(FileStopSignal(config.stop_file), interrupted)

    request = build_stream_request(
        config.get("stream_url"),
        config.bearer_token,
        params=config.get_stream_params(),
        user_agent=config.get("user_agent"),
        timeout=config.get("timeout_seconds", 20),
        connect_timeout=config.get("connect_timeout_seconds"),
    )
    supervisor = ReconnectSupervisor(
        transport,
        request,
        JsonArrayFramer(output),
        stop_signal=stop_signal,
        sleep=sleep,
        max_backoff_seconds=config.max_backoff_seconds,
    )

    original_sigint = signal.getsignal(signal.SIGINT)
    original_sigterm = signal.getsignal(signal.SIGTERM)
    signal.signal(signal.SIGINT, interrupted.handle_signal)
    signal.signal(signal.SIGTERM, interrupted.handle_signal)
    try:
        state = supervisor.run()
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)

    logger.info(
        f"Stopped after {state.records_emitted} record(s)",
        extra={"attempt": state.attempt},
    )


def main(
    argv: Optional[Sequence[str]] = None,
    stdout: Optional[TextIO] = None,
    transport: Optional[Transport] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.structured_logs,
    )
    output = stdout if stdout is not None else sys.stdout

    try:
        config = load_config(args)
        if config.stop_file.exists():
            raise ConfigError(f"Remove the stop file to continue: rm {config.stop_file}")
        bearer_token = config.bearer_token
        desired = config.get_rules()
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    owns_transport = transport is None
    if owns_transport:
        transport = HttpTransport(chunk_size=config.get("chunk_size", 512))

    try:
        if not args.skip_rules:
            store = RuleStore(
                transport,
                config.get("rules_url"),
                bearer_token,
                user_agent=config.get("user_agent"),
            )
            try:
                RuleReconciler(store).reconcile(desired, delete_existing=args.delete)
            except (UpstreamError, TransportError) as e:
                logger.error(str(e), extra={"status_code": e.status_code})
                return EXIT_UPSTREAM_ERROR

        if args.rules_only:
            logger.info("Rules applied; not streaming (--rules-only)")
            return EXIT_OK

        run_stream(config, transport, output, sleep=sleep)
        return EXIT_OK
    finally:
        if owns_transport:
            transport.close()


if __name__ == "__main__":
    sys.exit(main())
