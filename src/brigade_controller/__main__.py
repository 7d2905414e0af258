"""Entry point for ``python -m brigade_controller``."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

import structlog

from brigade_controller.__version__ import __version__
from brigade_controller.controller.controller import Controller
from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.exceptions import BrigadeError, ConfigurationError
from brigade_controller.events.logger import BuildEventLog
from brigade_controller.events.sinks import FileBuildEventSink, StructlogBuildEventSink
from brigade_controller.store.kube import KubeRecordStore
from brigade_controller.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m brigade_controller",
        description=(
            "Watch build request secrets and start one worker pod per build. "
            "Every flag can also be set with the matching BRIGADE_* variable."
        ),
    )
    parser.add_argument("--version", action="store_true", help="Print the version and exit.")
    parser.add_argument("--namespace", help="Namespace to watch (BRIGADE_NAMESPACE).")
    parser.add_argument("--api-server", help="Kubernetes API server URL (BRIGADE_API_SERVER).")
    parser.add_argument("--workers", type=int, help="Number of parallel workers (BRIGADE_WORKERS).")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (BRIGADE_LOG_LEVEL).",
    )
    parser.add_argument(
        "--events-file",
        type=Path,
        help="Also append build events to this JSONL file.",
    )
    return parser


async def _serve(config: ControllerConfig, events_file: Path | None) -> None:
    events = BuildEventLog([StructlogBuildEventSink()])
    if events_file is not None:
        events.add_sink(FileBuildEventSink(events_file))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with KubeRecordStore.from_config(config) as store:
        controller = Controller(store, config, events=events)
        await controller.serve(stop)
    await events.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        print(f"brigade-controller {__version__}")
        return 0

    try:
        config = ControllerConfig.from_env(
            namespace=args.namespace,
            api_server=args.api_server,
            workers=args.workers,
            log_level=args.log_level,
        )
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    configure_logging(config.log_level, json=config.log_json)

    try:
        asyncio.run(_serve(config, args.events_file))
    except BrigadeError as exc:
        logger.error("controller_exited", error=str(exc), error_type=type(exc).__name__)
        return 1
    return 0


def console_entrypoint() -> NoReturn:
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - manual execution path
    console_entrypoint()
