"""Pluggable build event sinks: in-memory, file (JSONL), and structlog."""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Any

import structlog

from brigade_controller.core.constants import Outcome
from brigade_controller.events.models import BuildEvent


class BuildEventSink(ABC):
    """Abstract base for build event sinks.

    Subclass this to ship build events to external systems (e.g. a
    metrics backend or a database).
    """

    @abstractmethod
    async def write(self, event: BuildEvent) -> None:
        """Persist a single build event."""

    async def close(self) -> None:
        """Release resources held by the sink."""


class InMemoryBuildEventSink(BuildEventSink):
    """Circular-buffer sink backed by :class:`collections.deque`.

    Args:
        max_entries: Maximum number of events to retain (default 10 000).
    """

    def __init__(self, max_entries: int = 10000) -> None:
        self._events: deque[BuildEvent] = deque(maxlen=max_entries)

    async def write(self, event: BuildEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[BuildEvent]:
        """Return all stored events (oldest first)."""
        return list(self._events)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for ev in self._events if ev.outcome == outcome)


class FileBuildEventSink(BuildEventSink):
    """Append-only JSONL file sink.

    Uses :func:`asyncio.to_thread` so file I/O does not block the event
    loop.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _serialize(self, event: BuildEvent) -> str:
        data: dict[str, Any] = event.model_dump(mode="json")
        return json.dumps(data, default=str, sort_keys=True)

    def _write_sync(self, line: str) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    async def write(self, event: BuildEvent) -> None:
        line = self._serialize(event)
        await asyncio.to_thread(self._write_sync, line)


class StructlogBuildEventSink(BuildEventSink):
    """Sink that emits each event via :mod:`structlog`.

    ``failed`` outcomes are logged at error level, everything else at
    *log_level*.
    """

    def __init__(self, log_level: str = "info") -> None:
        self._log_level = log_level
        self._logger = structlog.get_logger("brigade_controller.events")

    async def write(self, event: BuildEvent) -> None:
        if event.outcome == Outcome.FAILED:
            log_fn = self._logger.error
        else:
            log_fn = getattr(self._logger, self._log_level, self._logger.info)
        log_fn(
            "build_event",
            event_id=event.event_id,
            outcome=event.outcome.value,
            build=event.name,
            namespace=event.namespace,
            project=event.project_id,
            event_type=event.event_type,
            commit=event.commit,
            error=event.error,
        )
