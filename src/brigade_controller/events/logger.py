"""Fan-out dispatcher for build events."""

from __future__ import annotations

import structlog

from brigade_controller.events.models import BuildEvent
from brigade_controller.events.sinks import BuildEventSink

logger = structlog.get_logger(__name__)


class BuildEventLog:
    """Sends each :class:`BuildEvent` to every registered sink.

    Sink failures are logged but never propagated to the reconciler.

    Example::

        events = BuildEventLog()
        events.add_sink(InMemoryBuildEventSink())
        events.add_sink(FileBuildEventSink("/var/log/brigade-builds.jsonl"))
        await events.log(BuildEvent(outcome=Outcome.SUBMITTED, name="moby"))
    """

    def __init__(self, sinks: list[BuildEventSink] | None = None) -> None:
        self._sinks: list[BuildEventSink] = list(sinks) if sinks else []

    def add_sink(self, sink: BuildEventSink) -> BuildEventLog:
        """Register a new sink.  Returns ``self`` for chaining."""
        self._sinks.append(sink)
        return self

    async def log(self, event: BuildEvent) -> None:
        for sink in self._sinks:
            try:
                await sink.write(event)
            except Exception:
                logger.warning(
                    "build_event_sink_error",
                    sink=type(sink).__name__,
                    event_id=event.event_id,
                    exc_info=True,
                )

    async def close(self) -> None:
        for sink in self._sinks:
            await sink.close()
