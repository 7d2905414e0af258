from brigade_controller.events.logger import BuildEventLog
from brigade_controller.events.models import BuildEvent
from brigade_controller.events.sinks import (
    BuildEventSink,
    FileBuildEventSink,
    InMemoryBuildEventSink,
    StructlogBuildEventSink,
)

__all__ = [
    "BuildEvent",
    "BuildEventLog",
    "BuildEventSink",
    "FileBuildEventSink",
    "InMemoryBuildEventSink",
    "StructlogBuildEventSink",
]
