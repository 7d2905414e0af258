"""Brigade controller: turns build request secrets into worker pods."""

from brigade_controller.__version__ import __version__
from brigade_controller.build import (
    ENV_TABLE_V1,
    EffectiveConfig,
    ExecutionUnitSpec,
    build,
    resolve,
)
from brigade_controller.controller import Controller, ReconcileResult, Reconciler
from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.constants import (
    ChangeType,
    Outcome,
    PullPolicy,
    RecordKind,
    ResourceKind,
)
from brigade_controller.core.exceptions import (
    AlreadyExistsError,
    BrigadeError,
    ConfigurationError,
    InvalidConfigurationError,
    NotFoundError,
    StoreError,
    TransportError,
)
from brigade_controller.core.types import (
    BuildRequest,
    Project,
    Record,
    WatchEvent,
    classify,
)
from brigade_controller.events import (
    BuildEvent,
    BuildEventLog,
    FileBuildEventSink,
    InMemoryBuildEventSink,
    StructlogBuildEventSink,
)
from brigade_controller.store.base import RecordStore, RecordStoreProtocol
from brigade_controller.store.kube import KubeRecordStore
from brigade_controller.store.mock import MockRecordStore

__all__ = [
    "__version__",
    "ENV_TABLE_V1",
    "AlreadyExistsError",
    "BrigadeError",
    "BuildEvent",
    "BuildEventLog",
    "BuildRequest",
    "ChangeType",
    "ConfigurationError",
    "Controller",
    "ControllerConfig",
    "EffectiveConfig",
    "ExecutionUnitSpec",
    "FileBuildEventSink",
    "InMemoryBuildEventSink",
    "InvalidConfigurationError",
    "KubeRecordStore",
    "MockRecordStore",
    "NotFoundError",
    "Outcome",
    "Project",
    "PullPolicy",
    "ReconcileResult",
    "Reconciler",
    "Record",
    "RecordKind",
    "RecordStore",
    "RecordStoreProtocol",
    "ResourceKind",
    "StoreError",
    "StructlogBuildEventSink",
    "TransportError",
    "WatchEvent",
    "build",
    "classify",
    "resolve",
]
