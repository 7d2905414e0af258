from __future__ import annotations

import time

import structlog
from pydantic import BaseModel, ConfigDict

from brigade_controller.build.pod import build
from brigade_controller.build.resolver import resolve
from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.constants import (
    ChangeType,
    Outcome,
    RecordKind,
    ResourceKind,
)
from brigade_controller.core.exceptions import (
    AlreadyExistsError,
    BrigadeError,
    InvalidConfigurationError,
    NotFoundError,
)
from brigade_controller.core.types import BuildRequest, Project, Record, WatchEvent
from brigade_controller.events.logger import BuildEventLog
from brigade_controller.events.models import BuildEvent
from brigade_controller.store.base import RecordStoreProtocol

logger = structlog.get_logger(__name__)

_LOG_EVENTS = {
    Outcome.FILTERED_OUT: "build_filtered_out",
    Outcome.DUPLICATE_SKIP: "build_duplicate_skip",
    Outcome.SUBMITTED: "build_submitted",
    Outcome.FAILED: "build_failed",
}


class ReconcileResult(BaseModel):
    """Terminal outcome of one reconciliation pass."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    outcome: Outcome
    name: str
    namespace: str
    event_type: str | None = None
    commit: str | None = None
    error: BrigadeError | None = None

    @property
    def failed(self) -> bool:
        return self.outcome == Outcome.FAILED


class Reconciler:
    """Turns one build request event into at most one worker pod.

    ``Received → FilteredOut | DuplicateSkip | Submitted | Failed``, in a
    single pass. Store errors are classified here and nowhere else; the
    reconciler never retries. Redelivery is the job of whatever feeds it.

    Example::

        reconciler = Reconciler(store, ControllerConfig())
        result = await reconciler.reconcile(WatchEvent.from_record(record))
        if result.failed:
            raise result.error
    """

    def __init__(
        self,
        store: RecordStoreProtocol,
        config: ControllerConfig,
        events: BuildEventLog | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._events = events or BuildEventLog()

    async def reconcile(self, event: WatchEvent) -> ReconcileResult:
        t0 = time.monotonic()
        if event.kind != RecordKind.BUILD or event.change_type == ChangeType.DELETED:
            result = ReconcileResult(
                outcome=Outcome.FILTERED_OUT,
                name=event.name,
                namespace=event.namespace,
            )
            await self._report(result, None, t0, kind=event.kind.value)
            return result

        request = BuildRequest(event.record)
        try:
            outcome = await self._sync(request)
            error: BrigadeError | None = None
        except BrigadeError as exc:
            outcome, error = Outcome.FAILED, exc

        result = ReconcileResult(
            outcome=outcome,
            name=request.name,
            namespace=request.namespace,
            event_type=request.event_type or None,
            commit=request.commit or None,
            error=error,
        )
        await self._report(result, request, t0)
        return result

    async def _sync(self, request: BuildRequest) -> Outcome:
        namespace = request.namespace

        try:
            await self._store.get(ResourceKind.POD, namespace, request.name)
        except NotFoundError:
            pass
        else:
            return Outcome.DUPLICATE_SKIP

        project_id = request.project_id
        if not project_id:
            raise InvalidConfigurationError(
                f"build request {request.name!r} names no project",
                details={"build": request.name},
            )
        manifest = await self._store.get(ResourceKind.SECRET, namespace, project_id)
        project = Project(Record.from_manifest(manifest))

        cfg = resolve(self._config, project)
        spec = build(request, cfg, project)

        try:
            await self._store.create(ResourceKind.POD, namespace, spec.to_manifest())
        except AlreadyExistsError:
            # Lost a race against another worker for the same request.
            return Outcome.DUPLICATE_SKIP
        return Outcome.SUBMITTED

    async def _report(
        self,
        result: ReconcileResult,
        request: BuildRequest | None,
        t0: float,
        **extra: str,
    ) -> None:
        latency_ms = int((time.monotonic() - t0) * 1000)
        fields = {
            "build": result.name,
            "namespace": result.namespace,
            "event_type": result.event_type,
            "commit": result.commit,
            "latency_ms": latency_ms,
            **extra,
        }
        log_event = _LOG_EVENTS[result.outcome]
        if result.error is not None:
            logger.error(
                log_event,
                error=str(result.error),
                error_type=type(result.error).__name__,
                retryable=result.error.is_retryable,
                **fields,
            )
        elif result.outcome == Outcome.FILTERED_OUT:
            logger.debug(log_event, **fields)
        else:
            logger.info(log_event, **fields)

        await self._events.log(
            BuildEvent(
                outcome=result.outcome,
                name=result.name,
                namespace=result.namespace,
                project_id=(request.project_id or None) if request else None,
                event_type=result.event_type,
                commit=result.commit,
                error=str(result.error) if result.error else None,
                error_type=type(result.error).__name__ if result.error else None,
                latency_ms=latency_ms,
                details=dict(extra),
            )
        )
