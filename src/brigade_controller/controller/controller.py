from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import structlog

from brigade_controller.controller.reconciler import Reconciler, ReconcileResult
from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.constants import ResourceKind
from brigade_controller.core.exceptions import BrigadeError
from brigade_controller.core.types import WatchEvent
from brigade_controller.events.logger import BuildEventLog
from brigade_controller.store.base import RecordStore

logger = structlog.get_logger(__name__)

FailureHandler = Callable[[WatchEvent, ReconcileResult], Awaitable[None]]


class Controller:
    """Fixed pool of workers draining a bounded queue of watch events.

    Events come from :meth:`RecordStore.watch` while :meth:`run` is active,
    or from an external delivery mechanism via :meth:`enqueue`. Events for
    different requests are processed concurrently and in no particular
    order; duplicate units for the same request are prevented by the
    reconciler alone.

    Example::

        controller = Controller(store, config)
        stop = asyncio.Event()
        await controller.serve(stop)
    """

    def __init__(
        self,
        store: RecordStore,
        config: ControllerConfig,
        *,
        events: BuildEventLog | None = None,
        on_failure: FailureHandler | None = None,
    ) -> None:
        """Create a Controller.

        Args:
            store: Shared record store client.
            config: Process-wide defaults; ``workers`` and ``queue_size``
                size the pool.
            events: Build event log handed to the reconciler.
            on_failure: Awaited with every ``failed`` result. This is the
                hook for an external retry policy; the controller itself
                never retries.
        """
        self._store = store
        self._config = config
        self._reconciler = Reconciler(store, config, events)
        self._on_failure = on_failure
        self._queue: asyncio.Queue[WatchEvent | None] = asyncio.Queue(
            maxsize=config.queue_size
        )

    @property
    def reconciler(self) -> Reconciler:
        return self._reconciler

    async def enqueue(self, event: WatchEvent) -> None:
        """Queue *event*, waiting while the queue is full."""
        await self._queue.put(event)

    async def run(self, stop: asyncio.Event, *, watch: bool = True) -> None:
        """Run the worker pool until *stop* is set.

        With ``watch=True`` the store's watch stream feeds the queue and
        ``run`` also returns once that stream ends and the queue is
        drained. On shutdown, queued events that no worker has picked up
        are dropped and in-flight reconciliations run to completion.
        """
        workers = [
            asyncio.create_task(self._worker(i), name=f"brigade-worker-{i}")
            for i in range(self._config.workers)
        ]
        logger.info(
            "controller_started",
            namespace=self._config.namespace,
            workers=self._config.workers,
            watch=watch,
        )

        stop_task = asyncio.create_task(stop.wait())
        feeder = asyncio.create_task(self._feed()) if watch else None
        backlog: asyncio.Task[None] | None = None
        try:
            waiters: set[asyncio.Task[Any]] = {stop_task}
            if feeder is not None:
                waiters.add(feeder)
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)

            if feeder is not None and feeder.done() and feeder.exception() is None:
                # Watch stream ended on its own: finish the backlog unless stopped.
                backlog = asyncio.create_task(self._queue.join())
                await asyncio.wait({backlog, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = [t for t in (stop_task, feeder, backlog) if t is not None and not t.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            dropped = self._drain()
            for _ in workers:
                await self._queue.put(None)
            await asyncio.gather(*workers)
            logger.info("controller_stopped", dropped=dropped)

        if feeder is not None and not feeder.cancelled():
            exc = feeder.exception()
            if exc is not None:
                raise exc

    async def serve(self, stop: asyncio.Event, *, rewatch_delay: float = 1.0) -> None:
        """Keep :meth:`run` watching until *stop* is set.

        The API server closes every watch after its request timeout, so a
        stream that ends is followed by a fresh watch after *rewatch_delay*
        seconds. Retryable store errors from the watch are logged and
        retried the same way; any other error propagates.
        """
        while not stop.is_set():
            try:
                await self.run(stop)
            except BrigadeError as exc:
                if not exc.is_retryable:
                    raise
                logger.warning(
                    "watch_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    retry_in=rewatch_delay,
                )
            if stop.is_set():
                break
            logger.info("watch_restarting", namespace=self._config.namespace)
            try:
                await asyncio.wait_for(stop.wait(), timeout=rewatch_delay)
            except asyncio.TimeoutError:
                pass

    async def _feed(self) -> None:
        async for event in self._store.watch(ResourceKind.SECRET, self._config.namespace):
            await self._queue.put(event)
        logger.info("watch_stream_closed", namespace=self._config.namespace)

    def _drain(self) -> int:
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        return dropped

    async def _worker(self, index: int) -> None:
        log = logger.bind(worker=index)
        while True:
            event = await self._queue.get()
            try:
                if event is None:
                    return
                result = await self._reconciler.reconcile(event)
                if result.failed and self._on_failure is not None:
                    try:
                        await self._on_failure(event, result)
                    except Exception:
                        log.warning("failure_handler_error", build=event.name, exc_info=True)
            except Exception:
                log.exception("reconcile_crashed", build=event.name if event else None)
            finally:
                self._queue.task_done()
