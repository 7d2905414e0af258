from __future__ import annotations

import asyncio
import copy
from collections import defaultdict, deque
from typing import Any, AsyncIterator

from brigade_controller.core.constants import ChangeType, ResourceKind
from brigade_controller.core.exceptions import (
    AlreadyExistsError,
    BrigadeError,
    NotFoundError,
    TransportError,
)
from brigade_controller.core.types import Record, WatchEvent
from brigade_controller.store.base import RecordStore


class MockRecordStore(RecordStore):
    """In-memory record store for testing.

    Usage::

        store = MockRecordStore()
        store.add_record(Record(name="ahab", labels={...}))   # seed a secret
        store.fail_next("create", ResourceKind.POD, TransportError("boom"))
        await store.connect()

        manifest = await store.get(ResourceKind.SECRET, "default", "ahab")

    Push watch events::

        store.emit(WatchEvent.from_record(record))
        async for event in store.watch(ResourceKind.SECRET, "default"):
            ...

    Every call yields to the event loop once before touching state, so
    concurrent callers interleave the way they would against a real server.
    """

    def __init__(self) -> None:
        self._connected = False
        self._objects: dict[tuple[ResourceKind, str, str], dict[str, Any]] = {}
        self._errors: dict[tuple[str, ResourceKind], deque[BrigadeError]] = (
            defaultdict(deque)
        )
        self._event_queue: asyncio.Queue[WatchEvent | None] = asyncio.Queue()
        self.calls: list[tuple[str, ResourceKind, str, str]] = []

    # ------------------------------------------------------------------ #
    # Seeding helpers
    # ------------------------------------------------------------------ #

    def add_record(self, record: Record) -> None:
        """Store *record* as a secret without emitting a watch event."""
        key = (ResourceKind.SECRET, record.namespace, record.name)
        self._objects[key] = record.to_manifest()

    def fail_next(self, verb: str, kind: ResourceKind, error: BrigadeError) -> None:
        """Make the next ``get``/``create`` of *kind* raise *error*."""
        self._errors[(verb, kind)].append(error)

    def emit(self, event: WatchEvent) -> None:
        """Push an event into the watch stream."""
        self._event_queue.put_nowait(event)

    def close_stream(self) -> None:
        """Signal end of the watch stream."""
        self._event_queue.put_nowait(None)

    # ------------------------------------------------------------------ #
    # RecordStore ABC implementation
    # ------------------------------------------------------------------ #

    async def connect(self) -> None:
        self._connected = True

    async def close(self) -> None:
        self._connected = False
        self.close_stream()

    def _check(self, verb: str, kind: ResourceKind) -> None:
        if not self._connected:
            raise TransportError("MockRecordStore not connected. Call await store.connect() first.")
        pending = self._errors.get((verb, kind))
        if pending:
            raise pending.popleft()

    async def get(
        self, kind: ResourceKind, namespace: str, name: str
    ) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.calls.append(("get", kind, namespace, name))
        self._check("get", kind)
        try:
            return copy.deepcopy(self._objects[(kind, namespace, name)])
        except KeyError:
            raise NotFoundError(
                f'{kind} "{name}" not found', code="404", status_code=404
            ) from None

    async def create(
        self, kind: ResourceKind, namespace: str, manifest: dict[str, Any]
    ) -> dict[str, Any]:
        await asyncio.sleep(0)
        name = manifest.get("metadata", {}).get("name", "")
        self.calls.append(("create", kind, namespace, name))
        self._check("create", kind)
        key = (kind, namespace, name)
        if key in self._objects:
            raise AlreadyExistsError(
                f'{kind} "{name}" already exists', code="409", status_code=409
            )
        stored = copy.deepcopy(manifest)
        stored.setdefault("metadata", {})["namespace"] = namespace
        self._objects[key] = stored
        return copy.deepcopy(stored)

    async def watch(
        self, kind: ResourceKind, namespace: str
    ) -> AsyncIterator[WatchEvent]:
        if not self._connected:
            raise TransportError("MockRecordStore not connected.")
        while True:
            event = await self._event_queue.get()
            if event is None:
                break
            if event.namespace == namespace:
                if event.change_type != ChangeType.DELETED:
                    self.add_record(event.record)
                yield event

    # ------------------------------------------------------------------ #
    # Test helpers
    # ------------------------------------------------------------------ #

    def objects(self, kind: ResourceKind) -> list[dict[str, Any]]:
        """Return all stored manifests of *kind*."""
        return [copy.deepcopy(m) for (k, _, _), m in self._objects.items() if k == kind]

    def call_count(self, verb: str, kind: ResourceKind | None = None) -> int:
        return sum(
            1 for v, k, _, _ in self.calls if v == verb and (kind is None or k == kind)
        )

    def assert_not_called(self, verb: str, kind: ResourceKind | None = None) -> None:
        count = self.call_count(verb, kind)
        assert count == 0, f"Expected no '{verb}' calls, got {count}: {self.calls}"

    def reset(self) -> None:
        self.calls.clear()
        self._objects.clear()
        self._errors.clear()
        while not self._event_queue.empty():
            self._event_queue.get_nowait()
