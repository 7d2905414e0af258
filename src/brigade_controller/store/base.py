from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Protocol, runtime_checkable

from brigade_controller.core.constants import ResourceKind
from brigade_controller.core.types import WatchEvent


@runtime_checkable
class RecordStoreProtocol(Protocol):
    """Structural type for any record store implementation.

    The reconciler accepts this Protocol so it works with any backend
    (KubeRecordStore, MockRecordStore, etc.) without importing concrete classes.
    """

    async def get(
        self, kind: ResourceKind, namespace: str, name: str
    ) -> dict[str, Any]: ...

    async def create(
        self, kind: ResourceKind, namespace: str, manifest: dict[str, Any]
    ) -> dict[str, Any]: ...


class RecordStore(ABC):
    """Abstract base for record store clients.

    Implementations must be safe to share between concurrent workers and
    must raise the classified errors from
    :mod:`brigade_controller.core.exceptions`:

    * :class:`NotFoundError` from :meth:`get` when the record is absent;
    * :class:`AlreadyExistsError` from :meth:`create` on a name collision;
    * :class:`TransportError` for anything else.
    """

    # ------------------------------------------------------------------ #
    # Connection lifecycle
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def connect(self) -> None: ...

    @abstractmethod
    async def close(self) -> None: ...

    async def __aenter__(self) -> RecordStore:
        await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # Record operations
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def get(
        self, kind: ResourceKind, namespace: str, name: str
    ) -> dict[str, Any]:
        """Return the manifest of record *name*."""

    @abstractmethod
    async def create(
        self, kind: ResourceKind, namespace: str, manifest: dict[str, Any]
    ) -> dict[str, Any]:
        """Create a record from *manifest* and return the stored manifest."""

    @abstractmethod
    def watch(
        self, kind: ResourceKind, namespace: str
    ) -> AsyncIterator[WatchEvent]:
        """Yield change notifications for records of *kind* in *namespace*."""
