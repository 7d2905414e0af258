from __future__ import annotations

import json
import ssl
from pathlib import Path
from typing import Any, AsyncIterator

import httpx
import structlog

from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.constants import ChangeType, ResourceKind
from brigade_controller.core.exceptions import (
    AlreadyExistsError,
    InvalidConfigurationError,
    NotFoundError,
    StoreError,
    TransportError,
)
from brigade_controller.core.types import Record, WatchEvent
from brigade_controller.store.base import RecordStore

logger = structlog.get_logger(__name__)


def _error_body(resp: httpx.Response) -> dict[str, Any]:
    try:
        body: dict[str, Any] = resp.json()
    except ValueError:
        body = {"raw": resp.text[:500]}
    return body


def _json_body(resp: httpx.Response, action: str) -> dict[str, Any]:
    try:
        return resp.json()
    except ValueError as exc:
        raise TransportError(
            f"{action} returned a non-JSON body", details={"raw": resp.text[:500]}
        ) from exc


def _classify(resp: httpx.Response, action: str) -> StoreError | InvalidConfigurationError:
    """Map a Kubernetes error response onto the controller's error taxonomy."""
    body = _error_body(resp)
    message = body.get("message") or f"{action} failed with HTTP {resp.status_code}"
    kwargs: dict[str, Any] = {
        "code": str(resp.status_code),
        "details": body,
        "status_code": resp.status_code,
    }
    if resp.status_code == 404:
        return NotFoundError(message, **kwargs)
    if resp.status_code == 409:
        return AlreadyExistsError(message, **kwargs)
    if resp.status_code == 422:
        return InvalidConfigurationError(message, **kwargs)
    return TransportError(message, **kwargs)


class KubeRecordStore(RecordStore):
    """Record store backed by the Kubernetes core/v1 REST API.

    Talks plain HTTP through :class:`httpx.AsyncClient`; one client is
    shared by all workers.
    """

    def __init__(
        self,
        api_server: str,
        token: str | None = None,
        *,
        verify: ssl.SSLContext | bool = True,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a KubeRecordStore.

        Args:
            api_server: Base URL of the API server,
                e.g. ``"https://kubernetes.default.svc"``.
            token: Optional bearer token.
            verify: SSL context, or a bool toggling TLS verification.
            timeout: Request timeout in seconds. Watch streams have no
                read timeout.
            transport: Custom httpx transport (used by tests).
        """
        self._api_server = api_server.rstrip("/")
        self._token = token
        self._verify = verify
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, config: ControllerConfig) -> KubeRecordStore:
        """Build a store using in-cluster service account credentials when present."""
        token: str | None = None
        if config.token_path and Path(config.token_path).is_file():
            token = Path(config.token_path).read_text(encoding="utf-8").strip()
        verify: ssl.SSLContext | bool = True
        if config.ca_path and Path(config.ca_path).is_file():
            verify = ssl.create_default_context(cafile=config.ca_path)
        return cls(
            config.api_server,
            token,
            verify=verify,
            timeout=config.timeout,
        )

    # ------------------------------------------------------------------ #
    # Connection lifecycle
    # ------------------------------------------------------------------ #

    async def connect(self) -> None:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        kwargs: dict[str, Any] = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(
            base_url=self._api_server,
            headers=headers,
            timeout=self._timeout,
            verify=self._verify,
            **kwargs,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise TransportError(
                "KubeRecordStore not connected. Call await store.connect() first."
            )
        return self._client

    @staticmethod
    def _path(kind: ResourceKind, namespace: str, name: str | None = None) -> str:
        path = f"/api/v1/namespaces/{namespace}/{kind.value}"
        if name:
            path = f"{path}/{name}"
        return path

    # ------------------------------------------------------------------ #
    # Record operations
    # ------------------------------------------------------------------ #

    async def get(
        self, kind: ResourceKind, namespace: str, name: str
    ) -> dict[str, Any]:
        client = self._require_client()
        try:
            resp = await client.get(self._path(kind, namespace, name))
        except httpx.HTTPError as exc:
            raise TransportError(f"GET {kind} {namespace}/{name} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise _classify(resp, f"get {kind} {namespace}/{name}")
        return _json_body(resp, f"get {kind} {namespace}/{name}")

    async def create(
        self, kind: ResourceKind, namespace: str, manifest: dict[str, Any]
    ) -> dict[str, Any]:
        client = self._require_client()
        name = manifest.get("metadata", {}).get("name", "")
        try:
            resp = await client.post(self._path(kind, namespace), json=manifest)
        except httpx.HTTPError as exc:
            raise TransportError(f"POST {kind} {namespace}/{name} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise _classify(resp, f"create {kind} {namespace}/{name}")
        return _json_body(resp, f"create {kind} {namespace}/{name}")

    async def watch(
        self, kind: ResourceKind, namespace: str
    ) -> AsyncIterator[WatchEvent]:
        """Stream ``?watch=true`` notifications as :class:`WatchEvent` objects.

        The stream ends when the server closes it; reconnecting is left to
        the caller. ``ERROR`` and ``BOOKMARK`` frames are logged and skipped.
        """
        client = self._require_client()
        try:
            async with client.stream(
                "GET",
                self._path(kind, namespace),
                params={"watch": "true"},
                timeout=httpx.Timeout(self._timeout, read=None),
            ) as resp:
                if resp.status_code >= 400:
                    await resp.aread()
                    raise _classify(resp, f"watch {kind} {namespace}")
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    event = self._decode(line)
                    if event is not None:
                        yield event
        except httpx.HTTPError as exc:
            raise TransportError(f"watch {kind} {namespace} failed: {exc}") from exc

    @staticmethod
    def _decode(line: str) -> WatchEvent | None:
        try:
            frame = json.loads(line)
        except ValueError:
            logger.warning("watch_frame_invalid", line=line[:200])
            return None
        if not isinstance(frame, dict):
            logger.warning("watch_frame_invalid", line=line[:200])
            return None

        frame_type = frame.get("type", "")
        if not isinstance(frame_type, str) or frame_type not in ChangeType.__members__:
            logger.debug("watch_frame_skipped", frame_type=frame_type)
            return None
        try:
            record = Record.from_manifest(frame.get("object") or {})
        except (ValueError, AttributeError) as exc:
            # binascii.Error and pydantic.ValidationError are both ValueErrors.
            logger.warning("watch_object_invalid", frame_type=frame_type, error=str(exc))
            return None
        return WatchEvent.from_record(record, ChangeType(frame_type))
