from __future__ import annotations

import base64
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from brigade_controller.core.constants import (
    HERITAGE,
    BuildField,
    ChangeType,
    ProjectField,
    RecordKind,
)


def classify(labels: dict[str, str]) -> RecordKind:
    """Decide the record kind from its labels.

    Only records carrying the ``heritage=brigade`` label are ever considered;
    ``component`` then selects between build requests and projects.
    """
    if labels.get("heritage") != HERITAGE:
        return RecordKind.OTHER
    component = labels.get("component")
    if component == "build":
        return RecordKind.BUILD
    if component == "project":
        return RecordKind.PROJECT
    return RecordKind.OTHER


class Record(BaseModel):
    """A secret-shaped record: named, labelled, with opaque byte fields."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str = "default"
    labels: dict[str, str] = Field(default_factory=dict)
    data: dict[str, bytes] = Field(default_factory=dict)

    @property
    def kind(self) -> RecordKind:
        return classify(self.labels)

    def text(self, key: str) -> str:
        """Return field *key* decoded as UTF-8 and stripped, ``""`` when absent."""
        raw = self.data.get(key)
        if raw is None:
            return ""
        return raw.decode("utf-8", errors="replace").strip()

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> Record:
        """Parse a Kubernetes secret manifest (``data`` values are base64)."""
        metadata = manifest.get("metadata") or {}
        data = {
            key: base64.b64decode(value or "")
            for key, value in (manifest.get("data") or {}).items()
        }
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace") or "default",
            labels=dict(metadata.get("labels") or {}),
            data=data,
        )

    def to_manifest(self) -> dict[str, Any]:
        """Render as a Kubernetes secret manifest."""
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": dict(self.labels),
            },
            "type": "Opaque",
            "data": {
                key: base64.b64encode(value).decode("ascii")
                for key, value in self.data.items()
            },
        }


class BuildRequest:
    """Read-only view of a build request record."""

    def __init__(self, record: Record) -> None:
        self._record = record

    def __repr__(self) -> str:
        return f"BuildRequest(name={self.name!r}, namespace={self.namespace!r})"

    @property
    def record(self) -> Record:
        return self._record

    @property
    def name(self) -> str:
        return self._record.name

    @property
    def namespace(self) -> str:
        return self._record.namespace

    @property
    def labels(self) -> dict[str, str]:
        return dict(self._record.labels)

    @property
    def event_type(self) -> str:
        return self._record.text(BuildField.EVENT_TYPE)

    @property
    def event_provider(self) -> str:
        return self._record.text(BuildField.EVENT_PROVIDER)

    @property
    def commit(self) -> str:
        return self._record.text(BuildField.COMMIT)

    @property
    def project_id(self) -> str:
        """Project id from the ``project_id`` field, else the ``project`` label."""
        return self._record.text(BuildField.PROJECT_ID) or self._record.labels.get(
            "project", ""
        )

    @property
    def script(self) -> bytes:
        return self._record.data.get(BuildField.SCRIPT, b"")


class Project:
    """Per-project overrides. Every accessor returns ``None`` when unset."""

    def __init__(self, record: Record) -> None:
        self._record = record

    def __repr__(self) -> str:
        return f"Project(name={self.name!r})"

    @property
    def name(self) -> str:
        return self._record.name

    def _get(self, field: ProjectField) -> str | None:
        return self._record.text(field) or None

    @property
    def vcs_sidecar(self) -> str | None:
        return self._get(ProjectField.VCS_SIDECAR)

    @property
    def worker_registry(self) -> str | None:
        return self._get(ProjectField.WORKER_REGISTRY)

    @property
    def worker_name(self) -> str | None:
        return self._get(ProjectField.WORKER_NAME)

    @property
    def worker_tag(self) -> str | None:
        return self._get(ProjectField.WORKER_TAG)

    @property
    def worker_pull_policy(self) -> str | None:
        return self._get(ProjectField.WORKER_PULL_POLICY)

    @property
    def worker_command(self) -> str | None:
        return self._get(ProjectField.WORKER_COMMAND)


class WatchEvent(BaseModel):
    """One notification from the record watch, with its kind decided."""

    model_config = ConfigDict(frozen=True)

    change_type: ChangeType
    kind: RecordKind
    record: Record

    @classmethod
    def from_record(
        cls, record: Record, change_type: ChangeType = ChangeType.ADDED
    ) -> WatchEvent:
        return cls(change_type=change_type, kind=record.kind, record=record)

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def namespace(self) -> str:
        return self.record.namespace
