"""Typed shape of the worker pod submitted for one build."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from brigade_controller.core.constants import RESTART_POLICY_NEVER


class _PodModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class SecretKeyRef(_PodModel):
    name: str
    key: str


class FieldRef(_PodModel):
    field_path: str


class EnvVarSource(_PodModel):
    secret_key_ref: SecretKeyRef | None = None
    field_ref: FieldRef | None = None


class EnvVar(_PodModel):
    name: str
    value: str | None = None
    value_from: EnvVarSource | None = None


class VolumeMount(_PodModel):
    name: str
    mount_path: str
    read_only: bool = False


class SecretVolumeSource(_PodModel):
    secret_name: str


class EmptyDirVolumeSource(_PodModel):
    pass


class Volume(_PodModel):
    name: str
    secret: SecretVolumeSource | None = None
    empty_dir: EmptyDirVolumeSource | None = None


class Container(_PodModel):
    name: str
    image: str
    image_pull_policy: str
    command: list[str] | None = None
    volume_mounts: list[VolumeMount] = Field(default_factory=list)
    env: list[EnvVar] = Field(default_factory=list)


class ExecutionUnitSpec(_PodModel):
    """One-shot worker pod for a single build request."""

    name: str
    labels: dict[str, str] = Field(default_factory=dict)
    containers: list[Container]
    init_containers: list[Container] = Field(default_factory=list)
    volumes: list[Volume] = Field(default_factory=list)
    restart_policy: str = RESTART_POLICY_NEVER
    node_selector: dict[str, str] = Field(default_factory=dict)
    service_account_name: str | None = None

    @property
    def main(self) -> Container:
        return self.containers[0]

    @property
    def pre_step(self) -> Container | None:
        return self.init_containers[0] if self.init_containers else None

    def to_manifest(self) -> dict[str, Any]:
        """Render as a Kubernetes ``v1/Pod`` manifest."""
        spec = self.model_dump(
            by_alias=True, exclude_none=True, exclude={"name", "labels"}
        )
        if not spec["initContainers"]:
            del spec["initContainers"]
        return {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": {"name": self.name, "labels": dict(self.labels)},
            "spec": spec,
        }
