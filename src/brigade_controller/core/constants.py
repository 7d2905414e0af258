from __future__ import annotations

from enum import StrEnum

HERITAGE = "brigade"

# Env var prefix for everything synthesized into the worker pod.
ENV_PREFIX = "BRIGADE"

# Pod layout. Consumers depend on these names and paths.
RUNNER_CONTAINER_NAME = "brigade-runner"
SIDECAR_CONTAINER_NAME = "vcs-sidecar"
VOLUME_NAME = "brigade-build"
VOLUME_MOUNT_PATH = "/etc/brigade"
SIDECAR_VOLUME_NAME = "vcs-sidecar"
SIDECAR_VOLUME_PATH = "/vcs"

NODE_OS_SELECTOR_KEY = "beta.kubernetes.io/os"
NODE_OS = "linux"

RESTART_POLICY_NEVER = "Never"


class ResourceKind(StrEnum):
    """Record kinds the store client knows how to address."""

    SECRET = "secrets"
    POD = "pods"


class RecordKind(StrEnum):
    BUILD = "build"
    PROJECT = "project"
    OTHER = "other"


class ChangeType(StrEnum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class PullPolicy(StrEnum):
    ALWAYS = "Always"
    IF_NOT_PRESENT = "IfNotPresent"
    NEVER = "Never"


class Outcome(StrEnum):
    """Terminal state of one reconciliation."""

    FILTERED_OUT = "filtered_out"
    DUPLICATE_SKIP = "duplicate_skip"
    SUBMITTED = "submitted"
    FAILED = "failed"


class BuildField(StrEnum):
    """Data keys read from a build request record."""

    PROJECT_ID = "project_id"
    EVENT_TYPE = "event_type"
    EVENT_PROVIDER = "event_provider"
    COMMIT = "commit"
    SCRIPT = "script"


class ProjectField(StrEnum):
    """Data keys read from a project record."""

    VCS_SIDECAR = "vcsSidecar"
    WORKER_REGISTRY = "worker.registry"
    WORKER_NAME = "worker.name"
    WORKER_TAG = "worker.tag"
    WORKER_PULL_POLICY = "worker.pullPolicy"
    WORKER_COMMAND = "workerCommand"
