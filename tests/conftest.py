"""Shared test fixtures."""
from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import pytest

from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.types import Record
from brigade_controller.store.mock import MockRecordStore

BUILD_LABELS = {
    "heritage": "brigade",
    "component": "build",
    "project": "ahab",
    "build": "queequeg",
}
PROJECT_LABELS = {"heritage": "brigade", "component": "project"}


def _make_build(
    name: str = "moby",
    data: dict[str, bytes] | None = None,
    labels: dict[str, str] | None = None,
    namespace: str = "default",
) -> Record:
    return Record(
        name=name,
        namespace=namespace,
        labels=dict(BUILD_LABELS if labels is None else labels),
        data=data or {},
    )


def _make_project(
    data: dict[str, bytes] | None = None,
    name: str = "ahab",
    namespace: str = "default",
) -> Record:
    return Record(
        name=name, namespace=namespace, labels=dict(PROJECT_LABELS), data=data or {}
    )


@pytest.fixture
def config() -> ControllerConfig:
    return ControllerConfig(
        namespace="default",
        worker_image="deis/brigade-worker:latest",
        worker_pull_policy="IfNotPresent",
        worker_service_account="my-service-account",
    )


@pytest.fixture
def mock_store() -> MockRecordStore:
    return MockRecordStore()


@pytest.fixture
async def connected_store() -> AsyncGenerator[MockRecordStore, None]:
    store = MockRecordStore()
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def make_build() -> Callable[..., Record]:
    """Factory for build request records (defaults to ``moby`` for project ``ahab``)."""
    return _make_build


@pytest.fixture
def make_project() -> Callable[..., Record]:
    """Factory for project records (defaults to ``ahab``)."""
    return _make_project
