"""Tests for build/resolver.py — resolve() and EffectiveConfig."""
from __future__ import annotations

import pytest

from brigade_controller.build.env import ENV_TABLE_V1, INLINE_SCRIPT_ENTRY
from brigade_controller.build.resolver import EffectiveConfig, resolve
from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.exceptions import InvalidConfigurationError
from brigade_controller.core.types import Project, Record

DEFAULTS = ControllerConfig(
    namespace="default",
    worker_image="deis/brigade-worker:latest",
    worker_pull_policy="IfNotPresent",
    worker_service_account="my-service-account",
)


def _project(**fields: str) -> Project:
    return Project(
        Record(name="ahab", data={k: v.encode() for k, v in fields.items()})
    )


# ---------------------------------------------------------------------------
# Worker image: all-or-nothing triple
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        ({}, "deis/brigade-worker:latest"),
        (
            {"worker.registry": "myrepo", "worker.name": "brigade-worker-with-deps", "worker.tag": "canary"},
            "myrepo/brigade-worker-with-deps:canary",
        ),
        ({"worker.tag": "canary"}, "deis/brigade-worker:latest"),
        ({"worker.registry": "myrepo", "worker.name": "w"}, "deis/brigade-worker:latest"),
        ({"worker.name": "w", "worker.tag": "t"}, "deis/brigade-worker:latest"),
        (
            {"worker.registry": "myrepo", "worker.name": "w", "worker.tag": ""},
            "deis/brigade-worker:latest",
        ),
    ],
)
def test_worker_image_resolution(fields: dict[str, str], expected: str) -> None:
    assert resolve(DEFAULTS, _project(**fields)).worker_image == expected


# ---------------------------------------------------------------------------
# Pull policy, service account, namespace
# ---------------------------------------------------------------------------


def test_pull_policy_defaults() -> None:
    assert resolve(DEFAULTS, _project()).pull_policy == "IfNotPresent"


def test_pull_policy_override_verbatim() -> None:
    assert resolve(DEFAULTS, _project(**{"worker.pullPolicy": "Always"})).pull_policy == "Always"


def test_unrecognized_pull_policy_is_kept_for_validation() -> None:
    cfg = resolve(DEFAULTS, _project(**{"worker.pullPolicy": "Sometimes"}))
    assert cfg.pull_policy == "Sometimes"
    with pytest.raises(InvalidConfigurationError, match="pull policy"):
        cfg.validate_for_submission()


def test_service_account_comes_from_defaults_only() -> None:
    cfg = resolve(DEFAULTS, _project(serviceAccount="ignored"))
    assert cfg.service_account == "my-service-account"
    assert cfg.namespace == "default"


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def test_default_command_is_tokenized() -> None:
    assert resolve(DEFAULTS, _project()).command == ("yarn", "-s", "start")


def test_project_command_overrides_default() -> None:
    cfg = resolve(DEFAULTS, _project(workerCommand="worker  command\n"))
    assert cfg.command == ("worker", "command")


def test_empty_default_command_means_image_entrypoint() -> None:
    defaults = DEFAULTS.model_copy(update={"worker_command": ""})
    assert resolve(defaults, _project()).command is None


# ---------------------------------------------------------------------------
# Env table
# ---------------------------------------------------------------------------


def test_env_table_defaults_to_v1() -> None:
    assert resolve(DEFAULTS, _project()).env_table == ENV_TABLE_V1


def test_env_table_without_inline_script() -> None:
    defaults = DEFAULTS.model_copy(update={"inline_script": False})
    table = resolve(defaults, _project()).env_table
    assert INLINE_SCRIPT_ENTRY not in table
    assert len(table) == len(ENV_TABLE_V1) - 1


# ---------------------------------------------------------------------------
# Purity
# ---------------------------------------------------------------------------


def test_resolve_is_deterministic() -> None:
    project = _project(**{"worker.pullPolicy": "Always", "workerCommand": "a b"})
    assert resolve(DEFAULTS, project) == resolve(DEFAULTS, project)


# ---------------------------------------------------------------------------
# validate_for_submission()
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "image",
    [
        "deis/brigade-worker:latest",
        "acidic.azurecr.io/acid-worker:latest",
        "localhost:5000/team/worker:1.2.3",
        "busybox",
        "myrepo/w@sha256:" + "a" * 64,
        "myrepo/my__img:1",
        "myrepo/my--img:1",
        "my.team/img_v2/brigade-worker",
    ],
)
def test_valid_images_pass(image: str) -> None:
    EffectiveConfig(namespace="d", worker_image=image, pull_policy="Always").validate_for_submission()


@pytest.mark.parametrize(
    "image",
    [
        "myrepo/worker:can ary",
        "my repo/worker:1",
        "myrepo/Worker:1",
        "myrepo/worker:ta/g",
        "myrepo/worker:",
        "myrepo/my___img:1",
        "myrepo/my.-img:1",
        "myrepo/-img:1",
    ],
)
def test_malformed_images_rejected(image: str) -> None:
    cfg = EffectiveConfig(namespace="d", worker_image=image, pull_policy="Always")
    with pytest.raises(InvalidConfigurationError, match="malformed worker image"):
        cfg.validate_for_submission()


def test_malformed_override_triple_surfaces_as_invalid_configuration() -> None:
    cfg = resolve(
        DEFAULTS,
        _project(**{"worker.registry": "myrepo", "worker.name": "worker", "worker.tag": "a:b"}),
    )
    with pytest.raises(InvalidConfigurationError):
        cfg.validate_for_submission()
