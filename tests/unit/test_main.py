"""Tests for the ``python -m brigade_controller`` entry point."""
from __future__ import annotations

from pathlib import Path

import pytest

from brigade_controller import __main__ as cli
from brigade_controller.__version__ import __version__
from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.exceptions import TransportError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "BRIGADE_NAMESPACE",
        "BRIGADE_WORKER_PULL_POLICY",
        "BRIGADE_WORKERS",
        "BRIGADE_API_SERVER",
        "BRIGADE_LOG_LEVEL",
        "KUBERNETES_SERVICE_HOST",
    ):
        monkeypatch.delenv(name, raising=False)


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"brigade-controller {__version__}"


def test_invalid_configuration_exits_2(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("BRIGADE_WORKER_PULL_POLICY", "Sometimes")
    assert cli.main([]) == 2
    captured = capsys.readouterr()
    assert "Configuration error" in captured.err
    assert captured.out == ""


def test_flags_override_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[tuple[ControllerConfig, Path | None]] = []

    async def fake_serve(config: ControllerConfig, events_file: Path | None) -> None:
        seen.append((config, events_file))

    monkeypatch.setattr(cli, "_serve", fake_serve)
    monkeypatch.setenv("BRIGADE_NAMESPACE", "from-env")

    code = cli.main(
        [
            "--namespace",
            "builds",
            "--workers",
            "3",
            "--api-server",
            "https://kube.test",
            "--log-level",
            "WARNING",
            "--events-file",
            "/tmp/builds.jsonl",
        ]
    )

    assert code == 0
    ((config, events_file),) = seen
    assert config.namespace == "builds"
    assert config.workers == 3
    assert config.api_server == "https://kube.test"
    assert config.log_level == "WARNING"
    assert events_file == Path("/tmp/builds.jsonl")


def test_environment_used_without_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[ControllerConfig] = []

    async def fake_serve(config: ControllerConfig, events_file: Path | None) -> None:
        seen.append(config)

    monkeypatch.setattr(cli, "_serve", fake_serve)
    monkeypatch.setenv("BRIGADE_NAMESPACE", "from-env")

    assert cli.main([]) == 0
    assert seen[0].namespace == "from-env"


def test_controller_error_exits_1(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_serve(config: ControllerConfig, events_file: Path | None) -> None:
        raise TransportError("watch failed")

    monkeypatch.setattr(cli, "_serve", fake_serve)
    assert cli.main(["--log-level", "ERROR"]) == 1


def test_invalid_worker_count_flag_exits_2() -> None:
    assert cli.main(["--workers", "0"]) == 2


def test_lowercase_log_level_in_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[ControllerConfig] = []

    async def fake_serve(config: ControllerConfig, events_file: Path | None) -> None:
        seen.append(config)

    monkeypatch.setattr(cli, "_serve", fake_serve)
    monkeypatch.setenv("BRIGADE_LOG_LEVEL", "warning")

    assert cli.main([]) == 0
    assert seen[0].log_level == "WARNING"
