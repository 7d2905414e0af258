from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brigade_controller.core.constants import PullPolicy
from brigade_controller.core.exceptions import ConfigurationError

DEFAULT_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"
DEFAULT_CA_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ControllerConfig(BaseModel):
    """Process-wide defaults, loaded once at startup and never mutated."""

    model_config = ConfigDict(frozen=True)

    namespace: str = "default"
    worker_image: str = "deis/brigade-worker:latest"
    worker_pull_policy: str = PullPolicy.IF_NOT_PRESENT.value
    worker_service_account: str = ""
    worker_command: str = "yarn -s start"
    """Default runner command; empty falls back to the image entrypoint."""
    workers: int = Field(default=1, ge=1, le=64)
    queue_size: int = Field(default=100, ge=1)
    extra_env_fields: tuple[str, ...] = ()
    """Build request fields exported in addition to the built-in env table."""
    inline_script: bool = True
    """Export the build script as a literal ``BRIGADE_SCRIPT`` value.

    Compatibility for workers that cannot read ``/etc/brigade/script`` yet.
    """
    api_server: str = "https://kubernetes.default.svc"
    token_path: str | None = DEFAULT_TOKEN_PATH
    ca_path: str | None = DEFAULT_CA_PATH
    timeout: float = Field(default=30.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True

    @field_validator("worker_pull_policy")
    @classmethod
    def _check_pull_policy(cls, value: str) -> str:
        if value not in {p.value for p in PullPolicy}:
            raise ValueError(
                f"worker_pull_policy must be one of "
                f"{[p.value for p in PullPolicy]}, got {value!r}"
            )
        return value

    @field_validator("worker_image")
    @classmethod
    def _check_worker_image(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("worker_image must not be empty")
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> ControllerConfig:
        """Create a :class:`ControllerConfig` from ``BRIGADE_*`` environment variables.

        Reads the following env vars (all optional):

        * ``BRIGADE_NAMESPACE`` → ``namespace``
        * ``BRIGADE_WORKER_IMAGE`` → ``worker_image``
        * ``BRIGADE_WORKER_PULL_POLICY`` → ``worker_pull_policy``
        * ``BRIGADE_WORKER_SERVICE_ACCOUNT`` → ``worker_service_account``
        * ``BRIGADE_WORKER_COMMAND`` → ``worker_command``
        * ``BRIGADE_WORKERS`` → ``workers``
        * ``BRIGADE_QUEUE_SIZE`` → ``queue_size``
        * ``BRIGADE_EXTRA_ENV_FIELDS`` → ``extra_env_fields`` (comma separated)
        * ``BRIGADE_INLINE_SCRIPT`` → ``inline_script``
        * ``BRIGADE_API_SERVER`` → ``api_server``, falling back to
          ``KUBERNETES_SERVICE_HOST`` / ``KUBERNETES_SERVICE_PORT``
        * ``BRIGADE_LOG_LEVEL`` → ``log_level`` (case-insensitive)
        * ``BRIGADE_LOG_JSON`` → ``log_json``

        Variables that are unset or empty keep their default. Keyword
        *overrides* (e.g. from command-line flags) win over the environment.

        Raises:
            ConfigurationError: If the resulting configuration is invalid.
        """
        kwargs: dict[str, Any] = {}

        simple = {
            "BRIGADE_NAMESPACE": "namespace",
            "BRIGADE_WORKER_IMAGE": "worker_image",
            "BRIGADE_WORKER_PULL_POLICY": "worker_pull_policy",
            "BRIGADE_WORKER_SERVICE_ACCOUNT": "worker_service_account",
        }
        for env_name, field in simple.items():
            value = os.environ.get(env_name)
            if value:
                kwargs[field] = value

        log_level = os.environ.get("BRIGADE_LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level.upper()

        # Empty is meaningful here: it selects the image entrypoint.
        if "BRIGADE_WORKER_COMMAND" in os.environ:
            kwargs["worker_command"] = os.environ["BRIGADE_WORKER_COMMAND"]

        workers = os.environ.get("BRIGADE_WORKERS")
        if workers:
            kwargs["workers"] = workers

        queue_size = os.environ.get("BRIGADE_QUEUE_SIZE")
        if queue_size:
            kwargs["queue_size"] = queue_size

        extra = os.environ.get("BRIGADE_EXTRA_ENV_FIELDS")
        if extra:
            kwargs["extra_env_fields"] = tuple(
                f.strip() for f in extra.split(",") if f.strip()
            )

        inline_script = os.environ.get("BRIGADE_INLINE_SCRIPT")
        if inline_script:
            kwargs["inline_script"] = inline_script.lower() in _TRUE_VALUES

        log_json = os.environ.get("BRIGADE_LOG_JSON")
        if log_json:
            kwargs["log_json"] = log_json.lower() in _TRUE_VALUES

        api_server = os.environ.get("BRIGADE_API_SERVER")
        if not api_server:
            host = os.environ.get("KUBERNETES_SERVICE_HOST")
            port = os.environ.get("KUBERNETES_SERVICE_PORT", "443")
            if host:
                api_server = f"https://{host}:{port}"
        if api_server:
            kwargs["api_server"] = api_server

        kwargs.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**kwargs)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid controller configuration: {exc}") from exc
