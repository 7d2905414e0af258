"""Merge process-wide defaults with per-project overrides."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from brigade_controller.build.env import EnvEntry, env_table
from brigade_controller.core.config import ControllerConfig
from brigade_controller.core.constants import PullPolicy
from brigade_controller.core.exceptions import InvalidConfigurationError
from brigade_controller.core.types import Project

# Path component separators are ".", "_", "__" or a run of "-".
_PATH_COMPONENT = r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*"

# [registry[:port]/]repository[:tag][@sha256:digest]
_IMAGE_REF = re.compile(
    r"^(?:[A-Za-z0-9.\-]+(?::[0-9]+)?/)?"
    rf"{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*"
    r"(?::[A-Za-z0-9_][A-Za-z0-9_.\-]{0,127})?"
    r"(?:@sha256:[a-f0-9]{64})?$"
)


class EffectiveConfig(BaseModel):
    """Configuration for one build, recomputed on every reconciliation."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    worker_image: str
    pull_policy: str
    service_account: str = ""
    command: tuple[str, ...] | None = None
    env_table: tuple[EnvEntry, ...] = ()

    def validate_for_submission(self) -> None:
        """Reject values the platform would refuse.

        Raises:
            InvalidConfigurationError: On an unrecognized pull policy or a
                malformed worker image reference.
        """
        if self.pull_policy not in {p.value for p in PullPolicy}:
            raise InvalidConfigurationError(
                f"unrecognized pull policy {self.pull_policy!r}",
                details={
                    "pull_policy": self.pull_policy,
                    "allowed": [p.value for p in PullPolicy],
                },
            )
        if not _IMAGE_REF.match(self.worker_image):
            raise InvalidConfigurationError(
                f"malformed worker image {self.worker_image!r}",
                details={"worker_image": self.worker_image},
            )


def resolve(defaults: ControllerConfig, project: Project) -> EffectiveConfig:
    """Resolve the effective worker configuration for *project*.

    A project value only wins when present and non-empty. The image override
    is all-or-nothing: ``registry``, ``name`` and ``tag`` must all be set,
    otherwise the default image is used unchanged. The pull policy override
    is taken verbatim and checked later by
    :meth:`EffectiveConfig.validate_for_submission`.
    """
    image = defaults.worker_image
    triple = (project.worker_registry, project.worker_name, project.worker_tag)
    if all(triple):
        registry, name, tag = triple
        image = f"{registry}/{name}:{tag}"

    pull_policy = project.worker_pull_policy or defaults.worker_pull_policy

    command_line = project.worker_command or defaults.worker_command
    command = tuple(command_line.split()) or None

    return EffectiveConfig(
        namespace=defaults.namespace,
        worker_image=image,
        pull_policy=pull_policy,
        service_account=defaults.worker_service_account,
        command=command,
        env_table=env_table(
            defaults.extra_env_fields, inline_script=defaults.inline_script
        ),
    )
