from __future__ import annotations

from brigade_controller.build.env import render_env
from brigade_controller.build.models import (
    Container,
    EmptyDirVolumeSource,
    ExecutionUnitSpec,
    SecretVolumeSource,
    Volume,
    VolumeMount,
)
from brigade_controller.build.resolver import EffectiveConfig
from brigade_controller.core.constants import (
    NODE_OS,
    NODE_OS_SELECTOR_KEY,
    RESTART_POLICY_NEVER,
    RUNNER_CONTAINER_NAME,
    SIDECAR_CONTAINER_NAME,
    SIDECAR_VOLUME_NAME,
    SIDECAR_VOLUME_PATH,
    VOLUME_MOUNT_PATH,
    VOLUME_NAME,
)
from brigade_controller.core.types import BuildRequest, Project


def build(
    request: BuildRequest, cfg: EffectiveConfig, project: Project
) -> ExecutionUnitSpec:
    """Construct the worker pod for *request*.

    The result depends only on the arguments: the same inputs always give
    an equal spec.

    Layout:

    * ``brigade-runner`` runs the worker with the request record mounted
      read-only at ``/etc/brigade`` and the shared ``vcs-sidecar`` volume
      read-only at ``/vcs``.
    * ``vcs-sidecar`` is added as an init container only when the project
      names a sidecar image; it gets the same env and pull policy and
      writes into ``/vcs``.
    * The shared volume is declared even without a sidecar.

    Raises:
        InvalidConfigurationError: If *cfg* fails
            :meth:`EffectiveConfig.validate_for_submission`.
    """
    cfg.validate_for_submission()

    env = render_env(cfg.env_table, request)

    runner = Container(
        name=RUNNER_CONTAINER_NAME,
        image=cfg.worker_image,
        image_pull_policy=cfg.pull_policy,
        command=list(cfg.command) if cfg.command else None,
        volume_mounts=[
            VolumeMount(name=VOLUME_NAME, mount_path=VOLUME_MOUNT_PATH, read_only=True),
            VolumeMount(
                name=SIDECAR_VOLUME_NAME, mount_path=SIDECAR_VOLUME_PATH, read_only=True
            ),
        ],
        env=env,
    )

    init_containers: list[Container] = []
    if project.vcs_sidecar:
        init_containers.append(
            Container(
                name=SIDECAR_CONTAINER_NAME,
                image=project.vcs_sidecar,
                image_pull_policy=cfg.pull_policy,
                volume_mounts=[
                    VolumeMount(
                        name=SIDECAR_VOLUME_NAME,
                        mount_path=SIDECAR_VOLUME_PATH,
                        read_only=False,
                    )
                ],
                env=list(env),
            )
        )

    return ExecutionUnitSpec(
        name=request.name,
        labels=request.labels,
        containers=[runner],
        init_containers=init_containers,
        volumes=[
            Volume(name=VOLUME_NAME, secret=SecretVolumeSource(secret_name=request.name)),
            Volume(name=SIDECAR_VOLUME_NAME, empty_dir=EmptyDirVolumeSource()),
        ],
        restart_policy=RESTART_POLICY_NEVER,
        node_selector={NODE_OS_SELECTOR_KEY: NODE_OS},
        service_account_name=cfg.service_account or None,
    )
