from brigade_controller.build.env import ENV_TABLE_V1, EnvEntry, EnvSource, env_table
from brigade_controller.build.models import Container, ExecutionUnitSpec
from brigade_controller.build.pod import build
from brigade_controller.build.resolver import EffectiveConfig, resolve

__all__ = [
    "ENV_TABLE_V1",
    "Container",
    "EffectiveConfig",
    "EnvEntry",
    "EnvSource",
    "ExecutionUnitSpec",
    "build",
    "env_table",
    "resolve",
]
