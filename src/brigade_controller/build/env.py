"""Environment exported to worker pods.

The variable set is part of the worker contract, so it is kept as an
explicit, versioned table instead of being derived from whatever fields a
build request happens to carry.
"""

from __future__ import annotations

import base64
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from brigade_controller.build.models import EnvVar, EnvVarSource, FieldRef, SecretKeyRef
from brigade_controller.core.constants import ENV_PREFIX, BuildField
from brigade_controller.core.types import BuildRequest


class EnvSource(StrEnum):
    SECRET_KEY = "secret_key"
    """Reference to a field of the build request record."""
    NAMESPACE = "namespace"
    """Reference to the pod's own ``metadata.namespace``."""
    INLINE_SCRIPT = "inline_script"
    """Literal base64 copy of the build script."""


class EnvEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    source: EnvSource
    key: str | None = None


def env_name(field: str) -> str:
    """``event_type`` → ``BRIGADE_EVENT_TYPE``."""
    return f"{ENV_PREFIX}_{str(field).upper()}"


def secret_entry(field: str) -> EnvEntry:
    return EnvEntry(name=env_name(field), source=EnvSource.SECRET_KEY, key=str(field))


# TODO: drop INLINE_SCRIPT_ENTRY once brigade-worker reads /etc/brigade/script.
INLINE_SCRIPT_ENTRY = EnvEntry(
    name=env_name(BuildField.SCRIPT), source=EnvSource.INLINE_SCRIPT
)

ENV_TABLE_V1: tuple[EnvEntry, ...] = (
    secret_entry(BuildField.PROJECT_ID),
    secret_entry(BuildField.EVENT_TYPE),
    secret_entry(BuildField.EVENT_PROVIDER),
    secret_entry(BuildField.COMMIT),
    INLINE_SCRIPT_ENTRY,
    EnvEntry(name=f"{ENV_PREFIX}_PROJECT_NAMESPACE", source=EnvSource.NAMESPACE),
)


def env_table(
    extra_fields: tuple[str, ...] = (), *, inline_script: bool = True
) -> tuple[EnvEntry, ...]:
    """Return the v1 table extended with *extra_fields*.

    Extra fields already present in the table are ignored. With
    ``inline_script=False`` the literal script variable is left out.
    """
    entries = [e for e in ENV_TABLE_V1 if inline_script or e != INLINE_SCRIPT_ENTRY]
    known = {e.name for e in entries}
    for field in extra_fields:
        entry = secret_entry(field)
        if entry.name not in known:
            entries.append(entry)
            known.add(entry.name)
    return tuple(entries)


def render_env(table: tuple[EnvEntry, ...], request: BuildRequest) -> list[EnvVar]:
    """Render *table* as container env vars for *request*."""
    rendered: list[EnvVar] = []
    for entry in table:
        if entry.source == EnvSource.SECRET_KEY:
            source = EnvVarSource(
                secret_key_ref=SecretKeyRef(name=request.name, key=entry.key or "")
            )
            rendered.append(EnvVar(name=entry.name, value_from=source))
        elif entry.source == EnvSource.NAMESPACE:
            source = EnvVarSource(field_ref=FieldRef(field_path="metadata.namespace"))
            rendered.append(EnvVar(name=entry.name, value_from=source))
        else:
            encoded = base64.b64encode(request.script).decode("ascii")
            rendered.append(EnvVar(name=entry.name, value=encoded))
    return rendered
