"""Build event data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from brigade_controller.core.constants import Outcome


class BuildEvent(BaseModel):
    """Record of one classified reconciliation.

    Emitted for every outcome so a stuck build (``failed``) can be told
    apart from deliberate no-ops (``duplicate_skip``, ``filtered_out``).
    """

    event_id: str = Field(default_factory=lambda: uuid4().hex[:16])
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    outcome: Outcome
    name: str
    namespace: str = "default"
    project_id: str | None = None
    event_type: str | None = None
    commit: str | None = None
    error: str | None = None
    error_type: str | None = None
    latency_ms: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)
