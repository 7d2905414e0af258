from __future__ import annotations

from typing import Any


class BrigadeError(Exception):
    """Base exception for all controller errors.

    Attributes:
        code: Optional machine-readable error code (e.g. ``"409"``).
        details: Arbitrary key/value context about the error.
        status_code: HTTP status code when the error originates from the
            record store (``None`` when not applicable).
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    @property
    def is_retryable(self) -> bool:
        """Whether redelivering the triggering event may succeed."""
        return False


class ConfigurationError(BrigadeError):
    """Invalid process-wide configuration detected at startup."""


class InvalidConfigurationError(BrigadeError):
    """A project override or resolved value the platform cannot accept.

    Never retryable: the project record must be fixed first.
    """


# ---------------------------------------------------------------------------
# Record store errors
# ---------------------------------------------------------------------------


class StoreError(BrigadeError): ...


class NotFoundError(StoreError):
    """The requested record does not exist."""


class AlreadyExistsError(StoreError):
    """A record with the same name already exists."""


class TransportError(StoreError):
    """Any other record store failure (network, auth, server error).

    Always retryable from the point of view of the external queue.
    """

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return True
