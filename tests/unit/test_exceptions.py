"""Tests for core/exceptions.py — the error taxonomy."""
from __future__ import annotations

import pytest

from brigade_controller.core.exceptions import (
    AlreadyExistsError,
    BrigadeError,
    ConfigurationError,
    InvalidConfigurationError,
    NotFoundError,
    StoreError,
    TransportError,
)


def test_base_exception_message() -> None:
    exc = BrigadeError("something went wrong")
    assert str(exc) == "something went wrong"


def test_base_exception_defaults() -> None:
    exc = BrigadeError("msg")
    assert exc.code is None
    assert exc.details == {}
    assert exc.status_code is None


def test_base_exception_with_code_details_and_status() -> None:
    exc = BrigadeError("msg", code="409", details={"kind": "pods"}, status_code=409)
    assert exc.code == "409"
    assert exc.details == {"kind": "pods"}
    assert exc.status_code == 409


@pytest.mark.parametrize(
    "cls",
    [NotFoundError, AlreadyExistsError, TransportError],
)
def test_store_errors_share_base(cls: type[BrigadeError]) -> None:
    exc = cls("msg")
    assert isinstance(exc, StoreError)
    assert isinstance(exc, BrigadeError)


def test_configuration_errors_are_not_store_errors() -> None:
    assert not isinstance(InvalidConfigurationError("x"), StoreError)
    assert not isinstance(ConfigurationError("x"), StoreError)


def test_only_transport_errors_are_retryable() -> None:
    assert TransportError("x").is_retryable is True
    assert NotFoundError("x").is_retryable is False
    assert AlreadyExistsError("x").is_retryable is False
    assert InvalidConfigurationError("x").is_retryable is False
