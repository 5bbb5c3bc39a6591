"""Unit tests for exception-to-exit-code routing at the CLI boundary."""

from __future__ import annotations

import pytest

from deploycheck.errors import ContractViolation
from deploycheck.main import ExitCode, _normalize_exit_code, _route_exception
from deploycheck.settings import SettingsLoadError
from deploycheck.spans import SourceSpan
from deploycheck.validation import DocumentReadError, UndefinedRequirementError


def _chained(outer: BaseException, inner: BaseException) -> BaseException:
    try:
        try:
            raise inner
        except BaseException as exc:
            raise outer from exc
    except BaseException as exc:
        return exc
    raise AssertionError("exception was not raised")


def test_diagnostics_route_to_diagnostic_exit_code() -> None:
    error = UndefinedRequirementError(
        document_name="deploy.spec.toml",
        document_text="env = [\"A\"]\n",
        key="A",
        span=SourceSpan(7, 10),
    )
    assert _route_exception(error) is ExitCode.DIAGNOSTIC


@pytest.mark.parametrize(
    "error",
    [
        SettingsLoadError("settings file not found: x"),
        DocumentReadError("cannot read spec", path="x"),
    ],
)
def test_user_errors_route_to_config_error(error: Exception) -> None:
    assert _route_exception(error) is ExitCode.CONFIG_ERROR


def test_cause_chain_is_followed() -> None:
    error = _chained(RuntimeError("wrapper"), DocumentReadError("cannot read config", path="y"))
    assert _route_exception(error) is ExitCode.CONFIG_ERROR


def test_contract_violation_is_an_internal_error() -> None:
    violation = ContractViolation("binding is not normalized")
    assert _route_exception(violation) is ExitCode.INTERNAL_ERROR
    assert _route_exception(KeyError("x")) is ExitCode.INTERNAL_ERROR


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0, 0), (None, 0), (2, 2), (42, 3), ("boom", 3)],
)
def test_normalize_exit_code(raw: object, expected: int) -> None:
    assert _normalize_exit_code(raw) == expected
