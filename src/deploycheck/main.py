"""Executable CLI entrypoint for ``deploycheck``."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

from deploycheck.diagnostics.errors import DiagnosticError
from deploycheck.diagnostics.reporter import render_diagnostic
from deploycheck.errors import ContractViolation
from deploycheck.settings import SettingsLoadError, SettingsValidationError
from deploycheck.validation.errors import DocumentReadError

if TYPE_CHECKING:
    from collections.abc import Sequence


class ExitCode(IntEnum):
    """Deterministic process exit-code contract."""

    SUCCESS = 0
    DIAGNOSTIC = 1
    CONFIG_ERROR = 2
    INTERNAL_ERROR = 3


_USER_ERROR_TYPES: tuple[type[BaseException], ...] = (
    SettingsLoadError,
    SettingsValidationError,
    DocumentReadError,
)


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Entrypoint used by ``python -m deploycheck`` and the console script."""

    try:
        from deploycheck.ui.cli import run_cli

        return _normalize_exit_code(run_cli(argv))
    except SystemExit as exc:
        return _normalize_exit_code(exc.code)
    except Exception as exc:  # noqa: BLE001 - CLI boundary normalization.
        exit_code = _route_exception(exc)
        _emit_failure(exc, exit_code)
        return int(exit_code)


def main() -> None:
    """Console-script entrypoint."""

    raise SystemExit(cli_entrypoint())


def _normalize_exit_code(raw_code: object) -> int:
    if isinstance(raw_code, int) and raw_code in {code.value for code in ExitCode}:
        return raw_code
    if raw_code is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw_code, str) and raw_code.strip():
        _write_stderr(raw_code.strip())
    return int(ExitCode.INTERNAL_ERROR)


def _route_exception(exc: BaseException) -> ExitCode:
    for item in _iter_exception_chain(exc):
        if isinstance(item, ContractViolation):
            return ExitCode.INTERNAL_ERROR
        if isinstance(item, DiagnosticError):
            return ExitCode.DIAGNOSTIC
        if isinstance(item, _USER_ERROR_TYPES):
            return ExitCode.CONFIG_ERROR
    return ExitCode.INTERNAL_ERROR


def _iter_exception_chain(exc: BaseException) -> list[BaseException]:
    seen: set[int] = set()
    items: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None:
        marker = id(current)
        if marker in seen:
            break
        seen.add(marker)
        items.append(current)
        if current.__cause__ is not None:
            current = current.__cause__
            continue
        if current.__context__ is not None and not current.__suppress_context__:
            current = current.__context__
            continue
        break
    return items


def _emit_failure(exc: BaseException, exit_code: ExitCode) -> None:
    if exit_code is ExitCode.INTERNAL_ERROR:
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        return
    diagnostic = next(
        (item for item in _iter_exception_chain(exc) if isinstance(item, DiagnosticError)),
        None,
    )
    if diagnostic is not None:
        _write_stderr(render_diagnostic(diagnostic))
        return
    _write_stderr(str(exc).strip() or exc.__class__.__name__)


def _write_stderr(message: str) -> None:
    sys.stderr.write(message.rstrip("\n") + "\n")


__all__ = ["ExitCode", "cli_entrypoint", "main"]
