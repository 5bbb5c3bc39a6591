"""Command-line interface router for deploycheck."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from deploycheck.constants import DEFAULT_PACKAGE_FILENAME
from deploycheck.diagnostics.errors import DiagnosticError
from deploycheck.model.metadata import AppMetadata, PackedAppMetadata
from deploycheck.observability.logging import LoggingConfig, setup_logging, shutdown_logging
from deploycheck.settings import (
    SettingsLoadError,
    SettingsValidationError,
    dump_settings,
    load_settings,
)
from deploycheck.ui.render import CLIRenderer, create_renderer
from deploycheck.validation.errors import DocumentReadError
from deploycheck.validation.loader import load_from_file

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deploycheck.model.config import AppConfig
    from deploycheck.model.spec import AppSpec

_LOGGER = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 2

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class _CommandContext:
    settings: dict[str, Any]
    renderer: CLIRenderer


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="deploycheck",
        description=(
            "deploycheck — validate a deployment configuration against its spec.\n\n"
            "Common workflows:\n"
            "  deploycheck check                 Validate deploy.toml against deploy.spec.toml\n"
            "  deploycheck metadata              Print the deployment metadata payload\n"
            "  deploycheck settings              Show effective tool settings\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--settings",
        dest="settings_path",
        default=None,
        help="Path to deploycheck TOML settings (default: ./deploycheck.toml if present).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Log debug details to stderr.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    common.add_argument(
        "--log-format",
        choices=("text", "json"),
        default=None,
        help="Log line format on stderr (default: from settings).",
    )

    documents = argparse.ArgumentParser(add_help=False)
    documents.add_argument(
        "--spec",
        dest="spec_path",
        default=None,
        help="Deployment spec document (default: from settings).",
    )
    documents.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Deployment config document (default: from settings).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # check ---------------------------------------------------------------
    check_parser = subparsers.add_parser(
        "check",
        parents=[common, documents],
        help="Validate a deployment config against its spec",
        description=(
            "Parse both documents and check them against each other. The first\n"
            "violation is reported with the offending source line.\n\n"
            "Examples:\n"
            "  deploycheck check\n"
            "  deploycheck check --spec app/deploy.spec.toml --config prod.toml\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    check_parser.set_defaults(handler=_cmd_check)

    # metadata ------------------------------------------------------------
    metadata_parser = subparsers.add_parser(
        "metadata",
        parents=[common, documents],
        help="Print the packed deployment metadata as JSON",
        description=(
            "Validate both documents, then print the metadata payload that accompanies\n"
            "the deployment package. Secret values are redacted unless --show-secrets.\n\n"
            "Examples:\n"
            "  deploycheck metadata\n"
            "  deploycheck metadata --package-name build.tar.gz --show-secrets\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    metadata_parser.add_argument(
        "--package-name",
        default=DEFAULT_PACKAGE_FILENAME,
        help=f"Package filename recorded in the payload (default: {DEFAULT_PACKAGE_FILENAME})",
    )
    metadata_parser.add_argument(
        "--show-secrets",
        action="store_true",
        default=False,
        help="Print secret values instead of redacting them.",
    )
    metadata_parser.set_defaults(handler=_cmd_metadata)

    # settings ------------------------------------------------------------
    settings_parser = subparsers.add_parser(
        "settings",
        parents=[common, documents],
        help="Show effective tool settings",
        description="Print the merged settings (defaults, file, environment, flags) as JSON.",
    )
    settings_parser.set_defaults(handler=_cmd_settings)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        settings = _load_effective_settings(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code

    observability = settings["observability"]
    setup_logging(
        LoggingConfig(
            level="DEBUG" if _flag(namespace, "verbose") else observability["log_level"],
            log_format=observability["log_format"],
        )
    )
    context = _CommandContext(
        settings=settings,
        renderer=create_renderer(
            no_color=_flag(namespace, "no_color") or not settings["output"]["color"],
            verbose=_flag(namespace, "verbose"),
        ),
    )
    try:
        return int(handler(namespace, context))
    except CLIError as exc:
        context.renderer.error(str(exc))
        return exc.exit_code
    finally:
        shutdown_logging()


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_check(args: argparse.Namespace, context: _CommandContext) -> int:
    spec_path, config_path = _document_paths(context.settings)
    try:
        spec, config = _load_documents(spec_path, config_path)
    except DiagnosticError as exc:
        _LOGGER.info("check_failed", code=exc.code, spec_path=spec_path, config_path=config_path)
        context.renderer.diagnostic(exc)
        return 1

    _LOGGER.info(
        "check_passed",
        spec_path=spec_path,
        config_path=config_path,
        requirements=len(spec.env) + len(spec.secrets),
    )
    renderer = context.renderer
    renderer.ok(f"{config_path} satisfies {spec_path}")
    renderer.kv("app", config.id)
    renderer.kv("env", len(config.env))
    renderer.kv("secrets", len(config.secrets))
    if renderer.verbose:
        renderer.kv("mysql", ", ".join(entry.name for entry in config.mysql) or "(none)")
        renderer.kv("pubsub", ", ".join(entry.name for entry in config.pubsub) or "(none)")
    return 0


def _cmd_metadata(args: argparse.Namespace, context: _CommandContext) -> int:
    spec_path, config_path = _document_paths(context.settings)
    try:
        _, config = _load_documents(spec_path, config_path)
    except DiagnosticError as exc:
        context.renderer.diagnostic(exc)
        return 1

    package_name = _optional_str(getattr(args, "package_name", None)) or DEFAULT_PACKAGE_FILENAME
    packed = PackedAppMetadata.from_metadata(AppMetadata.from_config(config), package_name)
    show_secrets = _flag(args, "show_secrets")
    _LOGGER.info(
        "metadata_rendered",
        app=config.id,
        package=package_name,
        redacted=not show_secrets,
    )
    context.renderer.json(packed.to_dict(redact_secrets=not show_secrets))
    return 0


def _cmd_settings(args: argparse.Namespace, context: _CommandContext) -> int:
    context.renderer.text(dump_settings(context.settings))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_effective_settings(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {
        "paths.spec": _optional_str(getattr(args, "spec_path", None)),
        "paths.config": _optional_str(getattr(args, "config_path", None)),
        "observability.log_format": getattr(args, "log_format", None),
    }
    try:
        return load_settings(
            _optional_str(getattr(args, "settings_path", None)),
            cli_overrides=overrides,
        )
    except (SettingsLoadError, SettingsValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _document_paths(settings: dict[str, Any]) -> tuple[str, str]:
    paths = settings["paths"]
    return str(paths["spec"]), str(paths["config"])


def _load_documents(spec_path: str, config_path: str) -> tuple[AppSpec, AppConfig]:
    try:
        return load_from_file(Path(spec_path), Path(config_path))
    except DocumentReadError as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CLIError("invalid optional string argument", exit_code=2)
    cleaned = value.strip()
    return cleaned or None


def _flag(args: argparse.Namespace, name: str) -> bool:
    value = getattr(args, name, False)
    return bool(value)


__all__ = ["CLIError", "build_parser", "run_cli"]
