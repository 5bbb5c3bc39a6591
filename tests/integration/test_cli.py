"""
deploycheck — CLI subprocess contracts

File: tests/integration/test_cli.py

Purpose
- Enforce `python -m deploycheck` behavior for check/metadata/settings: exit codes,
  stdout payloads and rendered diagnostics on stderr.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from deploycheck.main import ExitCode, cli_entrypoint

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

SPEC = 'artifact = "dist"\nenv = ["PORT"]\nsecrets = ["TOKEN"]\n'
CONFIG = (
    'id = "shop"\n'
    '[env]\nPORT = "8080"\n'
    '[secrets]\nTOKEN = "t0k"\n'
    '[pubsub]\nevents = "ns-events"\n'
)


def _run_cli(
    workdir: Path, *args: str, extra_env: dict[str, str] | None = None
) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    existing_pythonpath = env.get("PYTHONPATH")
    src_pythonpath = str(SRC_PATH)
    env["PYTHONPATH"] = (
        src_pythonpath if not existing_pythonpath else f"{src_pythonpath}:{existing_pythonpath}"
    )
    env["NO_COLOR"] = "1"
    for key in list(env):
        if key.startswith("DEPLOYCHECK_"):
            del env[key]
    env.update(extra_env or {})
    return subprocess.run(
        [sys.executable, "-m", "deploycheck", *args],
        cwd=workdir,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )


def _write(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


@pytest.fixture()
def workdir(tmp_path: Path) -> Path:
    _write(tmp_path / "deploy.spec.toml", SPEC)
    _write(tmp_path / "deploy.toml", CONFIG)
    return tmp_path


def test_check_succeeds_with_default_paths(workdir: Path) -> None:
    completed = _run_cli(workdir, "check")

    assert completed.returncode == ExitCode.SUCCESS, completed.stderr
    assert "OK" in completed.stdout
    assert "app: shop" in completed.stdout
    assert completed.stderr == ""


def test_check_reports_diagnostic_with_exit_code_one(workdir: Path) -> None:
    _write(workdir / "deploy.toml", 'id = "shop"\n[env]\nPORT = "8080"\nTOKEN = "t0k"\n')

    completed = _run_cli(workdir, "check")

    assert completed.returncode == ExitCode.DIAGNOSTIC
    assert completed.stdout == ""
    assert "error[deploycheck::config::secret_as_env]: secret defined as env" in completed.stderr
    assert "4 | TOKEN = \"t0k\"" in completed.stderr
    assert "  | ^^^^^ defined as env here" in completed.stderr


def test_check_with_explicit_paths(tmp_path: Path) -> None:
    _write(tmp_path / "app" / "spec.toml", SPEC)
    _write(tmp_path / "envs" / "prod.toml", CONFIG)

    completed = _run_cli(
        tmp_path, "check", "--spec", "app/spec.toml", "--config", "envs/prod.toml"
    )

    assert completed.returncode == ExitCode.SUCCESS, completed.stderr


def test_missing_document_exits_with_config_error(tmp_path: Path) -> None:
    completed = _run_cli(tmp_path, "check")

    assert completed.returncode == ExitCode.CONFIG_ERROR
    assert "cannot resolve spec path" in completed.stderr


def test_invalid_settings_exit_with_config_error(workdir: Path) -> None:
    _write(workdir / "deploycheck.toml", '[output]\ncolor = "sometimes"\n')

    completed = _run_cli(workdir, "check")

    assert completed.returncode == ExitCode.CONFIG_ERROR
    assert "output.color: must be a boolean" in completed.stderr


def test_metadata_redacts_secrets_by_default(workdir: Path) -> None:
    completed = _run_cli(workdir, "metadata", "--package-name", "build.tar.gz")

    assert completed.returncode == ExitCode.SUCCESS, completed.stderr
    payload = json.loads(completed.stdout)
    assert payload == {
        "version": "app",
        "package": "build.tar.gz",
        "env": {"PORT": "8080", "TOKEN": "***REDACTED***"},
        "mysql": {},
        "pubsub": {"events": {"namespace": "ns-events"}},
    }


def test_metadata_show_secrets(workdir: Path) -> None:
    completed = _run_cli(workdir, "metadata", "--show-secrets")

    assert completed.returncode == ExitCode.SUCCESS, completed.stderr
    payload = json.loads(completed.stdout)
    assert payload["env"]["TOKEN"] == "t0k"
    assert payload["package"] == "package.tar.gz"


def test_settings_command_prints_effective_settings(workdir: Path) -> None:
    completed = _run_cli(
        workdir,
        "settings",
        "--log-format",
        "json",
        extra_env={"DEPLOYCHECK_OBSERVABILITY_LOG_LEVEL": "info"},
    )

    assert completed.returncode == ExitCode.SUCCESS, completed.stderr
    payload = json.loads(completed.stdout)
    assert payload["observability"] == {"log_level": "INFO", "log_format": "json"}
    assert payload["paths"]["spec"].endswith("/deploy.spec.toml")


def test_verbose_json_logs_go_to_stderr(workdir: Path) -> None:
    completed = _run_cli(workdir, "check", "--verbose", "--log-format", "json")

    assert completed.returncode == ExitCode.SUCCESS, completed.stderr
    events = [json.loads(line) for line in completed.stderr.splitlines() if line.strip()]
    messages = {event["message"] for event in events}
    assert "check_passed" in messages
    assert all("t0k" not in json.dumps(event) for event in events)


def test_in_process_entrypoint_returns_exit_code(
    workdir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("NO_COLOR", "1")
    _write(workdir / "deploy.spec.toml", 'artifact = "dist"\nenv = ["PORT", "MISSING"]\n')

    exit_code = cli_entrypoint(["check"])

    captured = capsys.readouterr()
    assert exit_code == ExitCode.DIAGNOSTIC
    assert "undefined environment variable" in captured.err
    assert "specified here" in captured.err


def test_unknown_command_is_a_usage_error(workdir: Path) -> None:
    completed = _run_cli(workdir, "deploy")
    assert completed.returncode == 2
