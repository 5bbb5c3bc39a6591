"""Module entrypoint for ``python -m deploycheck``."""

from __future__ import annotations

from deploycheck.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
