"""Stable constants shared across deploycheck layers."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Default document locations (relative to the settings file or working directory).
DEFAULT_SPEC_PATH: Final[PurePosixPath] = PurePosixPath("deploy.spec.toml")
DEFAULT_CONFIG_PATH: Final[PurePosixPath] = PurePosixPath("deploy.toml")
SETTINGS_FILENAME: Final[str] = "deploycheck.toml"
ENV_PREFIX: Final[str] = "DEPLOYCHECK_"

# Deployment metadata payload.
PACKED_METADATA_VERSION: Final[str] = "app"
DEFAULT_PACKAGE_FILENAME: Final[str] = "package.tar.gz"
REDACTED_VALUE: Final[str] = "***REDACTED***"

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_PACKAGE_FILENAME",
    "DEFAULT_SPEC_PATH",
    "ENV_PREFIX",
    "PACKED_METADATA_VERSION",
    "REDACTED_VALUE",
    "SETTINGS_FILENAME",
]
