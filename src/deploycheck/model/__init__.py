"""Typed specification/configuration models and the metadata payload."""

from __future__ import annotations

from deploycheck.model.config import (
    AppConfig,
    ConfigEntry,
    IntegrationEntry,
    MysqlMetadata,
    PlainBinding,
    PubsubMetadata,
    normalize,
    project_config,
    unwrap_as_metadata,
)
from deploycheck.model.metadata import AppMetadata, PackedAppMetadata
from deploycheck.model.spec import (
    AppSpec,
    EnvRequirement,
    PlainRequirement,
    RequirementEntry,
    SpannedName,
    StructuredRequirement,
    project_spec,
)

__all__ = [
    "AppConfig",
    "AppMetadata",
    "AppSpec",
    "ConfigEntry",
    "EnvRequirement",
    "IntegrationEntry",
    "MysqlMetadata",
    "PackedAppMetadata",
    "PlainBinding",
    "PlainRequirement",
    "PubsubMetadata",
    "RequirementEntry",
    "SpannedName",
    "StructuredRequirement",
    "normalize",
    "project_config",
    "project_spec",
    "unwrap_as_metadata",
]
