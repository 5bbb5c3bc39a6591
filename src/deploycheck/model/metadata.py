"""
deploycheck — deployment metadata payload

File: src/deploycheck/model/metadata.py

Purpose
- Build the metadata payload a deploy step uploads alongside the package, from a
  validated and normalized ``AppConfig``.

Functional requirements
- ``AppMetadata.from_config`` reads integrations through ``unwrap_as_metadata`` and so
  requires a normalized configuration.
- ``PackedAppMetadata`` merges ``env`` and ``secrets`` into one ``env`` mapping; on a
  key present in both, the secret value wins.
- ``to_dict(redact_secrets=True)`` replaces secret values with ``REDACTED_VALUE``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from deploycheck.constants import PACKED_METADATA_VERSION, REDACTED_VALUE
from deploycheck.model.config import MysqlMetadata, PubsubMetadata, unwrap_as_metadata

if TYPE_CHECKING:
    from deploycheck.model.config import AppConfig


@dataclass(frozen=True, slots=True)
class AppMetadata:
    env: dict[str, str] = field(default_factory=dict)
    secrets: dict[str, str] = field(default_factory=dict)
    mysql: dict[str, MysqlMetadata] = field(default_factory=dict)
    pubsub: dict[str, PubsubMetadata] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: AppConfig) -> AppMetadata:
        mysql: dict[str, MysqlMetadata] = {}
        for entry in config.mysql:
            metadata = unwrap_as_metadata(entry)
            assert isinstance(metadata, MysqlMetadata)
            mysql[entry.name] = metadata
        pubsub: dict[str, PubsubMetadata] = {}
        for entry in config.pubsub:
            metadata = unwrap_as_metadata(entry)
            assert isinstance(metadata, PubsubMetadata)
            pubsub[entry.name] = metadata
        return cls(
            env={entry.key: entry.value for entry in config.env},
            secrets={entry.key: entry.value for entry in config.secrets},
            mysql=mysql,
            pubsub=pubsub,
        )

    def to_dict(self, *, redact_secrets: bool = True) -> dict[str, Any]:
        return {
            "env": dict(self.env),
            "secrets": {
                key: REDACTED_VALUE if redact_secrets else value
                for key, value in self.secrets.items()
            },
            "mysql": {name: metadata.to_dict() for name, metadata in self.mysql.items()},
            "pubsub": {name: metadata.to_dict() for name, metadata in self.pubsub.items()},
        }


@dataclass(frozen=True, slots=True)
class PackedAppMetadata:
    package: str
    env: dict[str, str] = field(default_factory=dict)
    mysql: dict[str, MysqlMetadata] = field(default_factory=dict)
    pubsub: dict[str, PubsubMetadata] = field(default_factory=dict)
    secret_keys: frozenset[str] = frozenset()
    version: str = PACKED_METADATA_VERSION

    @classmethod
    def from_metadata(cls, metadata: AppMetadata, package_filename: str) -> PackedAppMetadata:
        return cls(
            package=package_filename,
            env={**metadata.env, **metadata.secrets},
            mysql=dict(metadata.mysql),
            pubsub=dict(metadata.pubsub),
            secret_keys=frozenset(metadata.secrets),
        )

    def to_dict(self, *, redact_secrets: bool = True) -> dict[str, Any]:
        return {
            "version": self.version,
            "package": self.package,
            "env": {
                key: REDACTED_VALUE if redact_secrets and key in self.secret_keys else value
                for key, value in self.env.items()
            },
            "mysql": {name: metadata.to_dict() for name, metadata in self.mysql.items()},
            "pubsub": {name: metadata.to_dict() for name, metadata in self.pubsub.items()},
        }


__all__ = ["AppMetadata", "PackedAppMetadata"]
