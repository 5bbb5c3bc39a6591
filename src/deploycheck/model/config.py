"""
deploycheck — deployment configuration model

File: src/deploycheck/model/config.py

Purpose
- Typed projection of a parsed configuration document (``AppConfig``) and the
  normalization step that canonicalizes integration shorthands.

What should be included in this file
- ``ConfigEntry``: one ``env``/``secrets`` key with its key span and value.
- Integration bindings: ``PlainBinding`` (shorthand string) or the structured
  ``MysqlMetadata`` / ``PubsubMetadata``.
- ``project_config``, ``normalize`` and ``unwrap_as_metadata``.

Functional requirements
- ``normalize`` is idempotent and leaves structured entries untouched.
- Reading a plain binding as structured data is a ``ContractViolation``.

Non-functional requirements
- Secret values are never logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final, TypeAlias

from deploycheck.document.tree import SpannedScalar, SpannedTable, node_type_name
from deploycheck.errors import ContractViolation
from deploycheck.model.shape import ShapeReader

if TYPE_CHECKING:
    from deploycheck.document.tree import SpannedEntry
    from deploycheck.spans import SourceSpan

_LOGGER = logging.getLogger(__name__)

MYSQL: Final[str] = "mysql"
PUBSUB: Final[str] = "pubsub"


@dataclass(frozen=True, slots=True)
class ConfigEntry:
    key: str
    key_span: SourceSpan
    value: str
    value_span: SourceSpan


@dataclass(frozen=True, slots=True)
class MysqlMetadata:
    url: str
    root_certificate: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"url": self.url, "root_certificate": self.root_certificate}


@dataclass(frozen=True, slots=True)
class PubsubMetadata:
    namespace: str

    def to_dict(self) -> dict[str, str]:
        return {"namespace": self.namespace}


@dataclass(frozen=True, slots=True)
class PlainBinding:
    """Shorthand integration value, awaiting normalization."""

    value: str
    span: SourceSpan


IntegrationMetadata: TypeAlias = MysqlMetadata | PubsubMetadata
IntegrationBinding: TypeAlias = PlainBinding | MysqlMetadata | PubsubMetadata


@dataclass(frozen=True, slots=True)
class IntegrationEntry:
    """``mysql.<name>`` / ``pubsub.<name>``; ``kind`` is the section it came from."""

    kind: str
    name: str
    name_span: SourceSpan
    binding: IntegrationBinding

    @property
    def is_normalized(self) -> bool:
        return not isinstance(self.binding, PlainBinding)


@dataclass(frozen=True, slots=True)
class AppConfig:
    id: str
    env: tuple[ConfigEntry, ...] = ()
    secrets: tuple[ConfigEntry, ...] = ()
    mysql: tuple[IntegrationEntry, ...] = ()
    pubsub: tuple[IntegrationEntry, ...] = ()
    detached_secrets: bool = False

    def env_entry(self, key: str) -> ConfigEntry | None:
        return _find(self.env, key)

    def secret_entry(self, key: str) -> ConfigEntry | None:
        return _find(self.secrets, key)

    def lookup(self, key: str) -> ConfigEntry | None:
        """Find ``key`` in ``env`` first, then in ``secrets``."""

        entry = self.env_entry(key)
        return entry if entry is not None else self.secret_entry(key)

    def entries(self) -> tuple[ConfigEntry, ...]:
        return self.env + self.secrets


def _find(entries: tuple[ConfigEntry, ...], key: str) -> ConfigEntry | None:
    for entry in entries:
        if entry.key == key:
            return entry
    return None


def unwrap_as_metadata(entry: IntegrationEntry) -> IntegrationMetadata:
    """Return the structured metadata of a normalized integration entry."""

    if isinstance(entry.binding, PlainBinding):
        raise ContractViolation(f"{entry.kind} metadata for {entry.name!r} is not normalized")
    return entry.binding


def _normalize_entry(entry: IntegrationEntry) -> IntegrationEntry:
    binding = entry.binding
    if not isinstance(binding, PlainBinding):
        return entry
    metadata: IntegrationMetadata
    if entry.kind == MYSQL:
        metadata = MysqlMetadata(url=binding.value)
    elif entry.kind == PUBSUB:
        metadata = PubsubMetadata(namespace=binding.value)
    else:
        raise ContractViolation(f"unknown integration kind {entry.kind!r}")
    return replace(entry, binding=metadata)


def normalize(config: AppConfig) -> AppConfig:
    """Rewrite every plain integration binding into its structured form."""

    if all(entry.is_normalized for entry in config.mysql + config.pubsub):
        return config
    normalized = replace(
        config,
        mysql=tuple(_normalize_entry(entry) for entry in config.mysql),
        pubsub=tuple(_normalize_entry(entry) for entry in config.pubsub),
    )
    _LOGGER.debug("normalized integration bindings for app %s", config.id)
    return normalized


def project_config(tree: SpannedTable, document_name: str, document_text: str) -> AppConfig:
    """Project a parsed configuration document into ``AppConfig`` (not yet normalized)."""

    reader = ShapeReader(document_name, document_text)
    config = AppConfig(
        id=reader.string(reader.required(tree, "id", top_level=True)),
        env=_value_map(reader, tree.get("env")),
        secrets=_value_map(reader, tree.get("secrets")),
        mysql=_integrations(reader, tree.get(MYSQL), MYSQL),
        pubsub=_integrations(reader, tree.get(PUBSUB), PUBSUB),
        detached_secrets=reader.boolean(tree, "detached_secrets"),
    )
    _LOGGER.debug(
        "projected config %s: %d env, %d secrets",
        document_name,
        len(config.env),
        len(config.secrets),
    )
    return config


def _value_map(reader: ShapeReader, entry: SpannedEntry | None) -> tuple[ConfigEntry, ...]:
    if entry is None:
        return ()
    table = reader.table(entry)
    values: list[ConfigEntry] = []
    for item in table:
        value = reader.string(item)
        values.append(ConfigEntry(item.key.name, item.key.span, value, item.value.span))
    return tuple(values)


def _integrations(
    reader: ShapeReader, entry: SpannedEntry | None, kind: str
) -> tuple[IntegrationEntry, ...]:
    if entry is None:
        return ()
    table = reader.table(entry)
    return tuple(
        IntegrationEntry(kind, item.key.name, item.key.span, _binding(reader, item, kind))
        for item in table
    )


def _binding(reader: ShapeReader, item: SpannedEntry, kind: str) -> IntegrationBinding:
    node = item.value
    if isinstance(node, SpannedScalar):
        return PlainBinding(reader.string(item), node.span)
    if not isinstance(node, SpannedTable):
        reader.fail(
            f"invalid type for `{kind}.{item.key.name}`: expected string or table, "
            f"found {node_type_name(node)}",
            node.span,
        )
    if kind == MYSQL:
        return MysqlMetadata(
            url=reader.string(reader.required(node, "url")),
            root_certificate=reader.optional_string(node, "root_certificate"),
        )
    return PubsubMetadata(namespace=reader.string(reader.required(node, "namespace")))


__all__ = [
    "MYSQL",
    "PUBSUB",
    "AppConfig",
    "ConfigEntry",
    "IntegrationBinding",
    "IntegrationEntry",
    "IntegrationMetadata",
    "MysqlMetadata",
    "PlainBinding",
    "PubsubMetadata",
    "normalize",
    "project_config",
    "unwrap_as_metadata",
]
