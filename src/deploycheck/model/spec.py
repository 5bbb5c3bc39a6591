"""
deploycheck — deployment specification model

File: src/deploycheck/model/spec.py

Purpose
- Typed projection of a parsed specification document (``AppSpec``).

What should be included in this file
- Requirement entry variants: ``PlainRequirement`` ("NAME") and
  ``StructuredRequirement`` ({key, regex?, optional?}), both convertible to the
  canonical ``EnvRequirement``.
- ``project_spec``: spanned tree -> ``AppSpec``.

Functional requirements
- Requirement lists stay ordered sequences (duplicates are kept for the validator).
- Every requirement keeps the span of the array element or ``[[env]]`` header it was
  declared by.
- Shape errors raise ``ParseError`` pointing at the offending node.

Non-functional requirements
- Immutable values only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from deploycheck.document.tree import SpannedScalar, SpannedTable, node_type_name
from deploycheck.model.shape import ShapeReader

if TYPE_CHECKING:
    from collections.abc import Iterator

    from deploycheck.document.tree import SpannedEntry, SpannedNode
    from deploycheck.spans import SourceSpan

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EnvRequirement:
    """Canonical requirement: what a configuration must (or may) provide."""

    key: str
    span: SourceSpan
    regex: str | None = None
    optional: bool = False


@dataclass(frozen=True, slots=True)
class PlainRequirement:
    """Bare-string shorthand; equivalent to a required entry without a pattern."""

    name: str
    span: SourceSpan

    def to_requirement(self) -> EnvRequirement:
        return EnvRequirement(key=self.name, span=self.span)


@dataclass(frozen=True, slots=True)
class StructuredRequirement:
    key: str
    span: SourceSpan
    regex: str | None = None
    optional: bool = False

    def to_requirement(self) -> EnvRequirement:
        return EnvRequirement(
            key=self.key, span=self.span, regex=self.regex, optional=self.optional
        )


RequirementEntry: TypeAlias = PlainRequirement | StructuredRequirement


@dataclass(frozen=True, slots=True)
class SpannedName:
    """A pass-through string that keeps its span (integration names)."""

    value: str
    span: SourceSpan


@dataclass(frozen=True, slots=True)
class AppSpec:
    env: tuple[RequirementEntry, ...] = ()
    secrets: tuple[RequirementEntry, ...] = ()
    mysql: tuple[SpannedName, ...] = ()
    pubsub: tuple[SpannedName, ...] = ()
    build: str | None = None
    static: str | None = None
    artifact: str = ""

    def requirements(self) -> Iterator[EnvRequirement]:
        """Canonical requirements, ``env`` first then ``secrets``, in declaration order."""

        for entry in self.env:
            yield entry.to_requirement()
        for entry in self.secrets:
            yield entry.to_requirement()

    def secret_requirements(self) -> Iterator[EnvRequirement]:
        for entry in self.secrets:
            yield entry.to_requirement()


def project_spec(tree: SpannedTable, document_name: str, document_text: str) -> AppSpec:
    """Project a parsed specification document into ``AppSpec``."""

    reader = ShapeReader(document_name, document_text)
    spec = AppSpec(
        env=_requirement_list(reader, tree.get("env")),
        secrets=_requirement_list(reader, tree.get("secrets")),
        mysql=_name_list(reader, tree.get("mysql")),
        pubsub=_name_list(reader, tree.get("pubsub")),
        build=reader.optional_string(tree, "build"),
        static=reader.optional_string(tree, "static"),
        artifact=reader.string(reader.required(tree, "artifact", top_level=True)),
    )
    _LOGGER.debug(
        "projected spec %s: %d env, %d secrets",
        document_name,
        len(spec.env),
        len(spec.secrets),
    )
    return spec


def _requirement_list(
    reader: ShapeReader, entry: SpannedEntry | None
) -> tuple[RequirementEntry, ...]:
    if entry is None:
        return ()
    return tuple(
        _requirement(reader, item, entry.key.name) for item in reader.array(entry)
    )


def _requirement(reader: ShapeReader, node: SpannedNode, list_name: str) -> RequirementEntry:
    if isinstance(node, SpannedScalar):
        return PlainRequirement(reader.string_node(node, list_name), node.span)
    if isinstance(node, SpannedTable):
        key = reader.string(reader.required(node, "key"))
        return StructuredRequirement(
            key=key,
            span=node.span,
            regex=reader.optional_string(node, "regex"),
            optional=reader.boolean(node, "optional"),
        )
    reader.fail(
        f"invalid entry in `{list_name}`: expected string or table, found {node_type_name(node)}",
        node.span,
    )


def _name_list(reader: ShapeReader, entry: SpannedEntry | None) -> tuple[SpannedName, ...]:
    if entry is None:
        return ()
    return tuple(
        SpannedName(reader.string_node(item, entry.key.name), item.span)
        for item in reader.array(entry)
    )


__all__ = [
    "AppSpec",
    "EnvRequirement",
    "PlainRequirement",
    "RequirementEntry",
    "SpannedName",
    "StructuredRequirement",
    "project_spec",
]
