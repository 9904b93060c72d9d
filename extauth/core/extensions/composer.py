"""
Schema composition.

Merges the fields, relations and indexes of all configured extensions.
Each projection is a plain concatenation in config order (and in each
extension's own order); nothing is deduplicated or sorted.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any

from extauth.core.config import ExtensionConfig
from .interfaces import (
    HOST,
    Capability,
    FieldSpec,
    IndexSpec,
    Placeholder,
    RelationSpec,
    SchemaError,
    extension_name,
)
from .registry import ExtensionRegistry


def attrs(config: ExtensionConfig) -> list[FieldSpec]:
    """Merge all extension fields into one list."""
    fields: list[FieldSpec] = []
    for extension in ExtensionRegistry.discover(config, Capability.FIELDS):
        fields.extend(extension.attrs(config))
    return fields


def assocs(config: ExtensionConfig) -> list[RelationSpec]:
    """
    Merge all extension relations into one list.

    Relations targeting the HOST placeholder are rewritten to the host
    entity in config.

    Raises:
        SchemaError: If a HOST relation is found while no host is bound,
            or a relation uses any other placeholder
    """
    relations: list[RelationSpec] = []
    for extension in ExtensionRegistry.discover(config, Capability.RELATIONS):
        for relation in extension.assocs(config):
            relations.append(_rewrite_target(relation, config.user, extension))
    return relations


def indexes(config: ExtensionConfig) -> list[IndexSpec]:
    """Merge all extension indexes into one list."""
    result: list[IndexSpec] = []
    for extension in ExtensionRegistry.discover(config, Capability.INDEXES):
        result.extend(extension.indexes(config))
    return result


def _rewrite_target(relation: RelationSpec, host: Any, extension: Any) -> RelationSpec:
    target = relation.target
    if not isinstance(target, Placeholder):
        return relation

    if target != HOST:
        raise SchemaError(
            f"unknown placeholder {target!r} in relation {relation.name} "
            f"of extension {extension_name(extension)}"
        )
    if host is None:
        raise SchemaError(
            f"relation {relation.name} of extension {extension_name(extension)} "
            f"targets the host entity, but no host entity is configured"
        )
    return replace(relation, target=host)
