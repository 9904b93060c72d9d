"""
Structural validation of the finished host entity.

Runs once, after the host class is mapped. Any failure is a programming
error and must stop startup.
"""
from __future__ import annotations

from typing import Any
import logging

from sqlalchemy import inspect

from extauth.core.config import ExtensionConfig
from .interfaces import Capability, SchemaError, extension_name
from .registry import ExtensionRegistry

logger = logging.getLogger(__name__)


def validate(config: ExtensionConfig, host: type) -> None:
    """
    Run the host checks of all extensions.

    Fail-fast: the first failing extension raises and later ones are not
    checked.

    Raises:
        SchemaError: If the host does not satisfy an extension
    """
    for extension in ExtensionRegistry.discover(config, Capability.VALIDATES_HOST):
        extension.validate(config, host)
        logger.debug(f"Host {host.__name__} satisfies extension {extension_name(extension)}")


def schema_fields(host: type) -> list[str]:
    """Column attribute names of a mapped host."""
    return list(inspect(host).columns.keys())


def require_schema_field(host: type, field: str, extension: Any) -> None:
    """
    Ensure the host has a field.

    Raises:
        SchemaError: If the field is missing
    """
    if field not in schema_fields(host):
        raise SchemaError(
            f"required field {field} missing for extension "
            f"{extension if isinstance(extension, str) else extension_name(extension)} "
            f"on entity {host.__name__}"
        )
