"""
Extension system.

Extensions augment the host user entity with fields, relations, indexes,
changeset logic and structural checks, without the host knowing about
any specific extension.
"""

from .interfaces import (
    HOST,
    Capability,
    Extension,
    FieldSpec,
    IndexSpec,
    Placeholder,
    RelationKind,
    RelationSpec,
    SchemaError,
)
from .registry import DuplicateExtensionError, ExtensionRegistry, UnknownExtensionError
from .schema import ExtensionSchema
from .validation import require_schema_field

__all__ = [
    "HOST",
    "Capability",
    "Extension",
    "FieldSpec",
    "IndexSpec",
    "Placeholder",
    "RelationKind",
    "RelationSpec",
    "SchemaError",
    "DuplicateExtensionError",
    "ExtensionRegistry",
    "UnknownExtensionError",
    "ExtensionSchema",
    "require_schema_field",
]
