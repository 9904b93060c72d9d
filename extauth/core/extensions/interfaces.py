"""
Extension interfaces - Core abstractions.

Every extension is a value implementing some subset of the capabilities
below. The Extension base class provides no-op defaults, and an extension
that does not override a capability is treated as not implementing it.

Plain objects and modules work too, as long as they expose the capability
functions:
    attrs(config) -> list[FieldSpec]
    assocs(config) -> list[RelationSpec]
    indexes(config) -> list[IndexSpec]
    changeset(changeset, params, config) -> Changeset
    validate(config, host) -> None
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from extauth.core.changeset import Changeset
    from extauth.core.config import ExtensionConfig


class SchemaError(Exception):
    """Host entity definition is structurally invalid. Not recoverable."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Capability(str, Enum):
    """Capabilities an extension may implement (value is the function name)."""
    FIELDS = "attrs"
    RELATIONS = "assocs"
    INDEXES = "indexes"
    CHANGESET = "changeset"
    VALIDATES_HOST = "validate"


# ============================================================
# PLACEHOLDERS
# ============================================================

@dataclass(frozen=True)
class Placeholder:
    """Symbolic relation target, rewritten once the host type is known."""
    name: str

    def __repr__(self) -> str:
        return f"<{self.name}>"


# The host entity, whatever class it ends up being
HOST = Placeholder("host")


# ============================================================
# SCHEMA SPECS
# ============================================================

@dataclass(frozen=True)
class FieldSpec:
    """
    A field contributed to the host.

    `type` is a semantic name (string, text, integer, boolean,
    utc_datetime, uuid) or a SQLAlchemy type.
    """
    name: str
    type: Any = "string"
    default: Any = None


class RelationKind(str, Enum):
    TO_ONE = "to_one"
    TO_MANY = "to_many"


@dataclass(frozen=True)
class RelationSpec:
    """
    A relation contributed to the host.

    Options:
        foreign_key: Column holding the reference. For to_one it is created
            on the host (default "<name>_id"); for to_many it must exist on
            the target.
        references: "table.column" for string targets of to_one relations
        on_delete: FK ondelete rule for to_one (default "SET NULL")
        anything else is passed to sqlalchemy.orm.relationship()
    """
    kind: RelationKind
    name: str
    target: Any
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def to_one(cls, name: str, target: Any, **options: Any) -> "RelationSpec":
        return cls(RelationKind.TO_ONE, name, target, options)

    @classmethod
    def to_many(cls, name: str, target: Any, **options: Any) -> "RelationSpec":
        return cls(RelationKind.TO_MANY, name, target, options)


@dataclass(frozen=True)
class IndexSpec:
    """An index over host fields."""
    fields: tuple[str, ...]
    unique: bool = False
    name: str | None = None


# ============================================================
# EXTENSION
# ============================================================

class Extension:
    """
    Base class for extensions.

    Override only the capabilities the extension provides.

    Example:
        @ExtensionRegistry.register("nickname")
        class NicknameExtension(Extension):
            def attrs(self, config):
                return [FieldSpec("nickname", "string")]
    """

    name: str = ""

    def attrs(self, config: ExtensionConfig) -> list[FieldSpec]:
        return []

    def assocs(self, config: ExtensionConfig) -> list[RelationSpec]:
        return []

    def indexes(self, config: ExtensionConfig) -> list[IndexSpec]:
        return []

    def changeset(
        self,
        changeset: Changeset,
        params: dict[str, Any],
        config: ExtensionConfig,
    ) -> Changeset:
        return changeset

    def validate(self, config: ExtensionConfig, host: type) -> None:
        return None

    def __repr__(self) -> str:
        return f"<Extension {extension_name(self)}>"


def implements(extension: Any, capability: Capability) -> bool:
    """Check whether an extension provides a capability."""
    function = getattr(extension, capability.value, None)
    if not callable(function):
        return False
    if isinstance(extension, Extension):
        return getattr(type(extension), capability.value) is not getattr(Extension, capability.value)
    return True


def extension_name(extension: Any) -> str:
    """Human readable name for errors and logs."""
    name = getattr(extension, "name", None)
    if isinstance(name, str) and name:
        return name
    if isinstance(extension, type):
        return extension.__name__
    return getattr(extension, "__name__", type(extension).__name__)
