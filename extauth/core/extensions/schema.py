"""
Host entity wiring.

Builds extension fields, relations and indexes into a SQLAlchemy
declarative class when the class is defined, then runs the structural
validation of every extension against the mapped class.

Usage:
    config = ExtensionConfig(extensions=["invitation"])

    class User(UserMixin, Base, extension_config=config):
        __tablename__ = "users"

    User.__extension_config__.user is User  # config bound to the host
"""
from __future__ import annotations

from typing import Any, Callable, ClassVar, Mapping
import logging

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import mapped_column, relationship

from extauth.core.changeset import Changeset
from extauth.core.config import ExtensionConfig
from . import composer, pipeline, validation
from .interfaces import FieldSpec, IndexSpec, RelationKind, RelationSpec, SchemaError

logger = logging.getLogger(__name__)


FIELD_TYPES: dict[str, Callable[[], Any]] = {
    "string": lambda: String(255),
    "text": Text,
    "integer": Integer,
    "boolean": Boolean,
    "utc_datetime": lambda: DateTime(timezone=True),
    "uuid": lambda: PGUUID(as_uuid=True),
}


class ExtensionSchema:
    """
    Mixin composing configured extensions into a declarative host.

    Must come before the declarative Base in the bases list so the
    extension attributes exist when SQLAlchemy maps the class.
    """

    __extension_config__: ClassVar[ExtensionConfig | None] = None
    __extension_fields__: ClassVar[tuple[FieldSpec, ...]] = ()
    __extension_assocs__: ClassVar[tuple[RelationSpec, ...]] = ()
    __extension_indexes__: ClassVar[tuple[IndexSpec, ...]] = ()

    def __init_subclass__(
        cls,
        extension_config: ExtensionConfig | None = None,
        **kwargs: Any,
    ) -> None:
        if extension_config is None:
            super().__init_subclass__(**kwargs)
            return

        config = extension_config.for_host(cls)
        fields = tuple(composer.attrs(config))
        relations = tuple(composer.assocs(config))
        indexes = tuple(composer.indexes(config))

        cls.__extension_config__ = config
        cls.__extension_fields__ = fields
        cls.__extension_assocs__ = relations
        cls.__extension_indexes__ = indexes

        for spec in fields:
            _register_field(cls, spec)
        for spec in relations:
            if spec.kind is RelationKind.TO_ONE:
                _register_to_one(cls, spec)
            else:
                _register_to_many(cls, spec)
        _register_indexes(cls, indexes)

        # Declarative mapping happens here
        super().__init_subclass__(**kwargs)

        validation.validate(config, cls)
        logger.info(
            f"Composed {cls.__name__}: {len(fields)} field(s), "
            f"{len(relations)} relation(s), {len(indexes)} index(es)"
        )

    @classmethod
    def extension_changeset(cls, changeset: Changeset, params: Mapping[str, Any] | None) -> Changeset:
        """Run the changeset logic of all configured extensions."""
        if cls.__extension_config__ is None:
            return changeset
        return pipeline.apply(changeset, params, cls.__extension_config__)


# ============================================================
# REGISTRATION
# ============================================================

def _check_free(cls: type, name: str) -> None:
    if hasattr(cls, name):
        raise SchemaError(
            f"field {name} contributed by an extension is already defined "
            f"on entity {cls.__name__}"
        )


def _column_type(spec: FieldSpec) -> Any:
    if not isinstance(spec.type, str):
        return spec.type
    try:
        return FIELD_TYPES[spec.type]()
    except KeyError:
        raise SchemaError(
            f"unknown type {spec.type} for field {spec.name}. "
            f"Available: {list(FIELD_TYPES)}"
        ) from None


def _register_field(cls: type, spec: FieldSpec) -> None:
    _check_free(cls, spec.name)
    setattr(
        cls,
        spec.name,
        mapped_column(_column_type(spec), default=spec.default, nullable=True),
    )


def _references(cls: type, spec: RelationSpec) -> str:
    target = spec.target
    if target is cls:
        return f"{cls.__tablename__}.id"
    if isinstance(target, type) and hasattr(target, "__tablename__"):
        return f"{target.__tablename__}.id"
    raise SchemaError(
        f"relation {spec.name} on entity {cls.__name__} targets {target!r}; "
        f"a 'references' option is required"
    )


def _register_to_one(cls: type, spec: RelationSpec) -> None:
    options = dict(spec.options)
    fk_name = options.pop("foreign_key", f"{spec.name}_id")
    references = options.pop("references", None) or _references(cls, spec)
    on_delete = options.pop("on_delete", "SET NULL")

    _check_free(cls, fk_name)
    _check_free(cls, spec.name)

    # Weak reference: the referenced row may go away
    setattr(
        cls,
        fk_name,
        mapped_column(
            PGUUID(as_uuid=True),
            ForeignKey(references, ondelete=on_delete),
            nullable=True,
            index=True,
        ),
    )

    options.setdefault("lazy", "selectin")
    if spec.target is cls:
        options.setdefault("remote_side", lambda: [cls.id])

    setattr(
        cls,
        spec.name,
        relationship(spec.target, foreign_keys=lambda: [getattr(cls, fk_name)], **options),
    )


def _register_to_many(cls: type, spec: RelationSpec) -> None:
    options = dict(spec.options)
    fk_name = options.pop("foreign_key", None)
    if fk_name is None:
        raise SchemaError(
            f"relation {spec.name} on entity {cls.__name__} needs a 'foreign_key' option"
        )

    _check_free(cls, spec.name)

    target = spec.target
    if isinstance(target, type):
        foreign_keys: Any = lambda: [getattr(target, fk_name)]
    else:
        foreign_keys = f"{target}.{fk_name}"

    options.setdefault("lazy", "selectin")
    setattr(cls, spec.name, relationship(target, foreign_keys=foreign_keys, **options))


def _register_indexes(cls: type, specs: tuple[IndexSpec, ...]) -> None:
    if not specs:
        return

    existing = getattr(cls, "__table_args__", ())
    kwargs: dict[str, Any] = {}
    if isinstance(existing, dict):
        args, kwargs = (), existing
    elif existing and isinstance(existing[-1], dict):
        args, kwargs = tuple(existing[:-1]), existing[-1]
    else:
        args = tuple(existing)

    new_indexes = tuple(
        Index(
            spec.name or f"ix_{cls.__tablename__}_{'_'.join(spec.fields)}",
            *spec.fields,
            unique=spec.unique,
        )
        for spec in specs
    )
    args = args + new_indexes
    cls.__table_args__ = args + (kwargs,) if kwargs else args
