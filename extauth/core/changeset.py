"""
Changeset and Result value types.

A changeset wraps an entity together with proposed changes and the
validation errors found so far. Every operation returns a new changeset;
errors only ever grow.

Usage:
    changeset = (
        Changeset.change(user)
        .cast(params, ["email", "name"])
        .validate_required(["email"])
    )
    if changeset.valid:
        user = changeset.apply()
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar
import re

T = TypeVar("T")

Error = tuple[str, str]

# Value of the wrong type for a text validation
INVALID = "is invalid"


@dataclass(frozen=True)
class Changeset:
    """
    Immutable set of proposed changes for an entity.

    Attributes:
        data: The entity being changed (a blank instance for inserts)
        changes: Field name -> new value
        errors: Ordered (field, message) pairs
        params: Raw input the changeset was cast from
        constraints: Fields whose database unique constraint violations
            are turned into errors instead of raising
        action: Storage action attempted ("insert", "update")
    """
    data: Any
    changes: dict[str, Any] = field(default_factory=dict)
    errors: tuple[Error, ...] = ()
    params: dict[str, Any] = field(default_factory=dict)
    constraints: tuple[str, ...] = ()
    action: str | None = None

    @classmethod
    def change(cls, data_or_changeset: Any, **changes: Any) -> "Changeset":
        """Wrap an entity (or extend an existing changeset) with changes."""
        if isinstance(data_or_changeset, Changeset):
            changeset = data_or_changeset
        else:
            changeset = cls(data=data_or_changeset)
        for name, value in changes.items():
            changeset = changeset.put_change(name, value)
        return changeset

    @property
    def valid(self) -> bool:
        return not self.errors

    # ============================================================
    # CHANGES
    # ============================================================

    def cast(self, params: Mapping[str, Any] | None, permitted: Iterable[str]) -> "Changeset":
        """
        Copy permitted keys from raw params into changes.

        Blank strings are cast to None. Values equal to the current
        field value are not recorded as changes.
        """
        params = dict(params or {})
        changeset = replace(self, params={**self.params, **params})

        for name in permitted:
            if name not in params:
                continue
            value = params[name]
            if isinstance(value, str) and not value.strip():
                value = None
            changeset = changeset.put_change(name, value)

        return changeset

    def put_change(self, name: str, value: Any) -> "Changeset":
        """Record a change, dropping it if it matches the current value."""
        changes = dict(self.changes)
        if self.data is not None and getattr(self.data, name, None) == value and value is not None:
            changes.pop(name, None)
        else:
            changes[name] = value
        return replace(self, changes=changes)

    def delete_change(self, name: str) -> "Changeset":
        changes = dict(self.changes)
        changes.pop(name, None)
        return replace(self, changes=changes)

    def get_change(self, name: str, default: Any = None) -> Any:
        return self.changes.get(name, default)

    def get_field(self, name: str, default: Any = None) -> Any:
        """Get a value from changes, falling back to the entity."""
        if name in self.changes:
            return self.changes[name]
        if self.data is None:
            return default
        return getattr(self.data, name, default)

    def apply(self) -> Any:
        """Write changes onto the entity and return it."""
        for name, value in self.changes.items():
            setattr(self.data, name, value)
        return self.data

    # ============================================================
    # ERRORS
    # ============================================================

    def add_error(self, name: str, message: str) -> "Changeset":
        return replace(self, errors=self.errors + ((name, message),))

    def errors_on(self, name: str) -> list[str]:
        """All error messages for a field."""
        return [message for field_name, message in self.errors if field_name == name]

    def merge_errors(self, errors: Iterable[Error]) -> "Changeset":
        """Prepend errors that are missing from this changeset."""
        missing = tuple(error for error in errors if error not in self.errors)
        if not missing:
            return self
        return replace(self, errors=missing + self.errors)

    # ============================================================
    # VALIDATIONS
    # ============================================================

    def validate_required(self, names: Iterable[str], message: str = "can't be blank") -> "Changeset":
        changeset = self
        for name in names:
            value = self.get_field(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                changeset = changeset.add_error(name, message)
        return changeset

    def validate_length(
        self,
        name: str,
        min: int | None = None,
        max: int | None = None,
    ) -> "Changeset":
        value = self.get_change(name)
        if value is None:
            return self
        if not isinstance(value, str):
            return self.add_error(name, INVALID)
        if min is not None and len(value) < min:
            return self.add_error(name, f"should be at least {min} character(s)")
        if max is not None and len(value) > max:
            return self.add_error(name, f"should be at most {max} character(s)")
        return self

    def validate_format(
        self,
        name: str,
        pattern: str | re.Pattern,
        message: str = "has invalid format",
    ) -> "Changeset":
        value = self.get_change(name)
        if value is None:
            return self
        if not isinstance(value, str):
            return self.add_error(name, INVALID)
        if re.search(pattern, value):
            return self
        return self.add_error(name, message)

    def validate_change(
        self,
        name: str,
        validator: Callable[[str, Any], list[Error]],
    ) -> "Changeset":
        """Run a validator against a field's change, if there is one."""
        if name not in self.changes or self.changes[name] is None:
            return self
        changeset = self
        for error in validator(name, self.changes[name]):
            changeset = changeset.add_error(*error)
        return changeset

    def unique_constraint(self, name: str) -> "Changeset":
        """Turn unique violations on `name` into an error on insert/update."""
        if name in self.constraints:
            return self
        return replace(self, constraints=self.constraints + (name,))

    def with_action(self, action: str) -> "Changeset":
        return replace(self, action=action)


@dataclass
class Result(Generic[T]):
    """
    Outcome of a storage write.

    Attributes:
        ok: Whether the write succeeded
        value: The persisted entity on success
        changeset: The failed changeset (with errors) on failure
    """
    ok: bool
    value: T | None = None
    changeset: Changeset | None = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, changeset: Changeset) -> "Result[T]":
        return cls(ok=False, changeset=changeset)
