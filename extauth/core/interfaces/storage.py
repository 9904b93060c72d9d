"""
Storage collaborator protocol.
Implementations: ChangesetRepository (SQLAlchemy async session)
"""
from __future__ import annotations

from typing import Protocol, Any, TypeVar

from extauth.core.changeset import Changeset, Result


T = TypeVar("T")


class Storage(Protocol[T]):
    """
    Protocol for persisting changesets.

    Uniqueness and atomicity of writes are the store's responsibility.
    Constraint violations on fields registered with
    Changeset.unique_constraint() come back as a failed Result.
    """

    async def insert(self, changeset: Changeset) -> Result[T]:
        """Insert the changeset's entity. Nothing is persisted on failure."""
        ...

    async def update(self, changeset: Changeset) -> Result[T]:
        """Write the changeset's changes to an existing entity."""
        ...

    async def get_by(self, **filters: Any) -> T | None:
        """Get a single entity by field equality."""
        ...
