"""
Changeset repository.

SQLAlchemy implementation of the Storage protocol.
"""

from typing import TypeVar, Generic, Type, Any
import re

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from extauth.core.changeset import Changeset, Result

ModelT = TypeVar("ModelT")

TAKEN = "has already been taken"


class ChangesetRepository(Generic[ModelT]):
    """
    Persists changesets through an async session.

    Every write runs inside a SAVEPOINT. A unique violation on a field
    registered with Changeset.unique_constraint() rolls back only the
    savepoint and comes back as a failed Result; any other integrity
    error propagates.

    Usage:
        repo = ChangesetRepository(db, User)
        result = await repo.insert(User.changeset(User(), params))
        if result.ok:
            user = result.value
    """

    def __init__(self, db: AsyncSession, model: Type[ModelT]):
        self.db = db
        self.model = model

    def _base_query(self) -> Select:
        return select(self.model)

    async def get_by(self, **filters: Any) -> ModelT | None:
        """Get single entity by field equality."""
        stmt = self._base_query()
        for field, value in filters.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def insert(self, changeset: Changeset) -> Result[ModelT]:
        """Insert the changeset's entity."""
        changeset = changeset.with_action("insert")
        if not changeset.valid:
            return Result.failure(changeset)

        try:
            async with self.db.begin_nested():
                entity = changeset.apply()
                self.db.add(entity)
                await self.db.flush()
        except IntegrityError as e:
            return Result.failure(self._constraint_error(changeset, e))

        return Result.success(entity)

    async def update(self, changeset: Changeset) -> Result[ModelT]:
        """Write the changeset's changes to its (persistent) entity."""
        changeset = changeset.with_action("update")
        if not changeset.valid:
            return Result.failure(changeset)
        if not changeset.changes:
            return Result.success(changeset.data)

        try:
            async with self.db.begin_nested():
                entity = changeset.apply()
                await self.db.flush()
        except IntegrityError as e:
            # Savepoint rollback expired the entity
            await self.db.refresh(changeset.data)
            return Result.failure(self._constraint_error(changeset, e))

        return Result.success(entity)

    def _constraint_error(self, changeset: Changeset, error: IntegrityError) -> Changeset:
        message = str(error.orig)
        for field in changeset.constraints:
            if re.search(rf"\b{re.escape(field)}\b", message):
                return changeset.add_error(field, TAKEN)
        raise error
