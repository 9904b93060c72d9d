"""
Invitation context.

Pending -> accepted lifecycle of invited users.
"""

from typing import Any, Mapping

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from extauth.core.changeset import Result
from extauth.core.config import ExtensionConfig
from extauth.core.hooks.manager import hooks
from extauth.core.interfaces import Storage
from extauth.repositories.base import ChangesetRepository

from .schema import accept_invitation_changeset, invite_changeset

logger = structlog.get_logger()


class InvitationContext:
    """
    Create, accept and look up invitations.

    The config must be bound to the host entity (`User.__extension_config__`
    or `config.for_host(User)`).
    """

    def __init__(self, db: AsyncSession, config: ExtensionConfig):
        if config.user is None:
            raise ValueError("InvitationContext needs a config bound to a host entity")
        self.db = db
        self.config = config
        self.repo: Storage = ChangesetRepository(db, config.user)

    async def create(self, inviter: Any, params: Mapping[str, Any] | None) -> Result:
        """Create an invited user. Nothing is persisted on failure."""
        changeset = invite_changeset(self.config.user(), inviter, params, self.config)
        result = await self.repo.insert(changeset)

        if not result.ok:
            logger.info(
                "invitation_rejected",
                invited_by_id=str(getattr(inviter, "id", None)),
                errors=list(result.changeset.errors),
            )
            return result

        logger.info(
            "invitation_created",
            user_id=str(result.value.id),
            invited_by_id=str(inviter.id),
        )
        await hooks.trigger("invitation.created", user=result.value, inviter=inviter)
        return result

    async def update(self, user: Any, params: Mapping[str, Any] | None) -> Result:
        """Update an invited user and accept the invitation."""
        changeset = accept_invitation_changeset(user, params, self.config)
        result = await self.repo.update(changeset)

        if not result.ok:
            logger.info(
                "invitation_accept_rejected",
                user_id=str(user.id),
                errors=list(result.changeset.errors),
            )
            return result

        logger.info("invitation_accepted", user_id=str(user.id))
        await hooks.trigger("invitation.accepted", user=result.value)
        return result

    async def get_by_token(self, token: str) -> Any | None:
        """
        Find an invited user by `invitation_token`.

        Users that already accepted are not returned.
        """
        if not token:
            return None

        user = await self.repo.get_by(invitation_token=token)
        if user is None or user.invitation_accepted_at is not None:
            return None
        return user
