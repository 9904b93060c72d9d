"""
Invitation extension.

An existing user invites a new one; the invitee completes registration by
presenting the invitation token.

Usage:
    config = ExtensionConfig(extensions=["invitation"])

    class User(UserMixin, Base, extension_config=config):
        __tablename__ = "users"

    invitations = InvitationContext(db, User.__extension_config__)
    result = await invitations.create(inviter, {"email": "new@example.com"})
"""

# Schema first: importing it registers the extension
from .schema import (
    InvitationExtension,
    accept_invitation_changeset,
    invite_changeset,
)
from .context import InvitationContext

__all__ = [
    "InvitationExtension",
    "InvitationContext",
    "accept_invitation_changeset",
    "invite_changeset",
]
