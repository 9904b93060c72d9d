"""
Invitation extension schema.

Adds to the host:
- invitation_token: opaque, unique
- invitation_accepted_at: null while the invitation is pending
- invited_by / invited_users: weak reference to the inviting user

Accepted is terminal: once `invitation_accepted_at` is set, any changeset
that touches it again is rejected.
"""
from __future__ import annotations

from typing import Any, Mapping
import secrets

from extauth.core.changeset import Changeset
from extauth.core.config import ExtensionConfig
from extauth.core.extensions import (
    HOST,
    Extension,
    ExtensionRegistry,
    FieldSpec,
    IndexSpec,
    RelationSpec,
    require_schema_field,
)
from extauth.utils.timezone import utc_now

ALREADY_ACCEPTED = "invitation has already been accepted"


@ExtensionRegistry.register("invitation")
class InvitationExtension(Extension):
    """Lets an existing user invite a new one through a token."""

    def attrs(self, config: ExtensionConfig) -> list[FieldSpec]:
        return [
            FieldSpec("invitation_token", "string"),
            FieldSpec("invitation_accepted_at", "utc_datetime"),
        ]

    def assocs(self, config: ExtensionConfig) -> list[RelationSpec]:
        return [
            RelationSpec.to_one("invited_by", HOST),
            RelationSpec.to_many(
                "invited_users",
                HOST,
                foreign_key="invited_by_id",
                viewonly=True,
            ),
        ]

    def indexes(self, config: ExtensionConfig) -> list[IndexSpec]:
        return [IndexSpec(("invitation_token",), unique=True)]

    def changeset(
        self,
        changeset: Changeset,
        params: dict[str, Any],
        config: ExtensionConfig,
    ) -> Changeset:
        if (
            "invitation_accepted_at" in changeset.changes
            and getattr(changeset.data, "invitation_accepted_at", None) is not None
        ):
            return changeset.add_error("invitation_accepted_at", ALREADY_ACCEPTED)
        return changeset

    def validate(self, config: ExtensionConfig, host: type) -> None:
        # Invitees are addressed by email
        require_schema_field(host, "email", self)


# ============================================================
# CHANGESETS
# ============================================================

def invite_changeset(
    user_or_changeset: Any,
    invited_by: Any,
    params: Mapping[str, Any] | None,
    config: ExtensionConfig,
) -> Changeset:
    """Changeset for a new invited user: user id field, inviter and token."""
    changeset = config.user.user_id_field_changeset(user_or_changeset, params)
    changeset = changeset.cast(params, ["name"]).validate_length("name", max=255)
    changeset = invited_by_changeset(changeset, invited_by)
    return invitation_token_changeset(changeset, config)


def invited_by_changeset(changeset: Changeset, invited_by: Any) -> Changeset:
    if invited_by is None:
        return changeset.add_error("invited_by", "can't be blank")
    return changeset.put_change("invited_by", invited_by)


def invitation_token_changeset(changeset: Changeset, config: ExtensionConfig) -> Changeset:
    """Generate a token unless one is already set."""
    if not changeset.get_field("invitation_token"):
        changeset = changeset.put_change("invitation_token", generate_token(config))
    return changeset.unique_constraint("invitation_token")


def generate_token(config: ExtensionConfig) -> str:
    generator = config.get("invitation_token_generator")
    if generator is not None:
        return generator()
    return secrets.token_urlsafe(config.get("invitation_token_bytes", 32))


def accept_invitation_changeset(
    user_or_changeset: Any,
    params: Mapping[str, Any] | None,
    config: ExtensionConfig,
) -> Changeset:
    """Mark the invitation accepted and run the full user changeset."""
    changeset = Changeset.change(user_or_changeset).put_change(
        "invitation_accepted_at", utc_now()
    )
    return config.user.changeset(changeset, params)
