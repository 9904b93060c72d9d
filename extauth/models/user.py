"""
User model.

UserMixin carries the base identity fields and the base changeset.
The concrete User composes the extensions enabled in settings.
"""

from functools import lru_cache
from typing import Any, Mapping
from uuid import UUID, uuid4

from passlib.context import CryptContext
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import Boolean, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from extauth.core.changeset import INVALID, Changeset, Error
from extauth.core.config import ExtensionConfig, settings
from extauth.core.extensions import ExtensionSchema

from .base import Base, TimestampMixin

_email_adapter = TypeAdapter(EmailStr)


@lru_cache
def crypt_context(schemes: tuple[str, ...]) -> CryptContext:
    return CryptContext(schemes=list(schemes), deprecated="auto")


def hash_password(password: str, config: ExtensionConfig) -> str:
    """Hash with the configured `password_hasher`, or passlib."""
    hasher = config.get("password_hasher")
    if hasher is not None:
        return hasher(password)
    schemes = tuple(config.get("password_schemes", settings.auth.password_schemes))
    return crypt_context(schemes).hash(password)


def _validate_email(field: str, value: Any) -> list[Error]:
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return [(field, "has invalid format")]
    return []


class UserMixin(ExtensionSchema, TimestampMixin):
    """Base identity of the host entity."""

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Unset for users that have been invited but not registered yet
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    @classmethod
    def changeset(cls, user_or_changeset: Any, params: Mapping[str, Any] | None) -> Changeset:
        """
        Full user changeset.

        Validates the user id field (email), name and password, then runs
        the changeset logic of every configured extension.
        """
        changeset = cls.user_id_field_changeset(user_or_changeset, params)
        changeset = changeset.cast(params, ["name"]).validate_length("name", max=255)
        changeset = cls.password_changeset(changeset, params)
        return cls.extension_changeset(changeset, params)

    @classmethod
    def user_id_field_changeset(cls, user_or_changeset: Any, params: Mapping[str, Any] | None) -> Changeset:
        changeset = Changeset.change(user_or_changeset).cast(params, ["email"])

        email = changeset.get_change("email")
        if isinstance(email, str):
            changeset = changeset.put_change("email", email.strip().lower())
        elif email is not None:
            return changeset.add_error("email", INVALID).unique_constraint("email")

        return (
            changeset
            .validate_required(["email"])
            .validate_change("email", _validate_email)
            .validate_length("email", max=255)
            .unique_constraint("email")
        )

    @classmethod
    def password_changeset(cls, user_or_changeset: Any, params: Mapping[str, Any] | None) -> Changeset:
        """
        Validate `password` and hash it into `password_hash`.

        A password is required until the user has a password hash.
        """
        config = cls.__extension_config__ or ExtensionConfig(user=cls)
        changeset = Changeset.change(user_or_changeset).cast(params, ["password"])

        if changeset.get_change("password") is None:
            changeset = changeset.delete_change("password")
            if changeset.get_field("password_hash") is None:
                changeset = changeset.add_error("password", "can't be blank")
            return changeset

        if not isinstance(changeset.get_change("password"), str):
            return changeset.add_error("password", INVALID).delete_change("password")

        checked = changeset.validate_length(
            "password",
            min=config.get("password_min_length", settings.auth.password_min_length),
            max=config.get("password_max_length", settings.auth.password_max_length),
        )
        if len(checked.errors) == len(changeset.errors):
            password = checked.get_change("password")
            checked = checked.put_change("password_hash", hash_password(password, config))

        return checked.delete_change("password")


class User(UserMixin, Base, extension_config=ExtensionConfig.from_settings(settings)):
    """User account with the extensions enabled in settings."""

    __tablename__ = "users"

    def __repr__(self) -> str:
        return f"<User {self.email}>"
