"""
Tests for structural validation of the host.
"""

from uuid import UUID, uuid4

import pytest
from sqlalchemy import String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from extauth.core.config import ExtensionConfig
from extauth.core.extensions import (
    Extension,
    ExtensionSchema,
    SchemaError,
    require_schema_field,
)
from extauth.core.extensions import validation


calls: list[str] = []


class NeedsPhone(Extension):
    name = "needs_phone"

    def validate(self, config, host):
        calls.append(self.name)
        require_schema_field(host, "phone", self)


class NeedsEmail(Extension):
    name = "needs_email"

    def validate(self, config, host):
        calls.append(self.name)
        require_schema_field(host, "email", self)


@pytest.fixture(autouse=True)
def reset_calls():
    calls.clear()


@pytest.fixture
def account(base):
    class Account(base):
        __tablename__ = "accounts"
        id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
        email: Mapped[str] = mapped_column(String(255))

    return Account


def test_conforming_host_passes(account):
    config = ExtensionConfig(extensions=(NeedsEmail,), user=account)

    assert validation.validate(config, account) is None
    assert calls == ["needs_email"]


def test_missing_field_names_field_extension_and_entity(account):
    config = ExtensionConfig(extensions=(NeedsPhone,), user=account)

    with pytest.raises(SchemaError) as exc_info:
        validation.validate(config, account)

    assert exc_info.value.message == (
        "required field phone missing for extension needs_phone on entity Account"
    )


def test_first_failure_stops_validation(account):
    config = ExtensionConfig(extensions=(NeedsPhone, NeedsEmail), user=account)

    with pytest.raises(SchemaError):
        validation.validate(config, account)

    assert calls == ["needs_phone"]


def test_extensions_run_in_config_order(account):
    class NeedsId(Extension):
        name = "needs_id"

        def validate(self, config, host):
            calls.append(self.name)
            require_schema_field(host, "id", self)

    config = ExtensionConfig(extensions=(NeedsId, NeedsEmail), user=account)

    validation.validate(config, account)

    assert calls == ["needs_id", "needs_email"]


def test_require_schema_field_accepts_extension_name(account):
    with pytest.raises(SchemaError) as exc_info:
        require_schema_field(account, "phone", "sms")

    assert "extension sms" in exc_info.value.message


def test_host_definition_fails_on_missing_field(base):
    config = ExtensionConfig(extensions=("invitation",))

    with pytest.raises(SchemaError) as exc_info:

        class Member(ExtensionSchema, base, extension_config=config):
            __tablename__ = "members"
            id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)

    assert exc_info.value.message == (
        "required field email missing for extension invitation on entity Member"
    )


def test_host_definition_with_required_field_succeeds(base):
    config = ExtensionConfig(extensions=("invitation",))

    class Member(ExtensionSchema, base, extension_config=config):
        __tablename__ = "members"
        id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
        email: Mapped[str] = mapped_column(String(255))

    assert "invitation_token" in Member.__table__.columns
