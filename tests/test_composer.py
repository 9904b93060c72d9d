"""
Tests for merging extension schema contributions.
"""

import pytest

from extauth.core.config import ExtensionConfig
from extauth.core.extensions import (
    HOST,
    Extension,
    FieldSpec,
    IndexSpec,
    Placeholder,
    RelationKind,
    RelationSpec,
    SchemaError,
)
from extauth.core.extensions import composer


class Profile(Extension):
    name = "profile"

    def attrs(self, config):
        return [FieldSpec("nickname"), FieldSpec("bio", "text")]

    def indexes(self, config):
        return [IndexSpec(("nickname",))]


class Locking(Extension):
    name = "locking"

    def attrs(self, config):
        return [FieldSpec("locked_at", "utc_datetime"), FieldSpec("failed_attempts", "integer", 0)]

    def assocs(self, config):
        return [RelationSpec.to_one("locked_by", HOST)]

    def indexes(self, config):
        return [IndexSpec(("locked_at",)), IndexSpec(("failed_attempts", "locked_at"), unique=True)]


class Teams(Extension):
    name = "teams"

    def assocs(self, config):
        return [RelationSpec.to_one("team", "Team", references="teams.id")]


class AlsoNickname(Extension):
    name = "also_nickname"

    def attrs(self, config):
        return [FieldSpec("nickname")]


class Host:
    pass


def test_attrs_concatenate_in_config_order():
    config = ExtensionConfig(extensions=(Locking, Teams, Profile))

    assert [f.name for f in composer.attrs(config)] == [
        "locked_at",
        "failed_attempts",
        "nickname",
        "bio",
    ]


def test_attrs_equal_concatenation_of_each_extension():
    config = ExtensionConfig(extensions=(Profile, Locking))

    expected = Profile().attrs(config) + Locking().attrs(config)

    assert composer.attrs(config) == expected


def test_attrs_do_not_deduplicate():
    config = ExtensionConfig(extensions=(Profile, AlsoNickname))

    names = [f.name for f in composer.attrs(config)]

    assert names == ["nickname", "bio", "nickname"]


def test_assocs_rewrite_host_placeholder():
    config = ExtensionConfig(extensions=(Teams, Locking), user=Host)

    relations = composer.assocs(config)

    assert [(r.kind, r.name, r.target) for r in relations] == [
        (RelationKind.TO_ONE, "team", "Team"),
        (RelationKind.TO_ONE, "locked_by", Host),
    ]
    assert not any(isinstance(r.target, Placeholder) for r in relations)


def test_assocs_keep_options():
    config = ExtensionConfig(extensions=(Teams,), user=Host)

    (relation,) = composer.assocs(config)

    assert relation.options == {"references": "teams.id"}


def test_assocs_without_host_fail():
    config = ExtensionConfig(extensions=(Locking,))

    with pytest.raises(SchemaError) as exc_info:
        composer.assocs(config)

    assert "locked_by" in exc_info.value.message
    assert "locking" in exc_info.value.message


def test_assocs_unknown_placeholder_fail():
    class Broken(Extension):
        name = "broken"

        def assocs(self, config):
            return [RelationSpec.to_many("things", Placeholder("thing"), foreign_key="x_id")]

    config = ExtensionConfig(extensions=(Broken,), user=Host)

    with pytest.raises(SchemaError) as exc_info:
        composer.assocs(config)

    assert "<thing>" in exc_info.value.message


def test_indexes_concatenate_in_config_order():
    config = ExtensionConfig(extensions=(Profile, Teams, Locking))

    assert composer.indexes(config) == [
        IndexSpec(("nickname",)),
        IndexSpec(("locked_at",)),
        IndexSpec(("failed_attempts", "locked_at"), unique=True),
    ]


def test_empty_config_composes_nothing():
    config = ExtensionConfig()

    assert composer.attrs(config) == []
    assert composer.assocs(config) == []
    assert composer.indexes(config) == []
