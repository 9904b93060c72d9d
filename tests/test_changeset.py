"""
Tests for the changeset value type.
"""

from types import SimpleNamespace

from extauth.core.changeset import Changeset, Result


def user(**fields):
    defaults = {"email": None, "name": None}
    return SimpleNamespace(**{**defaults, **fields})


def test_cast_only_permitted_fields():
    changeset = Changeset.change(user()).cast(
        {"email": "a@example.com", "is_admin": True},
        ["email", "name"],
    )

    assert changeset.changes == {"email": "a@example.com"}
    assert changeset.params == {"email": "a@example.com", "is_admin": True}


def test_cast_blank_strings_to_none():
    changeset = Changeset.change(user(name="Ann")).cast({"name": "   "}, ["name"])

    assert changeset.changes == {"name": None}


def test_unchanged_values_are_not_changes():
    changeset = Changeset.change(user(name="Ann")).cast({"name": "Ann"}, ["name"])

    assert changeset.changes == {}


def test_operations_return_new_changesets():
    original = Changeset.change(user())

    changed = original.put_change("name", "Bob").add_error("email", "can't be blank")

    assert original.changes == {}
    assert original.errors == ()
    assert changed.changes == {"name": "Bob"}


def test_get_field_prefers_changes():
    changeset = Changeset.change(user(name="Ann"), name="Bob")

    assert changeset.get_field("name") == "Bob"
    assert changeset.get_field("email") is None
    assert changeset.get_field("missing", "x") == "x"


def test_validate_required():
    changeset = Changeset.change(user(name="Ann")).validate_required(["email", "name"])

    assert changeset.errors == (("email", "can't be blank"),)
    assert not changeset.valid


def test_validate_length():
    changeset = (
        Changeset.change(user(), name="ab", email="x" * 10)
        .validate_length("name", min=3)
        .validate_length("email", max=5)
    )

    assert changeset.errors_on("name") == ["should be at least 3 character(s)"]
    assert changeset.errors_on("email") == ["should be at most 5 character(s)"]


def test_validate_format():
    changeset = Changeset.change(user(), name="ann!").validate_format("name", r"^[a-z]+$")

    assert changeset.errors_on("name") == ["has invalid format"]


def test_validate_change_skips_missing_values():
    called = []

    def validator(field, value):
        called.append(value)
        return [(field, "bad")]

    changeset = Changeset.change(user()).validate_change("name", validator)

    assert changeset.valid
    assert called == []


def test_merge_errors_keeps_existing_order():
    changeset = Changeset.change(user()).add_error("b", "2")

    merged = changeset.merge_errors([("a", "1"), ("b", "2")])

    assert merged.errors == (("a", "1"), ("b", "2"))


def test_unique_constraint_registered_once():
    changeset = Changeset.change(user()).unique_constraint("email").unique_constraint("email")

    assert changeset.constraints == ("email",)


def test_apply_writes_changes():
    entity = user(name="Ann")

    applied = Changeset.change(entity, name="Bob", email="b@example.com").apply()

    assert applied is entity
    assert entity.name == "Bob"
    assert entity.email == "b@example.com"


def test_result_constructors():
    changeset = Changeset.change(user()).add_error("email", "can't be blank")

    assert Result.success("value") == Result(ok=True, value="value")
    assert Result.failure(changeset).changeset is changeset
    assert Result.failure(changeset).ok is False


def test_text_validations_reject_non_strings():
    changeset = (
        Changeset.change(user(), name=12345, email=["a@example.com"])
        .validate_length("name", max=10)
        .validate_format("email", r"@")
    )

    assert changeset.errors == (("name", "is invalid"), ("email", "is invalid"))
