"""Unit tests for slice reflection."""

import pytest

from reslice import AbstractSliceError, FieldKind, MutatorArityError, Slice, derived, describe
from reslice.reflection import classify, mutator_arity


@pytest.mark.unit
@pytest.mark.reflection
@pytest.mark.parametrize(
    "value,kind",
    [
        (True, FieldKind.BOOLEAN),
        (0, FieldKind.NUMBER),
        (2.5, FieldKind.NUMBER),
        ([], FieldKind.ARRAY),
        (("a", "b"), FieldKind.ARRAY),
        ([{"id": 1}, {"id": 2}], FieldKind.IDENTIFIED_ARRAY),
        ([{"id": 1}, {"name": "x"}], FieldKind.ARRAY),
        ("", FieldKind.OBJECT),
        (None, FieldKind.OBJECT),
        ({}, FieldKind.OBJECT),
    ],
)
def test_classify(value, kind):
    """Field kinds follow the runtime type of the default value."""
    assert classify(value) is kind


@pytest.mark.unit
@pytest.mark.reflection
def test_booleans_are_not_numbers():
    """bool is an int subclass but classifies as boolean."""
    assert classify(False) is FieldKind.BOOLEAN
    assert not FieldKind.BOOLEAN.is_array
    assert FieldKind.IDENTIFIED_ARRAY.is_array


@pytest.mark.unit
@pytest.mark.reflection
def test_describe_collects_fields_in_definition_order(counter_slice):
    """Fields are reported in the order they were declared, with their kinds."""
    schema = describe(counter_slice)

    assert [(f.name, f.kind) for f in schema.fields] == [
        ("counter", FieldKind.NUMBER),
        ("data", FieldKind.ARRAY),
        ("flag", FieldKind.BOOLEAN),
    ]


@pytest.mark.unit
@pytest.mark.reflection
def test_describe_separates_mutators_getters_and_effects(user_and_products, cart_slice):
    """Instance methods are mutators, @derived members getters and class-level callables effects."""
    User, _ = user_and_products

    user_schema = describe(User)
    cart_schema = describe(cart_slice)

    assert set(user_schema.user_mutator_names) == {"clear_friends", "clear_user", "record_visit"}
    assert [e.name for e in user_schema.effects] == ["fetch_friends"]
    assert [g.name for g in cart_schema.user_getters] == ["subtotal", "label"]
    assert cart_schema.user_mutators == ()


@pytest.mark.unit
@pytest.mark.reflection
def test_describe_is_cached(counter_slice):
    """A slice class is reflected once."""
    assert describe(counter_slice) is describe(counter_slice)


@pytest.mark.unit
@pytest.mark.reflection
def test_private_members_and_properties_are_not_reflected():
    """Underscore members and plain properties are neither fields nor mutators."""

    class Account(Slice):
        balance = 0
        _secret = "hidden"

        def _helper(self):
            return self

        @property
        def overdrawn(self):
            return self.balance < 0

    schema = describe(Account)

    assert [f.name for f in schema.fields] == ["balance"]
    assert schema.user_mutators == ()
    assert schema.user_getters == ()


@pytest.mark.unit
@pytest.mark.reflection
def test_fields_assigned_in_init_are_seen():
    """Fields come from a default-constructed instance, not only class attributes."""

    class Session(Slice):
        token = ""

        def __init__(self, **values):
            super().__init__(**values)
            self._assign("attempts", 0)

    assert [f.name for f in describe(Session).fields] == ["token", "attempts"]


@pytest.mark.unit
@pytest.mark.reflection
def test_inherited_members_are_reflected():
    """Fields and mutators of abstract slice bases reach concrete subclasses."""

    class Timestamped(Slice):
        __abstract__ = True
        updated = 0

        def touch(self, when):
            return self.update(updated=when)

    class Note(Timestamped):
        text = ""

    schema = describe(Note)

    assert [f.name for f in schema.fields] == ["updated", "text"]
    assert schema.user_mutator_names == ("touch",)


@pytest.mark.unit
@pytest.mark.reflection
def test_describing_an_abstract_slice_raises():
    """The abstract base cannot be described or wired."""
    with pytest.raises(AbstractSliceError):
        describe(Slice)


@pytest.mark.unit
@pytest.mark.reflection
def test_mutator_arity():
    """Mutators take zero or one argument, optionally variadic or defaulted."""

    def none(self):
        pass

    def one(self, value):
        pass

    def defaulted(self, value=None):
        pass

    def many(self, *values):
        pass

    assert mutator_arity(Slice, "none", none) == (0, False, False)
    assert mutator_arity(Slice, "one", one) == (1, False, False)
    assert mutator_arity(Slice, "defaulted", defaulted) == (1, False, True)
    assert mutator_arity(Slice, "many", many) == (1, True, False)


@pytest.mark.unit
@pytest.mark.reflection
def test_mutators_with_two_required_arguments_are_rejected():
    """Two required arguments cannot be carried by one action payload."""

    class Broken(Slice):
        x = 0

        def move(self, dx, dy):
            return self.update(x=self.x + dx + dy)

    with pytest.raises(MutatorArityError, match="Broken.move"):
        describe(Broken)


@pytest.mark.unit
@pytest.mark.reflection
def test_derived_members_are_not_fields():
    """A @derived member is not mistaken for a field declaration."""

    class Box(Slice):
        width = 1
        height = 2

        @derived
        def area(self):
            return self.width * self.height

    schema = describe(Box)

    assert [f.name for f in schema.fields] == ["width", "height"]
    assert [g.name for g in schema.user_getters] == ["area"]
