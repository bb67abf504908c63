"""Integration tests for several slices sharing one store."""

import logging

import pytest

from reslice import (
    ActionConflictError,
    CombinedState,
    DuplicateSliceKeyError,
    Slice,
    StoreAlreadyInitializedError,
    combine_slices,
    derived,
)


@pytest.fixture
def app(user_and_products):
    return combine_slices(*user_and_products)


@pytest.mark.integration
@pytest.mark.registry
def test_combined_state_is_keyed_by_slice(app, user_and_products):
    """Each slice's snapshot lives under its snake_case key."""
    User, Products = user_and_products
    state = app.get_current_state()

    assert isinstance(state, CombinedState)
    assert list(state) == ["user", "products"]
    assert state.user == User()
    assert User.get_state() is state.user
    assert Products.get_state() is state["products"]


@pytest.mark.integration
@pytest.mark.registry
def test_unique_actions_work_from_the_top_level(app, user_and_products):
    """A default action only one slice produces changes only that slice."""
    User, Products = user_and_products
    before = Products.get_state()

    app.actions.set_id(7)
    app.add_to_coupons("SPRING")

    assert User.get_state().id == 7
    assert Products.get_state().coupons == ["SPRING"]
    assert app.get_current_state().products is not before


@pytest.mark.integration
@pytest.mark.registry
def test_shared_field_actions_conflict_at_the_top_level(app, user_and_products):
    """set_data is disabled on the combined store but works per slice."""
    User, Products = user_and_products

    assert app.creators["set_data"] is None
    with pytest.raises(ActionConflictError, match="set_data"):
        app.actions.set_data([1, 2])
    with pytest.raises(ActionConflictError):
        app.actions.clear()

    products_before = Products.get_state()
    User.actions.set_data([1, 2])

    assert User.get_state().data == [1, 2]
    assert Products.get_state() is products_before
    assert Products.get_state().data == []


@pytest.mark.integration
@pytest.mark.registry
def test_per_slice_clear_only_resets_that_slice(app, user_and_products):
    """The per-slice clear is targeted even though the top-level one conflicts."""
    User, Products = user_and_products
    app.actions.set_id(3)
    app.actions.add_to_products({"id": 1})

    User.actions.clear()

    assert User.get_state().id == 0
    assert Products.get_state().products == [{"id": 1}]


@pytest.mark.integration
@pytest.mark.registry
def test_user_mutators_are_broadcast(app, user_and_products):
    """clear_user is handled by every slice that defines it."""
    User, Products = user_and_products
    app.actions.set_id(4)
    app.actions.set_friends([9])
    app.actions.add_to_products({"id": 1})
    User.actions.set_data(["u"])

    app.actions.clear_user()

    assert User.get_state() == User()
    assert Products.get_state() == Products()


@pytest.mark.integration
@pytest.mark.registry
def test_user_mutator_with_a_payload(app, user_and_products):
    """A user mutator defined on one slice reaches it with its argument."""
    User, Products = user_and_products

    app.actions.record_visit("monday")
    User.actions.record_visit("tuesday")

    assert User.get_state().data == ["monday", "tuesday"]
    assert Products.get_state().data == []


@pytest.mark.integration
@pytest.mark.registry
def test_effects_are_hoisted_to_the_top_level(app, user_and_products):
    """Classmethods of a slice are callable on the combined handle."""
    User, _ = user_and_products

    app.fetch_friends()

    assert User.get_state().friends == [1, 2, 3, 4, 5]
    assert "fetch_friends" in app.effects


@pytest.mark.integration
@pytest.mark.registry
def test_unchanged_dispatches_keep_the_combined_state(app):
    """An action no slice handles returns the very same combined state."""
    before = app.get_current_state()

    app.dispatch({"type": "noop"})

    assert app.get_current_state() is before


@pytest.mark.integration
@pytest.mark.registry
def test_slice_subscribers_only_hear_about_their_slice(app, user_and_products):
    """A slice listener is not called for changes in another slice."""
    User, Products = user_and_products
    user_updates, store_updates = [], []
    User.subscribe(user_updates.append)
    app.subscribe(lambda: store_updates.append(app.get_current_state()))

    app.actions.add_to_coupons("A")
    app.actions.set_id(1)

    assert [u.id for u in user_updates] == [1]
    assert len(store_updates) == 2


@pytest.mark.integration
@pytest.mark.registry
def test_conflicts_are_logged(user_and_products, caplog):
    """Combining slices with shared field names warns about the disabled actions."""
    with caplog.at_level(logging.WARNING, logger="reslice"):
        combine_slices(*user_and_products)

    messages = " ".join(record.getMessage() for record in caplog.records)
    assert "set_data" in messages
    assert "user, products" in messages


@pytest.mark.integration
@pytest.mark.registry
def test_explicit_keys(user_and_products):
    """Keyword arguments choose the state keys."""
    User, Products = user_and_products

    app = combine_slices(account=User, catalogue=Products)

    assert list(app.get_current_state()) == ["account", "catalogue"]
    assert app.creators["set_id"](1).slice == "account"


@pytest.mark.integration
@pytest.mark.registry
def test_duplicate_keys_are_rejected(user_and_products):
    """Two slices cannot share a state key."""
    User, Products = user_and_products

    with pytest.raises(DuplicateSliceKeyError):
        combine_slices(User, user=Products)
    assert not User.is_wired
    assert not Products.is_wired


@pytest.mark.integration
@pytest.mark.registry
def test_combined_slices_cannot_be_wired_again(app, user_and_products):
    """A slice already in a combined store cannot be initialized on its own."""
    User, Products = user_and_products

    with pytest.raises(StoreAlreadyInitializedError):
        User.init()
    with pytest.raises(StoreAlreadyInitializedError):
        combine_slices(Products)


@pytest.mark.integration
@pytest.mark.registry
def test_combined_middleware(user_and_products):
    """Middleware passed to combine_slices sees every action."""
    seen = []

    def record(api):
        def wrap(next_dispatch):
            def dispatch(action):
                seen.append((action.type, action.slice))
                return next_dispatch(action)

            return dispatch

        return wrap

    User, _ = user_and_products
    app = combine_slices(*user_and_products, middleware=[record])

    app.actions.set_id(2)
    User.actions.set_data([])
    app.actions.clear_user()

    assert seen == [("set_id", "user"), ("set_data", "user"), ("clear_user", None)]


@pytest.mark.integration
@pytest.mark.derived
def test_derived_values_in_a_combined_store():
    """Memoized values recompute only when the fields they read change."""
    calls = []

    class Inbox(Slice):
        messages = []
        filter = ""

        @derived
        def unread(self):
            calls.append("unread")
            return len([m for m in self.messages if not m["read"]])

    class Settings(Slice):
        theme = "light"

    app = combine_slices(Inbox, Settings)
    app.actions.add_to_messages({"id": 1, "read": False}, {"id": 2, "read": True})

    assert Inbox.get_state().unread == 1
    app.actions.set_theme("dark")
    app.actions.set_filter("work")
    assert Inbox.get_state().unread == 1
    app.actions.update_messages_by_id({"id": 1, "read": True})
    assert Inbox.get_state().unread == 0
    assert calls == ["unread", "unread"]
