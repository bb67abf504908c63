"""Unit tests for slice and top-level registries."""

import logging

import pytest

from reslice import (
    Action,
    ActionConflictError,
    SliceNotInitializedError,
    SliceRegistry,
    TopLevelRegistry,
    create_store,
)


@pytest.fixture
def user_registries(user_and_products):
    User, Products = user_and_products
    return {"user": SliceRegistry(User, "user"), "products": SliceRegistry(Products, "products")}


@pytest.mark.unit
@pytest.mark.registry
def test_descriptors_mirror_the_mutator_table(counter_slice):
    """Every mutator gets a descriptor with its name and arity."""
    registry = SliceRegistry(counter_slice, "state")

    assert set(registry.descriptors) == set(registry.table)
    assert registry.descriptors["increment_counter"].arity == 1
    assert registry.descriptors["toggle_flag"].arity == 0
    assert registry.descriptors["add_to_data"].variadic


@pytest.mark.unit
@pytest.mark.registry
def test_creators_build_actions_targeted_at_the_slice(counter_slice):
    """Creators take the payload positionally and stamp the slice key."""
    creators = SliceRegistry(counter_slice, "state").creators

    assert creators["increment_counter"](2) == Action("increment_counter", 2, "state")
    assert creators["clear"]() == Action("clear", None, "state")
    assert creators["add_to_data"]("a", "b") == Action("add_to_data", ("a", "b"), "state")


@pytest.mark.unit
@pytest.mark.registry
def test_dispatchers_need_a_store(counter_slice):
    """Dispatching before the registry is bound fails with a clear error."""
    registry = SliceRegistry(counter_slice, "state")

    with pytest.raises(SliceNotInitializedError):
        registry.actions.increment_counter(1)


@pytest.mark.unit
@pytest.mark.registry
def test_dispatchers_reach_the_bound_store(counter_slice):
    """After bind, dispatchers send their action through the store."""
    registry = SliceRegistry(counter_slice, "state")
    registry.bind(create_store(registry.reducer))

    registry.actions.increment_counter(2)
    registry.actions.increment_by_two()

    assert registry.get_state().counter == 4


@pytest.mark.unit
@pytest.mark.registry
def test_registry_subscribe_only_fires_on_change(counter_slice):
    """Slice listeners are called with the new snapshot when it changes."""
    registry = SliceRegistry(counter_slice, "state")
    registry.bind(create_store(registry.reducer))
    seen = []

    unsubscribe = registry.subscribe(seen.append)
    registry.actions.increment_counter(1)
    registry.require_store().dispatch(Action("no_such_action"))
    unsubscribe()
    registry.actions.increment_counter(1)

    assert [s.counter for s in seen] == [1]


@pytest.mark.unit
@pytest.mark.registry
def test_unique_default_names_are_hoisted_unchanged(user_registries):
    """A default name only one slice produces keeps that slice's creator and dispatcher."""
    top = TopLevelRegistry(user_registries)

    assert top.creators["set_id"] is user_registries["user"].creators["set_id"]
    assert top.dispatchers["set_coupons"] is user_registries["products"].dispatchers["set_coupons"]
    assert top.creators["set_id"](3).slice == "user"


@pytest.mark.unit
@pytest.mark.registry
def test_shared_default_names_are_disabled(user_registries):
    """Every default name produced by both slices conflicts, including clear."""
    top = TopLevelRegistry(user_registries)

    assert set(top.conflicts) == {
        "clear",
        "set_data",
        "clear_data",
        "add_to_data",
        "update_data",
        "update_data_by_id",
        "remove_from_data",
        "remove_from_data_by_id",
    }
    assert top.conflicts["set_data"] == ["user", "products"]
    assert top.creators["set_data"] is None
    with pytest.raises(ActionConflictError) as excinfo:
        top.actions.set_data([1])
    assert excinfo.value.name == "set_data"
    assert excinfo.value.slice_keys == ("user", "products")


@pytest.mark.unit
@pytest.mark.registry
def test_conflicts_are_logged_at_warning_level(user_registries, caplog):
    """Disabling top-level actions is reported once when combining."""
    with caplog.at_level(logging.WARNING, logger="reslice.registry"):
        TopLevelRegistry(user_registries)

    assert any("set_data" in record.getMessage() for record in caplog.records)


@pytest.mark.unit
@pytest.mark.registry
def test_user_mutators_get_untargeted_top_level_creators(user_registries):
    """User mutators are broadcast, even when several slices define them."""
    top = TopLevelRegistry(user_registries)

    assert top.creators["clear_user"]() == Action("clear_user")
    assert top.creators["record_visit"]("monday") == Action("record_visit", "monday")
    assert "clear_user" not in top.conflicts


@pytest.mark.unit
@pytest.mark.registry
def test_effects_are_hoisted(user_registries):
    """Classmethods and staticmethods of the slices become top-level effects."""
    top = TopLevelRegistry(user_registries)

    assert set(top.effects) == {"fetch_friends"}
    assert "fetch_friends" not in top.creators
