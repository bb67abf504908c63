"""
Shared pytest fixtures for reslice tests.

Wiring binds a store to a slice class for the life of the class, so every
fixture below defines its slice classes from scratch.
"""

import pytest

from reslice import Slice, derived


@pytest.fixture
def counter_slice():
    """A fresh slice with a number, an array and a boolean field."""

    class State(Slice):
        counter = 0
        data = []
        flag = False

        def increment_by_two(self):
            return self.set_counter(self.counter + 2)

        def set_flag(self):
            return self.update(flag=True)

    return State


@pytest.fixture
def items_slice():
    """A fresh slice with a single array field."""

    class Items(Slice):
        items = []

    return Items


@pytest.fixture
def user_and_products():
    """Two fresh slices that share the ``data`` field name."""

    class User(Slice):
        id = 0
        friends = []
        error = False
        data = []

        @classmethod
        def fetch_friends(cls):
            cls.actions.set_friends([1, 2, 3, 4, 5])

        def clear_friends(self):
            return self.set_friends([])

        def clear_user(self):
            return User()

        def record_visit(self, when):
            return self.add_to_data(when)

    class Products(Slice):
        products = []
        coupons = []
        data = []

        def clear_user(self):
            return Products()

    return User, Products


@pytest.fixture
def cart_slice():
    """A fresh slice with derived values and a call counter per evaluator."""
    calls = {"subtotal": 0, "label": 0}

    class Cart(Slice):
        prices = []
        discount = 0
        note = ""
        show_note = False

        @derived
        def subtotal(self):
            calls["subtotal"] += 1
            return sum(self.prices) - self.discount

        @derived
        def label(self):
            calls["label"] += 1
            if self.show_note:
                return self.note
            return f"{len(self.prices)} items"

    Cart.calls = calls
    return Cart
