"""Unit tests for the order status transition table."""

from itertools import product as pairs

import pytest

from modules.orders.constants import (
    DELETE_BLOCKED_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    allowed_transitions,
    can_transition,
)

pytestmark = pytest.mark.unit

LEGAL = {
    ("pending", "processing"),
    ("pending", "cancelled"),
    ("processing", "shipped"),
    ("processing", "cancelled"),
    ("shipped", "delivered"),
}


@pytest.mark.parametrize(("source", "target"), list(pairs(OrderStatus.values, repeat=2)))
def test_table_matches_lifecycle(source, target):
    assert can_transition(source, target) is ((source, target) in LEGAL)


def test_every_status_has_an_entry():
    assert set(VALID_TRANSITIONS) == set(OrderStatus.values)


def test_terminal_states_have_no_exit():
    assert TERMINAL_STATES == {"delivered", "cancelled"}
    for status in TERMINAL_STATES:
        assert allowed_transitions(status) == []


def test_allowed_transitions_in_lifecycle_order():
    assert allowed_transitions("pending") == ["processing", "cancelled"]
    assert allowed_transitions("processing") == ["shipped", "cancelled"]


def test_unknown_statuses_never_transition():
    assert can_transition("archived", "pending") is False
    assert can_transition("pending", "archived") is False
    assert allowed_transitions("archived") == []


def test_delete_guard_is_independent_of_table():
    assert DELETE_BLOCKED_STATES == {"shipped", "delivered"}
