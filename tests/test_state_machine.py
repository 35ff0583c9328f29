"""
Order status transitions.
"""

import pytest

from app.api.v1.orders.state_machine import OrderStateMachine
from app.core.exceptions import InvalidStatusTransitionException, OrderNotCancellableException
from app.models import OrderStatus

@pytest.fixture
def machine():
    return OrderStateMachine()

class TestForwardTransitions:
    @pytest.mark.parametrize("current,new", [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED),
        (OrderStatus.PENDING, OrderStatus.SHIPPING),
        (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
        (OrderStatus.PROCESSING, OrderStatus.DELIVERED),
        (OrderStatus.SHIPPING, OrderStatus.DELIVERED),
    ])
    def test_allowed(self, machine, current, new):
        assert machine.validate_transition(current, new) is True

    @pytest.mark.parametrize("current,new", [
        (OrderStatus.SHIPPING, OrderStatus.CONFIRMED),
        (OrderStatus.PROCESSING, OrderStatus.PENDING),
    ])
    def test_backward_rejected(self, machine, current, new):
        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            machine.validate_transition(current, new)
        assert exc_info.value.detail == f"Cannot change status from {current.value} to {new.value}"

class TestTerminalStates:
    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    @pytest.mark.parametrize("new", list(OrderStatus))
    def test_nothing_leaves_a_terminal_state(self, machine, terminal, new):
        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            machine.validate_transition(terminal, new)
        assert exc_info.value.detail == f"Cannot change status from {terminal.value}"

    def test_terminal_flags(self, machine):
        assert machine.is_terminal_state(OrderStatus.DELIVERED)
        assert machine.is_terminal_state(OrderStatus.CANCELLED)
        assert not machine.is_terminal_state(OrderStatus.SHIPPING)

class TestCancellation:
    @pytest.mark.parametrize("current", [OrderStatus.PENDING, OrderStatus.CONFIRMED])
    def test_cancel_early(self, machine, current):
        assert machine.validate_transition(current, OrderStatus.CANCELLED) is True

    @pytest.mark.parametrize("current", [OrderStatus.PROCESSING, OrderStatus.SHIPPING])
    def test_cancel_after_processing(self, machine, current):
        with pytest.raises(OrderNotCancellableException):
            machine.validate_transition(current, OrderStatus.CANCELLED)

def test_same_status_is_noop(machine):
    assert machine.validate_transition(OrderStatus.CONFIRMED, OrderStatus.CONFIRMED) is False

def test_valid_transitions_listed_in_order(machine):
    assert machine.get_valid_transitions(OrderStatus.CONFIRMED) == [
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPING,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    ]
