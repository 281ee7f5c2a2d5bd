"""
Tests for utils/order_state_machine.py
"""

import pytest

from enums.order_status import OrderStatus
from utils.order_state_machine import OrderStateMachine


@pytest.mark.parametrize("from_status,to_status", [
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
])
def test_allowed_transitions(from_status, to_status):
    assert OrderStateMachine.is_valid_transition(from_status, to_status)


@pytest.mark.parametrize("from_status,to_status", [
    (OrderStatus.PENDING, OrderStatus.DELIVERED),
    (OrderStatus.PROCESSING, OrderStatus.PENDING),
    (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
    (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
    (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
    (OrderStatus.CANCELLED, OrderStatus.PENDING),
])
def test_rejected_transitions(from_status, to_status):
    assert not OrderStateMachine.is_valid_transition(from_status, to_status)


def test_same_status_is_noop():
    for status in OrderStatus:
        assert OrderStateMachine.is_valid_transition(status, status)


def test_final_statuses():
    assert OrderStateMachine.is_final_status(OrderStatus.DELIVERED)
    assert OrderStateMachine.is_final_status(OrderStatus.CANCELLED)
    assert not OrderStateMachine.is_final_status(OrderStatus.SHIPPED)
    assert OrderStateMachine.get_valid_transitions(OrderStatus.CANCELLED) == []


def test_next_statuses_of_processing():
    assert OrderStateMachine.get_valid_transitions(OrderStatus.PROCESSING) == [
        OrderStatus.CANCELLED, OrderStatus.SHIPPED
    ]


def test_invalid_transition_is_logged(caplog):
    assert OrderStateMachine.validate_and_log_transition(7, OrderStatus.DELIVERED, OrderStatus.PENDING) is False
    assert "Invalid status transition for order 7" in caplog.text
