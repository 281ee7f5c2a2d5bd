"""
Order State Machine for validating order status transitions.

This module implements a finite state machine to ensure valid order status transitions
and provide audit logging for all status changes. Stock side effects of a transition
are not decided here, see OrderLifecycleService.apply_transition.
"""

import logging
from typing import Dict, List, Set

from enums.order_status import OrderStatus

logger = logging.getLogger(__name__)


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus, description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.description = description

    def __repr__(self):
        return f"{self.from_status.value} -> {self.to_status.value}"


class OrderStateMachine:
    """
    Finite state machine for order status transitions.

    Valid status transitions:
    - PENDING -> PROCESSING (payment confirmed or order accepted)
    - PENDING -> CANCELLED
    - PROCESSING -> SHIPPED
    - PROCESSING -> CANCELLED
    - SHIPPED -> DELIVERED
    - SHIPPED -> CANCELLED

    DELIVERED and CANCELLED are final states.
    """

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        # From PENDING
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.PROCESSING,
            description="Order accepted for fulfilment"
        ),
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.CANCELLED,
            description="Pending order cancelled"
        ),

        # From PROCESSING
        OrderStatusTransition(
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            description="Order handed to the carrier"
        ),
        OrderStatusTransition(
            OrderStatus.PROCESSING,
            OrderStatus.CANCELLED,
            description="Order cancelled before shipment"
        ),

        # From SHIPPED
        OrderStatusTransition(
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            description="Order delivered to the customer"
        ),
        OrderStatusTransition(
            OrderStatus.SHIPPED,
            OrderStatus.CANCELLED,
            description="Shipped order cancelled (returned to sender)"
        ),
    ]

    FINAL_STATUSES: Set[OrderStatus] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

    _transition_map: Dict[OrderStatus, Set[OrderStatus]] = {}
    _transition_descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps for performance"""
        if cls._transition_map:
            return  # Already built

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
            cls._transition_descriptions[(transition.from_status, transition.to_status)] = transition.description

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Check if a status transition is valid according to the state machine.

        Staying in the same status is treated as a valid no-op.
        """
        cls._build_transition_map()

        if from_status == to_status:
            return True

        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def get_valid_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        cls._build_transition_map()
        return sorted(cls._transition_map.get(from_status, set()), key=lambda status: status.value)

    @classmethod
    def get_transition_description(cls, from_status: OrderStatus, to_status: OrderStatus) -> str:
        cls._build_transition_map()
        return cls._transition_descriptions.get(
            (from_status, to_status),
            f"Transition from {from_status.value} to {to_status.value}"
        )

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        return status in cls.FINAL_STATUSES

    @classmethod
    def validate_and_log_transition(cls, order_id: int, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Validate a status transition and write an audit log entry.

        Returns:
            True if transition is valid and logged, False otherwise
        """
        if not cls.is_valid_transition(from_status, to_status):
            logger.error(f"Invalid status transition for order {order_id}: "
                         f"{from_status.value} -> {to_status.value}")
            return False

        transition_desc = cls.get_transition_description(from_status, to_status)
        logger.info(f"ORDER_STATUS_TRANSITION: Order {order_id} "
                    f"{from_status.value} -> {to_status.value}: {transition_desc}")
        return True
