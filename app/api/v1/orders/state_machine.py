"""
Order state machine for managing order status transitions
"""

from typing import Dict, List, Optional, Set
from app.models.order import OrderStatus
from app.core.exceptions import InvalidStatusTransitionException, OrderNotCancellableException

# Fulfilment progression; an order only ever moves forward along it
STATUS_SEQUENCE: List[OrderStatus] = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPING,
    OrderStatus.DELIVERED,
]

class OrderStateMachine:
    """
    Manages valid order status transitions
    """

    def __init__(self):
        self.transitions: Dict[OrderStatus, Set[OrderStatus]] = {}
        for index, status in enumerate(STATUS_SEQUENCE):
            self.transitions[status] = set(STATUS_SEQUENCE[index + 1:])

        self.transitions[OrderStatus.PENDING].add(OrderStatus.CANCELLED)
        self.transitions[OrderStatus.CONFIRMED].add(OrderStatus.CANCELLED)
        self.transitions[OrderStatus.CANCELLED] = set()

    def can_transition(
        self,
        current_status: OrderStatus,
        new_status: OrderStatus
    ) -> bool:
        """
        Check if transition is valid

        Args:
            current_status: Current order status
            new_status: Desired new status

        Returns:
            True if transition is allowed
        """
        return new_status in self.transitions.get(current_status, set())

    def validate_transition(
        self,
        current_status: Optional[OrderStatus],
        new_status: OrderStatus
    ) -> bool:
        """
        Raise unless the transition is allowed

        Returns:
            False when new_status equals a non-terminal current status
            (nothing to record), True for a real transition

        Raises:
            InvalidStatusTransitionException: Terminal source or backward move
            OrderNotCancellableException: Cancel past the confirmed stage
        """
        if current_status is None:
            return True

        if self.is_terminal_state(current_status):
            raise InvalidStatusTransitionException(
                f"Cannot change status from {current_status.value}"
            )

        if new_status == current_status:
            return False

        if new_status == OrderStatus.CANCELLED and not self.is_cancellable(current_status):
            raise OrderNotCancellableException()

        if not self.can_transition(current_status, new_status):
            raise InvalidStatusTransitionException(
                f"Cannot change status from {current_status.value} to {new_status.value}"
            )

        return True

    def get_valid_transitions(
        self,
        current_status: OrderStatus
    ) -> List[OrderStatus]:
        """
        Get list of valid transitions from current status, in progression order
        """
        allowed = self.transitions.get(current_status, set())
        return [status for status in list(OrderStatus) if status in allowed]

    def is_terminal_state(self, status: OrderStatus) -> bool:
        """
        Check if status is a terminal state

        Args:
            status: Order status

        Returns:
            True if no more transitions possible
        """
        return len(self.transitions.get(status, set())) == 0

    def is_cancellable(self, status: OrderStatus) -> bool:
        """
        Check if order can be cancelled in current status

        Args:
            status: Current order status

        Returns:
            True if order can be cancelled
        """
        return OrderStatus.CANCELLED in self.transitions.get(status, set())
