"""
Order status and payment status transition tables.

Terminal states (cancelled, refunded) have no outgoing transitions for anyone.
"""
from typing import List

from apps.users.models import User
from .models import Order

STATUS_TRANSITIONS = {
    User.ROLE_BUYER: {
        Order.STATUS_PENDING: [Order.STATUS_CANCELLED],
    },
    User.ROLE_VENDOR: {
        Order.STATUS_PENDING: [Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED],
        Order.STATUS_CONFIRMED: [Order.STATUS_PROCESSING, Order.STATUS_CANCELLED],
        Order.STATUS_PROCESSING: [Order.STATUS_SHIPPED],
        Order.STATUS_SHIPPED: [Order.STATUS_DELIVERED],
    },
    User.ROLE_ADMIN: {
        Order.STATUS_PENDING: [Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED],
        Order.STATUS_CONFIRMED: [Order.STATUS_PROCESSING, Order.STATUS_CANCELLED],
        Order.STATUS_PROCESSING: [Order.STATUS_SHIPPED, Order.STATUS_CANCELLED],
        Order.STATUS_SHIPPED: [Order.STATUS_DELIVERED],
        Order.STATUS_DELIVERED: [Order.STATUS_REFUNDED],
    },
}

PAYMENT_TRANSITIONS = {
    Order.PAYMENT_PENDING: [Order.PAYMENT_PAID, Order.PAYMENT_FAILED],
    Order.PAYMENT_FAILED: [Order.PAYMENT_PAID, Order.PAYMENT_PENDING],
    Order.PAYMENT_PAID: [Order.PAYMENT_REFUNDED],
}


def get_available_transitions(status: str, role: str) -> List[str]:
    """Targets reachable from status for a role; empty for unknown input"""
    return list(STATUS_TRANSITIONS.get(role, {}).get(status, []))


def can_transition(status: str, new_status: str, role: str) -> bool:
    return new_status in get_available_transitions(status, role)


def can_change_payment(payment_status: str, new_payment_status: str) -> bool:
    return new_payment_status in PAYMENT_TRANSITIONS.get(payment_status, [])
