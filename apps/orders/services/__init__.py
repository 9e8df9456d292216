"""
Order services module.
"""
from .order_service import OrderService, StatusChangeResult

__all__ = [
    'OrderService',
    'StatusChangeResult',
]
