"""
User models module.

All models are exported from this module.
"""
from .user import User

__all__ = [
    'User',
]
