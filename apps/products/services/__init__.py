"""
Product services module.

All services are exported from this module.
"""
from .catalog_service import CatalogService, ProductSnapshot

__all__ = [
    'CatalogService',
    'ProductSnapshot',
]
