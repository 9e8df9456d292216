"""
Read-only catalog view consumed by the cart and checkout.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional

from ..models import Product


@dataclass(frozen=True)
class ProductSnapshot:
    """Authoritative state of one product at read time"""
    product_id: str
    name: str
    list_price: Decimal
    price: Decimal
    sale_discount: Decimal
    is_active: bool
    track_quantity: bool
    quantity: int
    vendor_id: str
    vendor_name: str
    category_id: Optional[str] = None
    image: str = ''


class CatalogService:
    """Service class for product lookups"""

    @staticmethod
    def get_products(product_ids: Iterable) -> Dict[str, Product]:
        ids = [int(pid) for pid in product_ids if str(pid).isdigit()]
        products = Product.objects.select_related('vendor').filter(id__in=ids)
        return {str(product.id): product for product in products}

    @staticmethod
    def get_snapshots(product_ids: Iterable, now=None) -> Dict[str, ProductSnapshot]:
        """
        Snapshots keyed by product id string. Unknown ids are absent from the
        result; the price is the effective sale price.
        """
        from apps.promotions.services import DiscountService

        products = CatalogService.get_products(product_ids)
        prices = DiscountService.compute_sale_prices(products.values(), now=now)

        return {
            key: ProductSnapshot(
                product_id=key,
                name=product.name,
                list_price=prices[key].list_price,
                price=prices[key].sale_price,
                sale_discount=prices[key].discount,
                is_active=product.is_active,
                track_quantity=product.track_quantity,
                quantity=product.inventory,
                vendor_id=str(product.vendor_id),
                vendor_name=product.vendor.display_name,
                category_id=str(product.category_id) if product.category_id else None,
                image=product.image,
            )
            for key, product in products.items()
        }
