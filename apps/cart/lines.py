"""
Cart line value type and its wire format.
"""
import json
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings

from apps.promotions.pricing import to_money


def variation_signature(variations: Optional[Dict]) -> str:
    """Stable key for a variation dict; key order does not matter"""
    return json.dumps(variations or {}, sort_keys=True)


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    price: Decimal
    vendor_id: str
    vendor_name: str
    quantity: int
    max_quantity: int
    variations: Dict[str, str] = field(default_factory=dict)
    image: str = ''

    @property
    def key(self):
        return (self.product_id, variation_signature(self.variations))

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price * self.quantity)

    def with_quantity(self, quantity: int) -> 'CartLine':
        """Copy with quantity clamped to max_quantity"""
        return replace(self, quantity=min(quantity, self.max_quantity))

    def to_payload(self) -> Dict:
        return {
            'id': self.product_id,
            'name': self.name,
            'price': str(self.price),
            'image': self.image,
            'vendor': self.vendor_name,
            'vendorId': self.vendor_id,
            'quantity': self.quantity,
            'variations': dict(self.variations),
            'maxQuantity': self.max_quantity,
        }

    @classmethod
    def from_payload(cls, data: Dict) -> 'CartLine':
        """Build a line from the wire; a stored line without maxQuantity is treated as untracked"""
        max_quantity = data.get('maxQuantity')
        if max_quantity is None:
            max_quantity = settings.CART_UNTRACKED_MAX_QUANTITY
        max_quantity = max(int(max_quantity), 0)
        return cls(
            product_id=str(data['id']),
            name=data.get('name', ''),
            price=to_money(data.get('price', 0)),
            vendor_id=str(data.get('vendorId', '')),
            vendor_name=data.get('vendor', ''),
            quantity=min(int(data.get('quantity', 1)), max_quantity),
            max_quantity=max_quantity,
            variations=dict(data.get('variations') or {}),
            image=data.get('image') or '',
        )
