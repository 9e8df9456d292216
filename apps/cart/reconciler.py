"""
Client-side cart cache kept consistent with the catalog and the cart service.

Mutations are optimistic: the local lines change first, the remote command is
sent, and the pre-mutation snapshot is restored if the service rejects the
command or cannot be reached.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from django.conf import settings

from apps.products.services import CatalogService, ProductSnapshot
from apps.promotions.pricing import ZERO
from .client import CartIdentity, CartServiceClient, CartServiceError, CartServiceTimeout
from .lines import CartLine, variation_signature

logger = logging.getLogger(__name__)

ISSUE_OUT_OF_STOCK = 'out_of_stock'
ISSUE_INSUFFICIENT_STOCK = 'insufficient_stock'
ISSUE_PRICE_CHANGED = 'price_changed'
ISSUE_PRODUCT_UNAVAILABLE = 'product_unavailable'


@dataclass
class CartIssue:
    product_id: str
    name: str
    type: str
    message: str
    old_value: Optional[Decimal] = None
    new_value: Optional[Decimal] = None


@dataclass
class CartValidationResult:
    is_valid: bool
    issues: List[CartIssue] = field(default_factory=list)


@dataclass
class ReconcileSummary:
    removed: List[str] = field(default_factory=list)
    repriced: List[str] = field(default_factory=list)
    clamped: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.repriced or self.clamped)


class CartReconciler:
    """Local cart lines for one identity"""

    def __init__(self, client: CartServiceClient = None, catalog=CatalogService, untracked_max_quantity: int = None):
        self.client = client or CartServiceClient()
        self.catalog = catalog
        self.untracked_max_quantity = untracked_max_quantity or settings.CART_UNTRACKED_MAX_QUANTITY
        self.lines: List[CartLine] = []
        self.is_synced = False
        self.needs_sync = False

    @property
    def identity(self) -> CartIdentity:
        return self.client.identity

    def max_quantity_for(self, snapshot: ProductSnapshot) -> int:
        if snapshot.track_quantity:
            return max(snapshot.quantity, 0)
        return self.untracked_max_quantity

    def _find(self, product_id, variations) -> int:
        key = (str(product_id), variation_signature(variations))
        for index, line in enumerate(self.lines):
            if line.key == key:
                return index
        return -1

    def _mutate(self, action: str, apply: Callable[[], None], payload: Dict) -> Tuple[bool, str]:
        """Apply locally, send the command, restore the snapshot on failure"""
        snapshot = list(self.lines)
        apply()
        try:
            self.client.send(action, **payload)
        except CartServiceTimeout as e:
            self.lines = snapshot
            self.needs_sync = True
            logger.warning(f"Cart {action} timed out, rolled back and marked for resync: {e}")
            return False, str(e)
        except CartServiceError as e:
            self.lines = snapshot
            logger.warning(f"Cart {action} failed, rolled back: {e}")
            return False, str(e)
        return True, ""

    def add_item(self, line: CartLine) -> Tuple[bool, str]:
        """Add line.quantity units, merging into an existing line with the same variations"""
        if line.quantity < 1:
            return False, "Quantity must be at least 1"
        if line.max_quantity < 1:
            return False, f"{line.name} is out of stock"

        def apply():
            index = self._find(line.product_id, line.variations)
            if index > -1:
                existing = self.lines[index]
                self.lines[index] = existing.with_quantity(existing.quantity + line.quantity)
            else:
                self.lines.append(line.with_quantity(line.quantity))

        return self._mutate('add', apply, {'item': line.to_payload()})

    def remove_item(self, product_id, variations: Dict = None) -> Tuple[bool, str]:
        """Remove one variation line, or every line of the product when variations is None"""
        product_id = str(product_id)

        def apply():
            if variations is None:
                self.lines = [line for line in self.lines if line.product_id != product_id]
            else:
                signature = variation_signature(variations)
                self.lines = [line for line in self.lines if line.key != (product_id, signature)]

        payload = {'itemId': product_id}
        if variations is not None:
            payload['variations'] = dict(variations)
        return self._mutate('remove', apply, payload)

    def update_quantity(self, product_id, quantity: int, variations: Dict = None) -> Tuple[bool, str]:
        if quantity < 1:
            return self.remove_item(product_id, variations)

        product_id = str(product_id)
        signature = variation_signature(variations) if variations is not None else None

        def apply():
            self.lines = [
                line.with_quantity(quantity)
                if line.product_id == product_id and (signature is None or line.key[1] == signature)
                else line
                for line in self.lines
            ]

        payload = {'itemId': product_id, 'quantity': quantity}
        if variations is not None:
            payload['variations'] = dict(variations)
        return self._mutate('update_quantity', apply, payload)

    def clear_cart(self) -> Tuple[bool, str]:
        def apply():
            self.lines = []

        return self._mutate('clear', apply, {})

    def sync_with_server(self) -> Tuple[bool, str]:
        """Replace the local lines with the remote cart"""
        try:
            items = self.client.fetch_cart()
            lines = [CartLine.from_payload(item) for item in items]
        except CartServiceError as e:
            logger.warning(f"Cart sync failed, keeping local lines: {e}")
            return False, str(e)
        except (KeyError, ValueError, TypeError, AttributeError, ArithmeticError) as e:
            logger.warning(f"Cart sync returned malformed items: {e}")
            return False, "Invalid cart data from cart service"

        self.lines = lines
        self.is_synced = True
        self.needs_sync = False
        return True, ""

    def set_identity(self, identity: CartIdentity) -> Tuple[bool, str]:
        """Switch owner; the previous owner's lines are never shown to the new one"""
        if identity == self.client.identity:
            return True, ""

        self.lines = []
        self.is_synced = False
        self.client.identity = identity
        logger.info(f"Cart identity changed (guest={identity.is_guest}), resyncing")
        return self.sync_with_server()

    def _snapshots(self, snapshots: Optional[Dict[str, ProductSnapshot]]) -> Dict[str, ProductSnapshot]:
        if snapshots is not None:
            return snapshots
        return self.catalog.get_snapshots({line.product_id for line in self.lines})

    def sync_cart_with_products(self, snapshots: Dict[str, ProductSnapshot] = None) -> ReconcileSummary:
        """
        Bring lines in line with the catalog: drop missing or inactive
        products, take the catalog price, and clamp to available stock.
        Running it twice changes nothing the second time.
        """
        snapshots = self._snapshots(snapshots)
        summary = ReconcileSummary()
        reconciled = []

        for line in self.lines:
            snapshot = snapshots.get(line.product_id)
            if snapshot is None or not snapshot.is_active:
                summary.removed.append(line.product_id)
                continue

            updated = line
            if snapshot.price != line.price:
                updated = replace(updated, price=snapshot.price)
                summary.repriced.append(line.product_id)

            max_quantity = self.max_quantity_for(snapshot)
            if max_quantity != updated.max_quantity or updated.quantity > max_quantity:
                updated = replace(updated, max_quantity=max_quantity, quantity=min(updated.quantity, max_quantity))
                if updated.quantity != line.quantity:
                    summary.clamped.append(line.product_id)

            reconciled.append(updated)

        self.lines = reconciled
        if summary.changed:
            logger.info(
                f"Cart reconciled: removed {summary.removed}, repriced {summary.repriced}, clamped {summary.clamped}"
            )
        return summary

    def validate_cart_items(self, snapshots: Dict[str, ProductSnapshot] = None) -> CartValidationResult:
        """Report problems with the lines against the catalog without changing them"""
        snapshots = self._snapshots(snapshots)
        currency = settings.CURRENCY_CODE
        issues = []

        for line in self.lines:
            snapshot = snapshots.get(line.product_id)
            if snapshot is None:
                issues.append(CartIssue(
                    line.product_id, line.name, ISSUE_PRODUCT_UNAVAILABLE,
                    f'"{line.name}" is no longer available',
                ))
                continue
            if not snapshot.is_active:
                issues.append(CartIssue(
                    line.product_id, line.name, ISSUE_PRODUCT_UNAVAILABLE,
                    f'"{line.name}" is currently unavailable',
                ))
                continue

            if snapshot.track_quantity:
                if snapshot.quantity <= 0:
                    issues.append(CartIssue(
                        line.product_id, line.name, ISSUE_OUT_OF_STOCK, f'"{line.name}" is out of stock',
                    ))
                elif snapshot.quantity < line.quantity:
                    issues.append(CartIssue(
                        line.product_id, line.name, ISSUE_INSUFFICIENT_STOCK,
                        f'Only {snapshot.quantity} units of "{line.name}" available',
                        old_value=Decimal(line.quantity), new_value=Decimal(snapshot.quantity),
                    ))

            if snapshot.price != line.price:
                issues.append(CartIssue(
                    line.product_id, line.name, ISSUE_PRICE_CHANGED,
                    f'Price of "{line.name}" has changed from {currency} {line.price} to {currency} {snapshot.price}',
                    old_value=line.price, new_value=snapshot.price,
                ))

        return CartValidationResult(is_valid=not issues, issues=issues)

    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    def total_price(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)

    def items_by_vendor(self) -> Dict[str, List[CartLine]]:
        groups = OrderedDict()
        for line in self.lines:
            groups.setdefault(line.vendor_id, []).append(line)
        return groups
