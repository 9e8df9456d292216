"""
Cart reconciler tests with a mocked cart service and catalog snapshots
"""
from decimal import Decimal
from unittest import mock

import pytest
from hypothesis import given, settings, strategies as st

from apps.cart.client import CartIdentity, CartServiceError, CartServiceTimeout
from apps.cart.lines import CartLine
from apps.cart.reconciler import (
    CartReconciler, ISSUE_INSUFFICIENT_STOCK, ISSUE_OUT_OF_STOCK, ISSUE_PRICE_CHANGED, ISSUE_PRODUCT_UNAVAILABLE,
)
from apps.products.services import ProductSnapshot


def make_line(product_id='1', quantity=1, price='10.00', max_quantity=10, vendor_id='7', variations=None):
    return CartLine(
        product_id=product_id,
        name=f"Product {product_id}",
        price=Decimal(price),
        vendor_id=vendor_id,
        vendor_name=f"Store {vendor_id}",
        quantity=quantity,
        max_quantity=max_quantity,
        variations=variations or {},
    )


def make_snapshot(product_id='1', price='10.00', quantity=10, is_active=True, track_quantity=True):
    return ProductSnapshot(
        product_id=product_id,
        name=f"Product {product_id}",
        list_price=Decimal(price),
        price=Decimal(price),
        sale_discount=Decimal('0.00'),
        is_active=is_active,
        track_quantity=track_quantity,
        quantity=quantity,
        vendor_id='7',
        vendor_name='Store 7',
    )


@pytest.fixture
def client():
    client = mock.Mock()
    client.identity = CartIdentity(guest_session_id='guest-1')
    client.send.return_value = {'success': True}
    return client


@pytest.fixture
def cart(client):
    return CartReconciler(client=client, untracked_max_quantity=999)


class TestMutations:

    def test_add_merges_same_variation(self, cart, client):
        cart.add_item(make_line(quantity=2, variations={'size': 'M'}))
        cart.add_item(make_line(quantity=3, variations={'size': 'M'}))
        cart.add_item(make_line(quantity=1, variations={'size': 'L'}))

        assert [line.quantity for line in cart.lines] == [5, 1]
        assert client.send.call_count == 3
        action, = client.send.call_args.args
        assert action == 'add'
        assert client.send.call_args.kwargs['item']['maxQuantity'] == 10

    def test_add_clamps_to_max_quantity(self, cart):
        cart.add_item(make_line(quantity=8, max_quantity=10))
        cart.add_item(make_line(quantity=8, max_quantity=10))

        assert cart.lines[0].quantity == 10

    def test_add_rejects_out_of_stock_and_zero_quantity(self, cart, client):
        assert cart.add_item(make_line(max_quantity=0)) == (False, "Product 1 is out of stock")
        assert cart.add_item(make_line(quantity=0)) == (False, "Quantity must be at least 1")
        assert cart.lines == []
        client.send.assert_not_called()

    def test_update_quantity_below_one_removes(self, cart, client):
        cart.add_item(make_line(quantity=2))

        ok, _ = cart.update_quantity('1', 0)

        assert ok
        assert cart.lines == []
        assert client.send.call_args.args == ('remove',)

    def test_remove_without_variations_drops_every_line_of_product(self, cart):
        cart.add_item(make_line(variations={'size': 'M'}))
        cart.add_item(make_line(variations={'size': 'L'}))
        cart.add_item(make_line(product_id='2'))

        cart.remove_item('1')

        assert [line.product_id for line in cart.lines] == ['2']

    def test_rejected_command_restores_lines(self, cart, client):
        cart.add_item(make_line(quantity=2))
        client.send.side_effect = CartServiceError("Cart service rejected update_quantity: HTTP 409")

        ok, error_msg = cart.update_quantity('1', 5)

        assert not ok
        assert error_msg == "Cart service rejected update_quantity: HTTP 409"
        assert cart.lines[0].quantity == 2
        assert not cart.needs_sync

    def test_timeout_restores_lines_and_flags_resync(self, cart, client):
        cart.add_item(make_line(quantity=2))
        client.send.side_effect = CartServiceTimeout("Cart service timed out after 5.0s on clear")

        ok, _ = cart.clear_cart()

        assert not ok
        assert len(cart.lines) == 1
        assert cart.needs_sync


class TestServerSync:

    def test_sync_replaces_lines(self, cart, client):
        client.fetch_cart.return_value = [make_line(product_id='3', quantity=4).to_payload()]

        ok, _ = cart.sync_with_server()

        assert ok
        assert cart.is_synced
        assert cart.lines == [make_line(product_id='3', quantity=4)]

    def test_failed_sync_keeps_local_lines(self, cart, client):
        cart.add_item(make_line())
        client.fetch_cart.side_effect = CartServiceError("Network error: refused")

        ok, error_msg = cart.sync_with_server()

        assert not ok
        assert error_msg == "Network error: refused"
        assert len(cart.lines) == 1

    def test_malformed_items_are_rejected(self, cart, client):
        client.fetch_cart.return_value = [{'name': 'no id'}]

        assert cart.sync_with_server() == (False, "Invalid cart data from cart service")

    def test_stored_line_without_max_quantity_is_kept(self, cart, client, settings):
        settings.CART_UNTRACKED_MAX_QUANTITY = 25
        client.fetch_cart.return_value = [{'id': '1', 'price': '5', 'quantity': 2}]

        cart.sync_with_server()
        cart.add_item(make_line(quantity=1, max_quantity=10))

        assert cart.lines[0].max_quantity == 25
        assert cart.lines[0].quantity == 3

    def test_stored_quantity_is_clamped_to_max(self):
        line = CartLine.from_payload({'id': '1', 'price': '5', 'quantity': 12, 'maxQuantity': 4})

        assert (line.quantity, line.max_quantity) == (4, 4)

    def test_unexpected_body_keeps_local_lines(self, cart, client):
        cart.add_item(make_line())
        client.fetch_cart.side_effect = CartServiceError("Invalid response from cart service for fetch")

        ok, error_msg = cart.sync_with_server()

        assert not ok
        assert error_msg == "Invalid response from cart service for fetch"
        assert len(cart.lines) == 1

    def test_identity_change_never_leaks_lines(self, cart, client):
        cart.add_item(make_line())
        client.fetch_cart.return_value = []
        user = CartIdentity(user_token='token-abc')

        cart.set_identity(user)

        assert cart.lines == []
        assert client.identity == user
        client.fetch_cart.assert_called_once()

    def test_same_identity_is_a_no_op(self, cart, client):
        cart.add_item(make_line())

        cart.set_identity(CartIdentity(guest_session_id='guest-1'))

        assert len(cart.lines) == 1
        client.fetch_cart.assert_not_called()


class TestCatalogReconcile:

    def test_reprices_clamps_and_removes(self, cart):
        cart.lines = [
            make_line(product_id='1', quantity=5, price='10.00'),
            make_line(product_id='2', quantity=5),
            make_line(product_id='3', quantity=1),
            make_line(product_id='4', quantity=1),
        ]
        snapshots = {
            '1': make_snapshot('1', price='8.00'),
            '2': make_snapshot('2', quantity=3),
            '3': make_snapshot('3', is_active=False),
        }

        summary = cart.sync_cart_with_products(snapshots)

        assert summary.removed == ['3', '4']
        assert summary.repriced == ['1']
        assert summary.clamped == ['2']
        assert [(line.product_id, line.price, line.quantity) for line in cart.lines] == [
            ('1', Decimal('8.00'), 5),
            ('2', Decimal('10.00'), 3),
        ]

    def test_untracked_products_use_configured_max(self, cart):
        cart.lines = [make_line(quantity=20, max_quantity=20)]

        cart.sync_cart_with_products({'1': make_snapshot(track_quantity=False, quantity=0)})

        assert cart.lines[0].max_quantity == 999
        assert cart.lines[0].quantity == 20

    @given(
        quantities=st.lists(st.integers(min_value=1, max_value=50), min_size=1, max_size=6),
        stock=st.lists(st.integers(min_value=0, max_value=50), min_size=6, max_size=6),
    )
    @settings(max_examples=100, deadline=None)
    def test_reconcile_is_idempotent_and_respects_stock(self, quantities, stock):
        cart = CartReconciler(client=mock.Mock(), untracked_max_quantity=999)
        cart.lines = [make_line(product_id=str(i), quantity=q, max_quantity=50) for i, q in enumerate(quantities)]
        snapshots = {str(i): make_snapshot(str(i), quantity=stock[i]) for i in range(len(quantities))}

        cart.sync_cart_with_products(snapshots)
        first = list(cart.lines)
        second = cart.sync_cart_with_products(snapshots)

        assert cart.lines == first
        assert not second.changed
        for line in cart.lines:
            assert line.quantity <= snapshots[line.product_id].quantity

    def test_validate_reports_without_changing(self, cart):
        cart.lines = [
            make_line(product_id='1', quantity=5),
            make_line(product_id='2', quantity=1),
            make_line(product_id='3', quantity=1, price='10.00'),
            make_line(product_id='4', quantity=1),
        ]
        before = list(cart.lines)
        snapshots = {
            '1': make_snapshot('1', quantity=2),
            '2': make_snapshot('2', quantity=0),
            '3': make_snapshot('3', price='12.50'),
        }

        result = cart.validate_cart_items(snapshots)

        assert not result.is_valid
        assert [(issue.product_id, issue.type) for issue in result.issues] == [
            ('1', ISSUE_INSUFFICIENT_STOCK),
            ('2', ISSUE_OUT_OF_STOCK),
            ('3', ISSUE_PRICE_CHANGED),
            ('4', ISSUE_PRODUCT_UNAVAILABLE),
        ]
        assert result.issues[2].message == 'Price of "Product 3" has changed from GHS 10.00 to GHS 12.50'
        assert cart.lines == before


class TestTotals:

    def test_totals_and_vendor_groups(self, cart):
        cart.lines = [
            make_line(product_id='1', quantity=2, price='10.50', vendor_id='7'),
            make_line(product_id='2', quantity=1, price='4.00', vendor_id='8'),
            make_line(product_id='3', quantity=3, price='1.00', vendor_id='7'),
        ]

        assert cart.total_items() == 6
        assert cart.total_price() == Decimal('28.00')
        groups = cart.items_by_vendor()
        assert list(groups) == ['7', '8']
        assert [line.product_id for line in groups['7']] == ['1', '3']
