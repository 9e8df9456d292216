"""
API endpoint tests: response envelope, permissions and routing
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.notifications.models import Notification
from apps.notifications.services import NotificationService
from apps.orders.models import Order
from tests.factories import CouponFactory, ProductFactory, SaleFactory, UserFactory, VendorFactory, create_order

SHIPPING_ADDRESS = {
    'fullName': 'Ama Mensah',
    'phone': '+233201111111',
    'address': '12 Oxford Street',
    'city': 'Accra',
    'region': 'Greater Accra',
}


@pytest.mark.django_db
class TestHealthAndAuth:

    def test_health_check_is_public(self, api_client):
        response = api_client.get('/api/health/')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    def test_anonymous_requests_use_error_envelope(self, api_client):
        response = api_client.get('/api/orders/mine')

        assert response.status_code == 401
        assert response.data['code'] == 401
        assert 'msg' in response.data


@pytest.mark.django_db
class TestPromotionEndpoints:

    def test_vendor_creates_and_lists_coupons(self, auth_client, vendor):
        client = auth_client(vendor)
        now = timezone.now()

        response = client.post('/api/promotions/coupons', {
            'code': 'akwaaba',
            'name': 'Welcome',
            'discount_type': 'fixed',
            'discount_value': '15.00',
            'starts_at': (now - timedelta(hours=1)).isoformat(),
            'ends_at': (now + timedelta(days=3)).isoformat(),
        }, format='json')

        assert response.status_code == 201
        assert response.data['data']['code'] == 'AKWAABA'
        assert response.data['data']['status'] == 'active'

        response = client.get('/api/promotions/coupons')
        assert [coupon['code'] for coupon in response.data['data']] == ['AKWAABA']

    def test_buyer_cannot_create_coupon(self, auth_client, buyer):
        now = timezone.now()
        response = auth_client(buyer).post('/api/promotions/coupons', {
            'code': 'NOPE',
            'name': 'Nope',
            'discount_type': 'fixed',
            'discount_value': '5.00',
            'starts_at': now.isoformat(),
            'ends_at': (now + timedelta(days=1)).isoformat(),
        }, format='json')

        assert response.status_code == 400
        assert response.data['msg'] == "Only vendors can create coupons"

    def test_validate_coupon_reports_reason(self, auth_client, buyer, vendor):
        CouponFactory(vendor=vendor, code='BIG', min_order_amount=Decimal('100'))
        client = auth_client(buyer)

        response = client.post('/api/promotions/coupons/validate', {
            'code': 'big', 'vendor_id': vendor.id, 'order_total': '40.00',
        }, format='json')
        assert response.status_code == 400
        assert response.data['errors'] == {'reason': 'min_order_not_met'}

        response = client.post('/api/promotions/coupons/validate', {
            'code': 'big', 'vendor_id': vendor.id, 'order_total': '400.00',
        }, format='json')
        assert response.status_code == 200
        assert response.data['data']['discount'] == '40.00'

    def test_sale_price_is_public(self, api_client, sample_product):
        SaleFactory(vendor=sample_product.vendor, products=[sample_product], discount_value=Decimal('25'))

        response = api_client.get(f'/api/promotions/sale-price/{sample_product.id}')

        assert response.status_code == 200
        assert response.data['data']['sale_price'] == '75.00'

    def test_unknown_product_sale_price(self, api_client):
        response = api_client.get('/api/promotions/sale-price/999999')

        assert response.status_code == 404
        assert response.data['msg'] == "Product not found"


@pytest.mark.django_db
class TestOrderEndpoints:

    def test_checkout(self, auth_client, buyer, sample_product):
        response = auth_client(buyer).post('/api/orders/', {
            'items': [{'product_id': str(sample_product.id), 'quantity': 2}],
            'shipping_fee': '10.00',
            'shipping_address': SHIPPING_ADDRESS,
        }, format='json')

        assert response.status_code == 201
        assert response.data['code'] == 201
        assert response.data['data']['total'] == '210.00'
        assert Order.objects.filter(buyer=buyer).count() == 1

    def test_checkout_requires_address(self, auth_client, buyer, sample_product):
        response = auth_client(buyer).post('/api/orders/', {
            'items': [{'product_id': str(sample_product.id), 'quantity': 1}],
        }, format='json')

        assert response.status_code == 400
        assert 'shipping_address' in response.data['errors']

    def test_status_change_and_conflict(self, auth_client, buyer, sample_product):
        order = create_order(buyer=buyer, products=[sample_product])
        client = auth_client(sample_product.vendor)

        response = client.post(f'/api/orders/{order.id}/status', {'status': 'confirmed'}, format='json')
        assert response.status_code == 200
        assert response.data['data']['order']['version'] == 1
        assert response.data['data']['notified'] == [buyer.id]

        response = client.post(f'/api/orders/{order.id}/status', {'status': 'delivered'}, format='json')
        assert response.status_code == 409
        assert response.data['msg'] == "Cannot change order from confirmed to delivered"

    def test_transitions_for_caller(self, auth_client, buyer, sample_product):
        order = create_order(buyer=buyer, products=[sample_product])

        response = auth_client(buyer).get(f'/api/orders/{order.id}/transitions')

        assert response.data['data']['transitions'] == ['cancelled']

    def test_other_buyer_cannot_view_order(self, auth_client, sample_product):
        order = create_order(products=[sample_product])

        response = auth_client(UserFactory()).get(f'/api/orders/{order.id}')

        assert response.status_code == 403

    def test_vendor_sees_orders_with_their_items(self, auth_client, vendor):
        mine = create_order(products=[ProductFactory(vendor=vendor)])
        create_order()

        response = auth_client(vendor).get('/api/orders/mine')

        assert [order['id'] for order in response.data['data']] == [str(mine.id)]

    def test_payment_status_is_admin_only(self, auth_client, buyer, admin_user):
        order = create_order(buyer=buyer)

        response = auth_client(buyer).post(f'/api/orders/{order.id}/payment', {'payment_status': 'paid'}, format='json')
        assert response.status_code == 403

        response = auth_client(admin_user).post(
            f'/api/orders/{order.id}/payment', {'payment_status': 'paid'}, format='json'
        )
        assert response.status_code == 200
        assert response.data['data']['payment_status'] == 'paid'


@pytest.mark.django_db
class TestNotificationEndpoints:

    def test_inbox_flow(self, auth_client, buyer):
        for index in range(3):
            NotificationService.notify_system(buyer, f'Note {index}', 'hello')
        client = auth_client(buyer)

        response = client.get('/api/notifications/')
        assert response.data['data']['page']['total'] == 3
        assert response.data['data']['list'][0]['title'] == 'Note 2'

        first_id = response.data['data']['list'][0]['id']
        assert client.post(f'/api/notifications/{first_id}/read').status_code == 200
        assert client.get('/api/notifications/unread-count').data['data'] == {'count': 2}

        assert client.delete(f'/api/notifications/{first_id}').status_code == 200
        assert client.delete('/api/notifications/').data['data'] == {'cleared': 2}
        assert not Notification.objects.filter(recipient=buyer).exists()

    def test_cannot_read_someone_elses_notification(self, auth_client, buyer):
        outcome = NotificationService.notify_system(buyer, 'Private', 'hello')

        response = auth_client(VendorFactory()).post(f'/api/notifications/{outcome.notification.id}/read')

        assert response.status_code == 404

    def test_preferences(self, auth_client, buyer):
        client = auth_client(buyer)

        assert client.get('/api/notifications/preferences').data['data']['sms'] is True

        response = client.put('/api/notifications/preferences', {'sms': False}, format='json')
        assert response.status_code == 200
        assert response.data['data']['sms'] is False
        assert response.data['data']['email'] is True
