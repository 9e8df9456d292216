"""
Coupon management and checkout validation views.
"""
import logging

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from apps.common.utils import success_response, error_response
from ..serializers import CouponSerializer, CouponWriteSerializer, CouponValidateSerializer
from ..services import PromotionService, DiscountService

logger = logging.getLogger(__name__)


class CouponListCreateView(APIView):
    """List the caller's coupons or create a new one"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        coupons = PromotionService.get_coupons_by_vendor(request.user)
        return success_response(CouponSerializer(coupons, many=True).data, 'Coupons retrieved successfully')

    def post(self, request):
        serializer = CouponWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid coupon data", serializer.errors)

        coupon, error_msg = PromotionService.create_coupon(request.user, serializer.validated_data)
        if not coupon:
            return error_response(error_msg)

        return success_response(
            CouponSerializer(coupon).data, 'Coupon created successfully', status.HTTP_201_CREATED
        )


class CouponDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, coupon_id):
        serializer = CouponWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return error_response("Invalid coupon data", serializer.errors)

        coupon, error_msg = PromotionService.update_coupon(coupon_id, request.user, serializer.validated_data)
        if not coupon:
            return error_response(error_msg)
        return success_response(CouponSerializer(coupon).data, 'Coupon updated successfully')

    def delete(self, request, coupon_id):
        deleted, error_msg = PromotionService.delete_coupon(coupon_id, request.user)
        if not deleted:
            return error_response(error_msg)
        return success_response(None, 'Coupon deleted successfully')


class ValidateCouponView(APIView):
    """Preview a coupon against a cart without redeeming it"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CouponValidateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid request", serializer.errors)

        data = serializer.validated_data
        result = DiscountService.validate_coupon(
            code=data['code'],
            vendor_id=data['vendor_id'],
            customer_id=request.user.id,
            order_total=data['order_total'],
            product_ids=data['product_ids'],
            category_ids=data['category_ids'],
        )
        if not result.valid:
            logger.info(f"Coupon {data['code']} rejected for user {request.user.id}: {result.reason}")
            return error_response(result.error, {'reason': result.reason})

        return success_response({
            'valid': True,
            'code': result.coupon.code,
            'discount': str(result.discount),
        }, 'Coupon is valid')
