from rest_framework import serializers

from .. import pricing
from ..models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    """Read representation including the derived status"""

    status = serializers.CharField(read_only=True)
    vendor_name = serializers.CharField(source='vendor.display_name', read_only=True)
    product_ids = serializers.PrimaryKeyRelatedField(source='products', many=True, read_only=True)
    category_ids = serializers.PrimaryKeyRelatedField(source='categories', many=True, read_only=True)

    class Meta:
        model = Coupon
        fields = [
            'id', 'vendor', 'vendor_name', 'code', 'name', 'description',
            'discount_type', 'discount_value', 'scope', 'product_ids', 'category_ids',
            'min_order_amount', 'max_discount_amount', 'usage_limit', 'usage_count',
            'usage_limit_per_customer', 'starts_at', 'ends_at', 'is_disabled', 'status',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CouponWriteSerializer(serializers.Serializer):
    """Shape check only; business rules live in PromotionService"""

    code = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    discount_type = serializers.ChoiceField(choices=[pricing.DISCOUNT_PERCENTAGE, pricing.DISCOUNT_FIXED])
    discount_value = serializers.DecimalField(max_digits=10, decimal_places=2)
    scope = serializers.ChoiceField(choices=Coupon.SCOPE_CHOICES, default=Coupon.SCOPE_STORE_WIDE)
    product_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    category_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    min_order_amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    max_discount_amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    usage_limit = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    usage_limit_per_customer = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    is_disabled = serializers.BooleanField(required=False, default=False)


class CouponValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    vendor_id = serializers.IntegerField()
    order_total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    product_ids = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    category_ids = serializers.ListField(child=serializers.CharField(), required=False, default=list)
