from rest_framework import serializers

from .. import pricing
from ..models import Sale


class SaleSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)
    product_ids = serializers.PrimaryKeyRelatedField(source='products', many=True, read_only=True)

    class Meta:
        model = Sale
        fields = [
            'id', 'vendor', 'name', 'description', 'discount_type', 'discount_value',
            'product_ids', 'starts_at', 'ends_at', 'is_disabled', 'status',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class SaleWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    discount_type = serializers.ChoiceField(choices=[pricing.DISCOUNT_PERCENTAGE, pricing.DISCOUNT_FIXED])
    discount_value = serializers.DecimalField(max_digits=10, decimal_places=2)
    product_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    is_disabled = serializers.BooleanField(required=False, default=False)
