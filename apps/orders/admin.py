from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    """Inline admin for order items"""
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = [
        'product', 'product_name', 'vendor', 'vendor_name', 'quantity',
        'unit_price', 'list_price', 'sale_discount', 'variations', 'amount'
    ]
    fields = readonly_fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Orders are read-only here; status changes go through OrderService"""

    list_display = [
        'order_number', 'buyer', 'status', 'payment_status', 'total',
        'discount_amount', 'coupon_code', 'created_at'
    ]
    list_filter = ['status', 'payment_status', 'created_at']
    search_fields = ['id', 'buyer__username', 'buyer__phone', 'coupon_code', 'tracking_number']
    ordering = ['-created_at']
    readonly_fields = [
        'id', 'buyer', 'subtotal', 'discount_amount', 'coupon_code', 'shipping_fee', 'tax',
        'total', 'status', 'payment_status', 'version', 'created_at', 'updated_at'
    ]
    inlines = [OrderItemInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'buyer', 'status', 'payment_status', 'payment_method', 'version')
        }),
        ('Amounts', {
            'fields': ('subtotal', 'discount_amount', 'coupon_code', 'shipping_fee', 'tax', 'total')
        }),
        ('Delivery', {
            'fields': ('shipping_address', 'tracking_number', 'notes')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_delete_permission(self, request, obj=None):
        return False
