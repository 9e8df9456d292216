from django.contrib import admin

from .models import Coupon, CouponUsage, Sale


class CouponUsageInline(admin.TabularInline):
    model = CouponUsage
    extra = 0
    readonly_fields = ['customer', 'count', 'last_used_at']
    can_delete = False


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = [
        'code', 'vendor', 'discount_type', 'discount_value', 'scope',
        'usage_display', 'starts_at', 'ends_at', 'status_display'
    ]
    list_filter = ['discount_type', 'scope', 'is_disabled', 'starts_at']
    search_fields = ['code', 'name', 'vendor__username', 'vendor__business_name']
    filter_horizontal = ['products', 'categories']
    readonly_fields = ['usage_count', 'created_at', 'updated_at']
    inlines = [CouponUsageInline]

    def usage_display(self, obj):
        if obj.usage_limit is None:
            return f"{obj.usage_count}"
        return f"{obj.usage_count}/{obj.usage_limit}"
    usage_display.short_description = 'Usage'

    def status_display(self, obj):
        return obj.status
    status_display.short_description = 'Status'


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['name', 'vendor', 'discount_type', 'discount_value', 'starts_at', 'ends_at', 'status_display']
    list_filter = ['discount_type', 'is_disabled', 'starts_at']
    search_fields = ['name', 'vendor__username', 'vendor__business_name']
    filter_horizontal = ['products']
    readonly_fields = ['created_at', 'updated_at']

    def status_display(self, obj):
        return obj.status
    status_display.short_description = 'Status'
