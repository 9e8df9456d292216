from django.contrib import admin

from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'parent', 'created_at']
    search_fields = ['name']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'vendor', 'category', 'price', 'status', 'track_quantity', 'inventory', 'sold']
    list_filter = ['status', 'track_quantity', 'category']
    search_fields = ['name', 'vendor__username', 'vendor__business_name']
    readonly_fields = ['sold', 'create_time', 'update_time']
    list_editable = ['status']
