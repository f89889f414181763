from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'line', 'stock', 'price', 'price_usd', 'updated_at']
    list_filter = ['line']
    search_fields = ['code', 'name', 'details']
    readonly_fields = ['id', 'created_at', 'updated_at']
