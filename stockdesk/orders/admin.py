from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer_name', 'date', 'total_items', 'status']
    list_filter = ['status', 'date']
    search_fields = ['id', 'customer_name']
    readonly_fields = ['id', 'customer_name', 'date', 'items', 'total_items', 'status']
