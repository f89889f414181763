from django.urls import path
from . import views

urlpatterns = [
    # Product endpoints
    path('products/', views.product_list_create, name='product-list-create'),
    path('products/bulk-import/', views.product_bulk_import, name='product-bulk-import'),
    path('products/<str:pk>/', views.product_detail, name='product-detail'),
    path('lines/', views.line_list, name='line-list'),

    # Stock intake endpoints
    path('stock-entry/', views.stock_entry, name='stock-entry'),
    path('stock-entry/suggestions/', views.stock_entry_suggestions, name='stock-entry-suggestions'),
    path('stock-entry/lookup/', views.stock_entry_lookup, name='stock-entry-lookup'),
]
