from django.urls import path
from . import views

urlpatterns = [
    # Transient price lists
    path('price-lists/preview/', views.price_list_preview, name='price-list-preview'),
    path('price-lists/pdf/', views.price_list_pdf, name='price-list-pdf'),

    # Persistent bulk price update
    path('pricing/bulk-update/preview/', views.bulk_update_preview, name='pricing-bulk-update-preview'),
    path('pricing/bulk-update/commit/', views.bulk_update_commit, name='pricing-bulk-update-commit'),
]
