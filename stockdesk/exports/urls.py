from django.urls import path
from . import views

urlpatterns = [
    path('export-lists/preview/', views.export_list_preview, name='export-list-preview'),
    path('export-lists/pdf/', views.export_list_pdf, name='export-list-pdf'),
    path('export-lists/products/<str:pk>/', views.export_product_update, name='export-product-update'),
    path('export-lists/translate/', views.export_translate, name='export-translate'),
]
