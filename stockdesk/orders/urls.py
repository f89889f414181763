from django.urls import path
from . import views

urlpatterns = [
    # Cart endpoints
    path('cart/', views.cart_detail, name='cart-detail'),
    path('cart/items/', views.cart_add_item, name='cart-add-item'),
    path('cart/items/<str:product_id>/quantity/', views.cart_item_quantity, name='cart-item-quantity'),
    path('cart/items/<str:product_id>/', views.cart_item_remove, name='cart-item-remove'),
    path('cart/clear/', views.cart_clear, name='cart-clear'),
    path('cart/checkout/', views.cart_checkout, name='cart-checkout'),

    # Order product picker
    path('orders/product-search/', views.order_product_search, name='order-product-search'),
]
