"""
URL configuration for the stockdesk project.

Every screen of the stock manager is exposed under /api/v1/. Paths that do
not match any route are redirected to the inventory listing.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from stockdesk.core.views import unknown_route_redirect

admin.site.site_header = "Stockdesk Admin Panel"
admin.site.site_title = "Stockdesk Admin Portal"
admin.site.index_title = "Autopartes - Gestión de Stock"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('stockdesk.core.urls')),
    path('api/v1/', include('stockdesk.catalog.urls')),
    path('api/v1/', include('stockdesk.orders.urls')),
    path('api/v1/', include('stockdesk.pricing.urls')),
    path('api/v1/', include('stockdesk.exports.urls')),
    path('api/v1/', include('stockdesk.assistant.urls')),
    re_path(r'^(?!api/|admin/).*$', unknown_route_redirect, name='unknown-route'),
]
