"""
URL configuration for the PawnSys project.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "PawnSys Admin Panel"
admin.site.site_title = "PawnSys Admin Portal"
admin.site.index_title = "Pawnshop Management"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('pawnsys.core.urls')),
    path('api/v1/', include('pawnsys.customers.urls')),
    path('api/v1/', include('pawnsys.storage.urls')),
    path('api/v1/', include('pawnsys.pricing.urls')),
    path('api/v1/', include('pawnsys.pledges.urls')),
    path('api/v1/', include('pawnsys.transactions.urls')),
    path('api/v1/', include('pawnsys.reconciliation.urls')),
    path('api/v1/', include('pawnsys.inventory.urls')),
    path('api/v1/', include('pawnsys.reports.urls')),
    path('api/v1/', include('pawnsys.hardware.urls')),
]
