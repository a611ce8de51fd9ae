from django.urls import path
from . import views

urlpatterns = [
    path('inventory/', views.inventory_list, name='inventory-list'),
    path('inventory/summary/', views.inventory_summary, name='inventory-summary'),
    path('inventory/by-location/', views.items_by_location, name='inventory-by-location'),
    path('inventory/export/', views.inventory_export_csv, name='inventory-export'),
    path('inventory/<int:pk>/', views.inventory_item_detail, name='inventory-item-detail'),
    path('inventory/<int:pk>/location/', views.update_item_location, name='inventory-update-location'),
    path('inventory/<int:pk>/history/', views.item_location_history, name='inventory-location-history'),
]
