from django.urls import path
from . import views

urlpatterns = [
    path('hardware/', views.device_list_create, name='device-list-create'),
    path('hardware/defaults/', views.device_defaults, name='device-defaults'),
    path('hardware/options/', views.device_options, name='device-options'),
    path('hardware/<int:pk>/', views.device_detail, name='device-detail'),
    path('hardware/<int:pk>/toggle-active/', views.device_toggle_active, name='device-toggle-active'),
    path('hardware/<int:pk>/set-default/', views.device_set_default, name='device-set-default'),
    path('hardware/<int:pk>/status/', views.device_update_status, name='device-update-status'),
    path('hardware/<int:pk>/test/', views.device_test_connection, name='device-test-connection'),
]
