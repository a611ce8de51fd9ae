from django.urls import path
from . import views

urlpatterns = [
    path('reconciliations/', views.reconciliation_list, name='reconciliation-list'),
    path('reconciliations/in-progress/', views.reconciliation_in_progress, name='reconciliation-in-progress'),
    path('reconciliations/start/', views.reconciliation_start, name='reconciliation-start'),
    path('reconciliations/force-cancel/', views.reconciliation_force_cancel, name='reconciliation-force-cancel'),
    path('reconciliations/expected-items/', views.reconciliation_expected_items, name='reconciliation-expected-items'),
    path('reconciliations/<int:pk>/', views.reconciliation_detail, name='reconciliation-detail'),
    path('reconciliations/<int:pk>/scan/', views.reconciliation_scan, name='reconciliation-scan'),
    path('reconciliations/<int:pk>/complete/', views.reconciliation_complete, name='reconciliation-complete'),
    path('reconciliations/<int:pk>/cancel/', views.reconciliation_cancel, name='reconciliation-cancel'),
    path('reconciliations/<int:pk>/report/', views.reconciliation_report, name='reconciliation-report'),
]
