from django.urls import path
from . import views

urlpatterns = [
    path('reports/dashboard/', views.dashboard_summary, name='report-dashboard'),
    path('reports/payment-split/', views.payment_split, name='report-payment-split'),
    path('reports/due-reminders/', views.due_reminders, name='report-due-reminders'),
    path('reports/overdue/', views.overdue_pledges, name='report-overdue'),
    path('reports/day-end/', views.day_end_summary, name='report-day-end'),
    path('reports/storage-capacity/', views.storage_capacity, name='report-storage-capacity'),
]
