from django.urls import path

from . import views

urlpatterns = [
    path('auth/register/', views.register, name='register'),
    path('auth/login/', views.PawnsysTokenObtainPairView.as_view(), name='login'),
    path('auth/refresh/', views.PawnsysTokenRefreshView.as_view(), name='token-refresh'),
    path('auth/me/', views.user_me, name='user-me'),

    path('users/', views.user_list_create, name='user-list-create'),
    path('users/<int:pk>/', views.user_detail, name='user-detail'),

    path('settings/', views.setting_list_create, name='setting-list-create'),
    path('settings/<str:key>/', views.setting_by_key, name='setting-by-key'),

    path('audit-logs/', views.audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', views.audit_log_detail, name='audit-log-detail'),

    path('search/', views.global_search, name='global-search'),
]
