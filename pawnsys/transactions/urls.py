from django.urls import path
from . import views

urlpatterns = [
    path('renewals/', views.renewal_list_create, name='renewal-list-create'),
    path('renewals/calculate/', views.renewal_calculate, name='renewal-calculate'),
    path('renewals/<int:pk>/', views.renewal_detail, name='renewal-detail'),
    path('redemptions/', views.redemption_list_create, name='redemption-list-create'),
    path('redemptions/calculate/', views.redemption_calculate, name='redemption-calculate'),
    path('redemptions/<int:pk>/', views.redemption_detail, name='redemption-detail'),
    path('reprints/', views.reprint_list_create, name='reprint-list-create'),
    path('reprints/quote/<int:pledge_id>/', views.reprint_quote, name='reprint-quote'),
]
