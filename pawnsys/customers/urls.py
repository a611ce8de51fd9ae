from django.urls import path
from .views import (
    customer_list_create, customer_detail, customer_search_by_ic, parse_ic,
    customer_pledges, customer_active_pledges, customer_statistics, customer_blacklist,
)

urlpatterns = [
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/search-ic/', customer_search_by_ic, name='customer-search-ic'),
    path('customers/parse-ic/', parse_ic, name='customer-parse-ic'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:pk>/pledges/', customer_pledges, name='customer-pledges'),
    path('customers/<int:pk>/active-pledges/', customer_active_pledges, name='customer-active-pledges'),
    path('customers/<int:pk>/statistics/', customer_statistics, name='customer-statistics'),
    path('customers/<int:pk>/blacklist/', customer_blacklist, name='customer-blacklist'),
]
