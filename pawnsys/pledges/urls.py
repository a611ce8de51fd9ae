from django.urls import path
from . import views

urlpatterns = [
    path('categories/', views.category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', views.category_detail, name='category-detail'),
    path('pledges/', views.pledge_list_create, name='pledge-list-create'),
    path('pledges/lookup/', views.pledge_lookup, name='pledge-lookup'),
    path('pledges/calculate/', views.pledge_calculate, name='pledge-calculate'),
    path('pledges/items/lookup/', views.item_lookup, name='pledge-item-lookup'),
    path('pledges/items/<int:pk>/label/', views.item_label, name='pledge-item-label'),
    path('pledges/<int:pk>/', views.pledge_detail, name='pledge-detail'),
    path('pledges/<int:pk>/interest/', views.pledge_interest, name='pledge-interest'),
    path('pledges/<int:pk>/assign-storage/', views.pledge_assign_storage, name='pledge-assign-storage'),
    path('pledges/<int:pk>/cancel/', views.pledge_cancel, name='pledge-cancel'),
    path('pledges/<int:pk>/labels/', views.pledge_labels, name='pledge-labels'),
]
