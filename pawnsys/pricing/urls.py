from django.urls import path
from .views import (
    gold_price_current, gold_price_purities, gold_price_dashboard, gold_price_calculate,
    gold_price_history, gold_price_refresh, gold_price_manual, gold_price_source,
    purity_list_create, purity_detail,
    margin_preset_list_create, margin_preset_detail, margin_preset_set_default,
)

urlpatterns = [
    path('gold-price/current/', gold_price_current, name='gold-price-current'),
    path('gold-price/purities/', gold_price_purities, name='gold-price-purities'),
    path('gold-price/dashboard/', gold_price_dashboard, name='gold-price-dashboard'),
    path('gold-price/calculate/', gold_price_calculate, name='gold-price-calculate'),
    path('gold-price/history/', gold_price_history, name='gold-price-history'),
    path('gold-price/refresh/', gold_price_refresh, name='gold-price-refresh'),
    path('gold-price/manual/', gold_price_manual, name='gold-price-manual'),
    path('gold-price/source/', gold_price_source, name='gold-price-source'),

    path('purities/', purity_list_create, name='purity-list-create'),
    path('purities/<int:pk>/', purity_detail, name='purity-detail'),

    path('margin-presets/', margin_preset_list_create, name='margin-preset-list-create'),
    path('margin-presets/<int:pk>/', margin_preset_detail, name='margin-preset-detail'),
    path('margin-presets/<int:pk>/set-default/', margin_preset_set_default, name='margin-preset-set-default'),
]
