"""
Tests for pricing: gold price feed, fallbacks, manual prices and margin presets
"""
from datetime import date
from decimal import Decimal
from unittest import mock

import requests
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.core.utils import set_setting
from pawnsys.pricing.gold_price import GoldPriceService, derive_purity_prices
from pawnsys.pricing.models import GoldPrice, GoldPriceLog, MarginPreset


def carat_response(payload):
    response = mock.Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class GoldPriceServiceTests(TestCase):
    def setUp(self):
        cache.clear()
        self.session = mock.Mock()
        self.service = GoldPriceService(session=self.session)
        self.service.fallback_999 = Decimal('400.00')

    def test_no_api_key_uses_configured_fallback(self):
        self.service.api_key = ''
        prices = self.service.get_current_prices()
        self.assertEqual(prices['source'], 'fallback')
        self.assertEqual(prices['price_999'], Decimal('400.00'))
        self.assertEqual(prices['purity_codes']['916'], Decimal('366.40'))
        self.session.get.assert_not_called()

    def test_live_prices_from_carat_feed(self):
        self.service.api_key = 'test-key'
        # One carat is 0.2 g, so 80.00/carat is 400.00/g
        self.session.get.return_value = carat_response({
            'success': True,
            'data': {'24k': 80.0, '22k': 73.3},
        })
        prices = self.service.get_current_prices(force_refresh=True)
        self.assertEqual(prices['source'], 'api')
        self.assertEqual(prices['price_999'], Decimal('400.00'))
        self.assertEqual(prices['purity_codes']['916'], Decimal('366.50'))
        self.assertEqual(prices['purity_codes']['750'], Decimal('300.00'))
        self.assertEqual(GoldPriceLog.objects.count(), 1)

    def test_live_prices_cached(self):
        self.service.api_key = 'test-key'
        self.session.get.return_value = carat_response({'success': True, 'data': {'24k': 80.0}})
        self.service.get_current_prices()
        self.service.get_current_prices()
        self.assertEqual(self.session.get.call_count, 1)

    def test_network_error_falls_back_to_last_logged_price(self):
        GoldPriceLog.objects.create(price_999=Decimal('410.00'), purity_prices={'916': '375.00'})
        self.service.api_key = 'test-key'
        self.session.get.side_effect = requests.ConnectionError('down')
        prices = self.service.get_current_prices(force_refresh=True)
        self.assertEqual(prices['source'], 'cache')
        self.assertEqual(prices['price_999'], Decimal('410.00'))
        self.assertEqual(prices['purity_codes']['916'], Decimal('375.00'))

    def test_failure_payload_falls_back(self):
        self.service.api_key = 'test-key'
        self.session.get.return_value = carat_response({'success': False, 'error': {'code': 101}})
        self.assertEqual(self.service.get_current_prices(force_refresh=True)['source'], 'fallback')

    def test_manual_source_wins(self):
        set_setting('gold_price_source', 'manual')
        GoldPrice.objects.create(price_date=date(2025, 3, 1), price_999=Decimal('420.00'), price_916=Decimal('380.00'))
        prices = self.service.get_current_prices()
        self.assertEqual(prices['source'], 'manual')
        self.assertEqual(prices['purity_codes']['916'], Decimal('380.00'))
        self.assertEqual(prices['purity_codes']['750'], Decimal('315.00'))

    def test_custom_price_overrides(self):
        price, source = self.service.price_per_gram('916', Decimal('350'))
        self.assertEqual((price, source), (Decimal('350.00'), 'custom'))

    def test_calculate_item_value(self):
        self.service.api_key = ''
        result = self.service.calculate_item_value('10', '916')
        self.assertEqual(result['market_value'], Decimal('3664.00'))
        self.assertEqual(result['suggested_loans'][0], {'percentage': 80, 'amount': Decimal('2931.20')})

    def test_derive_purity_prices(self):
        prices = derive_purity_prices(Decimal('500'))
        self.assertEqual(prices['999'], Decimal('500.00'))
        self.assertEqual(prices['585'], Decimal('292.50'))


class PricingAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_manual_price_and_source_switch(self):
        response = self.client.post('/api/v1/gold-price/manual/', {'price_999': '430.00', 'price_916': '390.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.put('/api/v1/gold-price/source/', {'source': 'manual'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get('/api/v1/gold-price/current/')
        self.assertEqual(response.data['source'], 'manual')
        self.assertEqual(response.data['price_999'], Decimal('430.00'))

    def test_manual_price_must_be_positive(self):
        response = self.client.post('/api/v1/gold-price/manual/', {'price_999': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_source_rejected(self):
        response = self.client.put('/api/v1/gold-price/source/', {'source': 'random'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_single_default_margin_preset(self):
        preset = MarginPreset.objects.get(value=70)
        response = self.client.post(f'/api/v1/margin-presets/{preset.id}/set-default/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(MarginPreset.objects.filter(is_default=True).values_list('value', flat=True)), [70])

    def test_default_margin_preset_cannot_be_deleted(self):
        preset = MarginPreset.objects.get(is_default=True)
        response = self.client.delete(f'/api/v1/margin-presets/{preset.id}/')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
