"""
Gold price lookup

Live prices come from MetalPriceAPI. When the feed is unavailable (no API
key, network error, bad payload) the service falls back to the most recent
logged price, then to the configured 999 price. In manual mode the latest
GoldPrice row entered by staff is authoritative.
"""
import logging
from decimal import Decimal, InvalidOperation

import requests
from django.core.cache import cache
from django.utils import timezone

from pawnsys.core.utils import pawn_config, get_setting, money
from .models import GoldPrice, GoldPriceLog, Purity

logger = logging.getLogger('pawnsys.pricing')

# Gold content used when a purity is not configured in the database
PURITY_PERCENTAGES = {
    '999': Decimal('99.9'),
    '916': Decimal('91.6'),
    '875': Decimal('87.5'),
    '750': Decimal('75.0'),
    '585': Decimal('58.5'),
    '375': Decimal('37.5'),
}

# Karat labels used by the /carat endpoint
KARAT_TO_PURITY = {
    '24k': '999',
    '22k': '916',
    '21k': '875',
    '18k': '750',
    '14k': '585',
    '9k': '375',
}

# The /carat endpoint prices one carat (0.2 g) of metal
GRAMS_PER_CARAT = Decimal('0.2')

SOURCE_SETTING_KEY = 'gold_price_source'


def purity_percentage(code):
    purity = Purity.objects.filter(code=str(code)).first()
    if purity is not None:
        return purity.percentage
    return PURITY_PERCENTAGES.get(str(code), Decimal('100'))


def derive_purity_prices(price_999):
    """Scale a 999 price to every known purity"""
    price_999 = Decimal(str(price_999))
    codes = set(PURITY_PERCENTAGES) | set(Purity.objects.filter(is_active=True).values_list('code', flat=True))
    prices = {}
    for code in sorted(codes, reverse=True):
        if code == '999':
            prices[code] = money(price_999)
        else:
            # 999 is the 100% reference
            prices[code] = money(price_999 * purity_percentage(code) / Decimal('100'))
    return prices


def get_price_source():
    """'api' or 'manual'"""
    source = get_setting(SOURCE_SETTING_KEY, 'api')
    return source if source in ('api', 'manual') else 'api'


class GoldPriceService:
    """Fetches, caches and falls back gold prices per gram in the shop's currency"""

    def __init__(self, session=None):
        config = pawn_config('gold_price', default={}) or {}
        self.base_url = config.get('api_url', 'https://api.metalpriceapi.com/v1').rstrip('/')
        self.api_key = config.get('api_key', '')
        self.currency = config.get('currency', 'MYR')
        self.timeout = config.get('timeout', 10)
        self.cache_ttl = config.get('cache_ttl', 300)
        self.fallback_999 = Decimal(str(config.get('fallback_price_999', '400.00')))
        self.session = session or requests.Session()

    @property
    def cache_key(self):
        return f"gold_prices_{self.currency}"

    def get_current_prices(self, force_refresh=False):
        """
        Current price per gram for every purity.

        Returns a dict with source ('manual', 'api', 'cache' or 'fallback'),
        price_999, purity_codes {code: Decimal}, currency and updated_at.
        """
        if get_price_source() == 'manual':
            manual = GoldPrice.objects.order_by('-price_date', '-created_at').first()
            if manual is not None:
                return self._from_gold_price(manual)
            logger.warning("Gold price source is manual but no manual price exists; using feed")

        if not force_refresh:
            cached = cache.get(self.cache_key)
            if cached is not None:
                logger.debug("Cache hit for gold prices")
                return cached

        prices = self.fetch_live_prices()
        if prices['source'] == 'api':
            cache.set(self.cache_key, prices, self.cache_ttl)
        return prices

    def fetch_live_prices(self):
        if not self.api_key:
            logger.info("Gold price API key not configured, using fallback prices")
            return self.get_fallback_prices()

        try:
            response = self.session.get(
                f"{self.base_url}/carat",
                params={'api_key': self.api_key, 'base': self.currency},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
            if not payload.get('success'):
                raise ValueError(f"API reported failure: {payload.get('error')}")
            purity_codes = self._parse_carat_payload(payload.get('data') or {})
        except (requests.RequestException, ValueError, KeyError, InvalidOperation) as e:
            logger.warning(f"Gold price API error, using fallback: {str(e)}")
            return self.get_fallback_prices()

        prices = {
            'source': 'api',
            'currency': self.currency,
            'price_999': purity_codes['999'],
            'purity_codes': purity_codes,
            'updated_at': timezone.now().isoformat(),
        }
        self._log_prices(prices, payload)
        return prices

    def _parse_carat_payload(self, data):
        purity_codes = {}
        for karat, code in KARAT_TO_PURITY.items():
            if data.get(karat) is not None:
                purity_codes[code] = money(Decimal(str(data[karat])) / GRAMS_PER_CARAT)
        if '999' not in purity_codes:
            raise KeyError('24k price missing from carat payload')
        # Fill purities the feed does not quote from the 999 price
        for code, price in derive_purity_prices(purity_codes['999']).items():
            purity_codes.setdefault(code, price)
        return purity_codes

    def _log_prices(self, prices, raw):
        try:
            GoldPriceLog.objects.create(
                price_999=prices['price_999'],
                purity_prices={code: str(price) for code, price in prices['purity_codes'].items()},
                currency=self.currency,
                source='metalpriceapi',
                raw_data=raw,
            )
        except Exception as e:
            logger.error(f"Failed to log gold prices: {str(e)}")

    def get_fallback_prices(self):
        last_log = GoldPriceLog.objects.order_by('-fetched_at').first()
        if last_log is not None:
            purity_codes = derive_purity_prices(last_log.price_999)
            purity_codes.update({code: money(price) for code, price in (last_log.purity_prices or {}).items()})
            return {
                'source': 'cache',
                'currency': last_log.currency,
                'price_999': money(last_log.price_999),
                'purity_codes': purity_codes,
                'updated_at': last_log.fetched_at.isoformat(),
            }

        return {
            'source': 'fallback',
            'currency': self.currency,
            'price_999': money(self.fallback_999),
            'purity_codes': derive_purity_prices(self.fallback_999),
            'updated_at': timezone.now().isoformat(),
        }

    def _from_gold_price(self, gold_price):
        purity_codes = derive_purity_prices(gold_price.price_999)
        for code in PURITY_PERCENTAGES:
            stored = gold_price.price_for(code)
            if stored is not None:
                purity_codes[code] = money(stored)
        return {
            'source': 'manual',
            'currency': self.currency,
            'price_999': money(gold_price.price_999),
            'purity_codes': purity_codes,
            'updated_at': gold_price.created_at.isoformat() if gold_price.created_at else None,
            'price_date': gold_price.price_date.isoformat(),
        }

    def price_per_gram(self, purity_code, custom_price=None):
        """Price per gram for a purity, honouring a clerk-entered override"""
        if custom_price not in (None, ''):
            return money(custom_price), 'custom'
        prices = self.get_current_prices()
        price = prices['purity_codes'].get(str(purity_code))
        if price is None:
            price = money(prices['price_999'] * purity_percentage(purity_code) / Decimal('100'))
        return price, prices['source']

    def calculate_item_value(self, weight_grams, purity_code, custom_price=None):
        """Market value of a gold item and the suggested loan at each default percentage"""
        weight = Decimal(str(weight_grams))
        price, source = self.price_per_gram(purity_code, custom_price)
        market_value = money(weight * price)
        percentages = pawn_config('loan_percentages', default=[80, 70, 60])
        return {
            'weight_grams': weight,
            'purity_code': str(purity_code),
            'price_per_gram': price,
            'market_value': market_value,
            'suggested_loans': [
                {'percentage': pct, 'amount': money(market_value * Decimal(pct) / Decimal('100'))}
                for pct in percentages
            ],
            'source': source,
        }

    def clear_cache(self):
        cache.delete(self.cache_key)
