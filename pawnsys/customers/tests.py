"""
Tests for customers: MyKad parsing, registration, lookup, blacklist and deletion rules
"""
from datetime import date

from django.core.cache import cache
from django.test import TestCase, SimpleTestCase
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.customers.ic import clean_ic, format_ic, parse_mykad, gender_from_ic, birth_date_from_ic
from pawnsys.customers.models import Customer


class MyKadTests(SimpleTestCase):
    def test_clean_and_format(self):
        self.assertEqual(clean_ic('850615-10-5511'), '850615105511')
        self.assertEqual(format_ic('850615105511'), '850615-10-5511')
        self.assertEqual(format_ic('8506151'), '850615-1')

    def test_parse_mykad(self):
        parsed = parse_mykad('850615-10-5511', today=date(2025, 6, 14))
        self.assertTrue(parsed['is_valid'])
        self.assertEqual(parsed['date_of_birth'], date(1985, 6, 15))
        self.assertEqual(parsed['age'], 39)
        self.assertEqual(parsed['gender'], 'male')
        self.assertEqual(parsed['state'], 'Selangor')
        self.assertEqual(parsed['city'], 'Shah Alam')

    def test_two_digit_year_pivot(self):
        self.assertEqual(birth_date_from_ic('050101141234'), date(2005, 1, 1))
        self.assertEqual(birth_date_from_ic('450101141234'), date(1945, 1, 1))

    def test_gender_from_last_digit(self):
        self.assertEqual(gender_from_ic('850615105512'), 'female')
        self.assertIsNone(gender_from_ic('8506'))

    def test_invalid_date(self):
        self.assertIsNone(birth_date_from_ic('851315105511'))
        self.assertFalse(parse_mykad('12345')['is_valid'])


class CustomerAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer_fills_from_ic(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Siti Aminah',
            'ic_number': '900101-14-5678',
            'phone': '0123456789',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        customer = Customer.objects.get(pk=response.data['id'])
        self.assertEqual(customer.ic_number, '900101145678')
        self.assertEqual(customer.date_of_birth, date(1990, 1, 1))
        self.assertEqual(customer.gender, 'female')
        self.assertEqual(customer.state, 'Kuala Lumpur')
        self.assertTrue(customer.customer_no.startswith('CUS-'))

    def test_duplicate_ic_rejected(self):
        TestDataFactory.create_customer(ic_number='900101145678')
        response = self.client.post('/api/v1/customers/', {
            'name': 'Someone Else', 'ic_number': '900101-14-5678', 'phone': '0111111111',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('ic_number', response.data)

    def test_invalid_mykad_rejected(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Bad IC', 'ic_number': '12345', 'phone': '0111111111',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_by_ic(self):
        customer = TestDataFactory.create_customer(ic_number='880202105555')
        response = self.client.get('/api/v1/customers/search-ic/', {'ic': '880202-10-5555'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], customer.id)

        response = self.client.get('/api/v1/customers/search-ic/', {'ic': '880202105556'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_cache_invalidated_on_create(self):
        self.assertEqual(len(self.client.get('/api/v1/customers/').data), 0)
        self.client.post('/api/v1/customers/', {
            'name': 'Lim Ah Kow', 'ic_number': '700303075511', 'phone': '0167777777',
        }, format='json')
        self.assertEqual(len(self.client.get('/api/v1/customers/').data), 1)

    def test_blacklist_requires_reason(self):
        customer = TestDataFactory.create_customer()
        url = f'/api/v1/customers/{customer.id}/blacklist/'
        response = self.client.post(url, {'is_blacklisted': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'is_blacklisted': True, 'reason': 'Fake gold'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertTrue(customer.is_blacklisted)

    def test_cannot_delete_customer_with_active_pledge(self):
        pledge = TestDataFactory.create_pledge(user=self.user)
        response = self.client.delete(f'/api/v1/customers/{pledge.customer_id}/')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_delete_customer_without_pledges(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_statistics_after_pledge(self):
        pledge = TestDataFactory.create_pledge(user=self.user)
        response = self.client.get(f'/api/v1/customers/{pledge.customer_id}/statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['active_pledges'], 1)
        self.assertEqual(response.data['outstanding_amount'], pledge.loan_amount)
