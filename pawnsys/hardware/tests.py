"""
Tests for hardware device registration and connection checks
"""
import socket
from unittest import mock

from django.test import TestCase
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.hardware import services
from pawnsys.hardware.models import HardwareDevice


class ConnectionCheckTests(TestCase):
    def setUp(self):
        self.printer = HardwareDevice.objects.create(
            name='Counter thermal', type='thermal_printer', connection='ethernet', ip_address='192.168.1.50',
        )

    @mock.patch('pawnsys.hardware.services.socket.create_connection')
    def test_network_device_reachable(self, create_connection):
        result = services.test_connection(self.printer, timeout=1)
        create_connection.assert_called_once_with(('192.168.1.50', 9100), timeout=1)
        self.assertTrue(result['success'])
        self.assertEqual(result['status'], 'connected')

    @mock.patch('pawnsys.hardware.services.socket.create_connection', side_effect=socket.timeout())
    def test_network_device_timeout(self, create_connection):
        result = services.test_connection(self.printer)
        self.assertFalse(result['success'])
        self.assertEqual(result['status'], 'disconnected')

    @mock.patch('pawnsys.hardware.services.socket.create_connection', side_effect=ConnectionRefusedError('refused'))
    def test_network_device_refused(self, create_connection):
        self.printer.port = 515
        result = services.test_connection(self.printer)
        self.assertEqual(result['status'], 'error')
        self.assertEqual(result['details']['port'], 515)

    def test_usb_device_is_unknown(self):
        scanner = HardwareDevice.objects.create(name='Scanner', type='barcode_scanner', connection='usb')
        result = services.test_connection(scanner)
        self.assertEqual(result['status'], 'unknown')


class HardwareAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _create(self, **data):
        payload = {'name': 'Receipt printer', 'type': 'dot_matrix_printer', 'connection': 'usb', 'paper_size': 'A5'}
        payload.update(data)
        return self.client.post('/api/v1/hardware/', payload, format='json')

    def test_register_and_list(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'unknown')
        self.assertEqual(response.data['created_by_username'], self.user.username)

        response = self.client.get('/api/v1/hardware/')
        self.assertEqual(response.data['summary']['total'], 1)
        self.assertIn('dot_matrix_printer', response.data['grouped'])

    def test_network_device_needs_ip(self):
        response = self._create(connection='ethernet')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('ip_address', response.data)

    def test_one_default_per_type(self):
        first = self._create(name='Printer A', is_default=True).data
        second = self._create(name='Printer B').data
        response = self.client.post(f"/api/v1/hardware/{second['id']}/set-default/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(HardwareDevice.objects.get(pk=first['id']).is_default)

        response = self.client.get('/api/v1/hardware/defaults/')
        self.assertEqual(response.data['dot_matrix_printer']['name'], 'Printer B')
        self.assertIsNone(response.data['barcode_scanner'])

    def test_inactive_device_cannot_be_default(self):
        device = self._create().data
        self.client.post(f"/api/v1/hardware/{device['id']}/toggle-active/")
        response = self.client.post(f"/api/v1/hardware/{device['id']}/set-default/")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_status_report(self):
        device = self._create().data
        response = self.client.post(f"/api/v1/hardware/{device['id']}/status/", {'status': 'connected'}, format='json')
        self.assertEqual(response.data['status'], 'connected')
        self.assertIsNotNone(response.data['last_tested_at'])

        response = self.client.post(f"/api/v1/hardware/{device['id']}/status/", {'status': 'online'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('pawnsys.hardware.services.socket.create_connection', side_effect=OSError('unreachable'))
    def test_connection_endpoint_records_status(self, create_connection):
        device = self._create(connection='ethernet', ip_address='10.0.0.9', port=9100).data
        response = self.client.post(f"/api/v1/hardware/{device['id']}/test/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'error')
        self.assertEqual(HardwareDevice.objects.get(pk=device['id']).status, 'error')

    def test_delete(self):
        device = self._create().data
        response = self.client.delete(f"/api/v1/hardware/{device['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(HardwareDevice.objects.exists())

    def test_options(self):
        response = self.client.get('/api/v1/hardware/options/')
        self.assertIn('thermal_printer', response.data['types'])
        self.assertIn('80mm', response.data['paper_sizes'])
