"""Connection checks for registered devices"""
import logging
import socket

from pawnsys.core.utils import pawn_config

logger = logging.getLogger('pawnsys.hardware')

# Raw printing port used by network receipt and label printers
DEFAULT_PRINTER_PORT = 9100


def test_connection(device, timeout=None):
    """
    Try to reach a device from the server.

    Network devices get a TCP connect to ip:port. USB, serial and bluetooth
    devices are attached to a workstation, so the result is 'unknown' and
    the local print agent reports the real status when it prints.
    """
    if timeout is None:
        timeout = pawn_config('hardware', 'connect_timeout', default=3)

    if device.is_network and device.ip_address:
        port = device.port or DEFAULT_PRINTER_PORT
        try:
            with socket.create_connection((device.ip_address, port), timeout=timeout):
                pass
        except socket.timeout:
            logger.warning(f"Device {device.name} at {device.ip_address}:{port} timed out")
            return {
                'success': False,
                'status': 'disconnected',
                'message': f'No response from {device.ip_address}:{port}',
                'details': {'ip': device.ip_address, 'port': port},
            }
        except OSError as e:
            logger.warning(f"Device {device.name} at {device.ip_address}:{port} unreachable: {str(e)}")
            return {
                'success': False,
                'status': 'error',
                'message': f'Could not connect to {device.ip_address}:{port}',
                'details': {'ip': device.ip_address, 'port': port, 'error': str(e)},
            }
        return {
            'success': True,
            'status': 'connected',
            'message': 'Network device reachable',
            'details': {'ip': device.ip_address, 'port': port},
        }

    if device.connection in ('usb', 'serial', 'bluetooth'):
        return {
            'success': True,
            'status': 'unknown',
            'message': 'Locally attached devices must be tested from the workstation print agent',
            'details': {'note': 'Status is updated when the device is next used'},
        }

    return {
        'success': True,
        'status': 'unknown',
        'message': 'Device registered',
        'details': {},
    }
