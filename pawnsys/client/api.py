"""Session, authentication and error mapping for the PawnSys REST API"""
import logging
import os

import requests

logger = logging.getLogger('pawnsys.client')

DEFAULT_API_URL = 'http://127.0.0.1:8000/api/v1'
DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """Request reached the server but was refused"""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}


class NotFoundError(ApiError):
    """404: the record does not exist or was already deleted"""


class BusinessRuleError(ApiError):
    """422: the request broke a pawn rule (slot occupied, duplicate scan, ...)"""


class AuthenticationError(ApiError):
    """401: missing, expired or rejected token"""


class ServiceUnavailableError(ApiError):
    """Server unreachable, timed out or failing with 5xx"""


def _error_message(payload, default):
    if isinstance(payload, dict):
        for key in ('error', 'detail', 'message'):
            if payload.get(key):
                return str(payload[key])
        if payload:
            # Serializer errors: {'field': ['msg', ...]}
            field, messages = next(iter(payload.items()))
            if isinstance(messages, list) and messages:
                return f"{field}: {messages[0]}"
            return f"{field}: {messages}"
    return default


class PawnsysClient:
    """
    Thin wrapper over requests.Session

    base_url and token default to the PAWNSYS_API_URL and PAWNSYS_API_TOKEN
    environment variables. Every call returns decoded JSON or raises an
    ApiError subclass.
    """

    def __init__(self, base_url=None, token=None, timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = (base_url or os.environ.get('PAWNSYS_API_URL') or DEFAULT_API_URL).rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        self.token = None
        self.set_token(token or os.environ.get('PAWNSYS_API_TOKEN'))

    def set_token(self, token):
        self.token = token
        if token:
            self.session.headers['Authorization'] = f'Bearer {token}'
        else:
            self.session.headers.pop('Authorization', None)

    def url(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def login(self, username, password):
        """Exchange credentials for a JWT pair and use the access token from now on"""
        data = self.post('auth/login/', json={'username': username, 'password': password})
        self.set_token(data['access'])
        logger.info(f"Authenticated as {username}")
        return data

    def request(self, method, path, raw=False, **kwargs):
        kwargs.setdefault('timeout', self.timeout)
        url = self.url(path)
        try:
            response = self.session.request(method, url, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning(f"{method} {url} failed: {str(e)}")
            raise ServiceUnavailableError(f"Cannot reach server: {str(e)}") from e

        if response.status_code >= 400:
            self._raise_for_status(response)
        if raw:
            return response
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _raise_for_status(self, response):
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        status_code = response.status_code
        message = _error_message(payload, response.reason or f"HTTP {status_code}")

        if status_code == 401:
            raise AuthenticationError(message, status_code, payload)
        if status_code == 404:
            raise NotFoundError(message or 'Record not found or already deleted', status_code, payload)
        if status_code == 422:
            raise BusinessRuleError(message, status_code, payload)
        if status_code >= 500:
            raise ServiceUnavailableError(message, status_code, payload)
        raise ApiError(message, status_code, payload)

    def get(self, path, **kwargs):
        return self.request('GET', path, **kwargs)

    def post(self, path, **kwargs):
        return self.request('POST', path, **kwargs)

    def put(self, path, **kwargs):
        return self.request('PUT', path, **kwargs)

    def patch(self, path, **kwargs):
        return self.request('PATCH', path, **kwargs)

    def delete(self, path, **kwargs):
        return self.request('DELETE', path, **kwargs)
