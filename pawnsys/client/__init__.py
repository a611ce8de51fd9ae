"""
HTTP client for the PawnSys API

Used by scanning stations and scripts that talk to the backend over the
network rather than importing Django.
"""
from .api import (
    PawnsysClient, ApiError, NotFoundError, BusinessRuleError,
    AuthenticationError, ServiceUnavailableError,
)
from .reconciliation import ReconciliationRunner

__all__ = [
    'PawnsysClient', 'ApiError', 'NotFoundError', 'BusinessRuleError',
    'AuthenticationError', 'ServiceUnavailableError', 'ReconciliationRunner',
]
