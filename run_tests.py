#!/usr/bin/env python
"""
Test runner script for the full PawnSys suite
Usage: python run_tests.py [app_label ...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'pawnsys.core',
    'pawnsys.customers',
    'pawnsys.storage',
    'pawnsys.pricing',
    'pawnsys.pledges',
    'pawnsys.transactions',
    'pawnsys.reconciliation',
    'pawnsys.inventory',
    'pawnsys.reports',
    'pawnsys.hardware',
    'pawnsys.client',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pawnsys.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or APPS)
    sys.exit(bool(failures))
