"""
WSGI config for the PawnSys project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pawnsys.config.settings')

application = get_wsgi_application()
