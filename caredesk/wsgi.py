"""
WSGI config for CareDesk.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'caredesk.settings')

application = get_wsgi_application()
