"""
ASGI config for CareDesk.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'caredesk.settings')

application = get_asgi_application()
