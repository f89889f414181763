"""
WSGI config for the stockdesk project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'stockdesk.config.settings')

application = get_wsgi_application()
