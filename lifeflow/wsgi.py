"""
WSGI config for lifeflow project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lifeflow.settings')

application = get_wsgi_application()
