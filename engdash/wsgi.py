"""
WSGI config for the engdash project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'engdash.settings')

application = get_wsgi_application()
