"""
WSGI config for CleanCity Backend.

Exposes the WSGI callable as a module-level variable named ``application``.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'cleancity_backend.settings')

application = get_wsgi_application()
