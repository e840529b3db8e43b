"""WSGI config for the ITAD project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "itad.settings")

application = get_wsgi_application()
