"""WSGI config for the queueskip project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "queueskip.settings")

application = get_wsgi_application()
