"""WSGI config for the school events backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "schoolevents.settings")

application = get_wsgi_application()
