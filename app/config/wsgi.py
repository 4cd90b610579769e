"""
WSGI config for the chat backend.

Fallback entry point for plain HTTP deployments. Websockets need the ASGI
application in config/asgi.py; under WSGI only the REST API is served.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
