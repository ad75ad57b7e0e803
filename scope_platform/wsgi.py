"""
WSGI config for the scope aggregation platform.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'scope_platform.settings')

application = get_wsgi_application()
