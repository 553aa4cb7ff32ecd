"""
WSGI config for armoryops project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'armoryops.settings')

application = get_wsgi_application()
