"""
WSGI config for stockledger project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'stockledger.settings.local')

application = get_wsgi_application()
