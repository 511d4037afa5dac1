# stockledger/settings/__init__.py

import os

settings_module = os.getenv('DJANGO_SETTINGS_MODULE', 'stockledger.settings.local')

if 'cloud' in settings_module:
    from .cloud import *
elif 'test' in settings_module:
    from .test import *
else:
    from .local import *
