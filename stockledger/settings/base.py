"""
Base settings for stockledger project.
Shared between local and cloud deployments.
"""

from pathlib import Path
import os

from django.urls import reverse_lazy

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-x1t!q8m2v@0r#k4e7s9w$p3n6b5z(c)a+d=f-g_h')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'

ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', '*').split(',')


# Application definition
INSTALLED_APPS = [
    "unfold",
    "unfold.contrib.filters",
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'inventory',
    'corsheaders',
    'rest_framework',
    'drf_spectacular',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'stockledger.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'stockledger.wsgi.application'


# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True


# Static files
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# CORS
CORS_ALLOW_ALL_ORIGINS = os.getenv('CORS_ALLOW_ALL_ORIGINS', 'True').lower() == 'true'
CORS_ALLOW_HEADERS = [
    'accept',
    'authorization',
    'content-type',
    'x-organization-id',
    'x-user-id',
    'x-user-role',
]


# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# =============================================================================
# INVENTORY
# =============================================================================
# Max seconds a stock adjustment waits for another adjustment on the same item
INVENTORY_LOCK_TIMEOUT = float(os.getenv('INVENTORY_LOCK_TIMEOUT', '10'))

INVENTORY_DEFAULT_PAGE_SIZE = int(os.getenv('INVENTORY_DEFAULT_PAGE_SIZE', '50'))
INVENTORY_MAX_PAGE_SIZE = int(os.getenv('INVENTORY_MAX_PAGE_SIZE', '200'))

# Window used by the dashboard "recent movements" counter
INVENTORY_RECENT_MOVEMENT_DAYS = int(os.getenv('INVENTORY_RECENT_MOVEMENT_DAYS', '7'))


# Unfold Admin Configuration
UNFOLD = {
    "SITE_TITLE": "Stock Ledger Admin",
    "SITE_HEADER": "Stock Ledger",
    "SITE_URL": "/",
    "SITE_SYMBOL": "inventory_2",

    "SIDEBAR": {
        "show_search": True,
        "show_all_applications": True,
        "navigation": [
            {
                "title": "Inventory",
                "separator": True,
                "items": [
                    {
                        "title": "Items",
                        "icon": "inventory_2",
                        "link": reverse_lazy("admin:inventory_item_changelist"),
                    },
                    {
                        "title": "Categories",
                        "icon": "category",
                        "link": reverse_lazy("admin:inventory_category_changelist"),
                    },
                    {
                        "title": "Stock Movements",
                        "icon": "swap_vert",
                        "link": reverse_lazy("admin:inventory_stockmovement_changelist"),
                    },
                    {
                        "title": "Alerts",
                        "icon": "notifications",
                        "link": reverse_lazy("admin:inventory_alert_changelist"),
                    },
                ],
            },
        ],
    },
}


REST_FRAMEWORK = {
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',

    'DEFAULT_AUTHENTICATION_CLASSES': [
        'inventory.authentication.HeaderIdentityAuthentication',
    ],

    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],

    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
        'rest_framework.renderers.BrowsableAPIRenderer',
    ],

    'UNAUTHENTICATED_USER': None,
}


SPECTACULAR_SETTINGS = {
    'TITLE': 'Stock Ledger',
    'DESCRIPTION': 'Stock ledger API documentation',
    'VERSION': '1.0.0',

    'SECURITY': [{'organizationHeader': [], 'userHeader': [], 'roleHeader': []}],

    'COMPONENTS': {
        'securitySchemes': {
            'organizationHeader': {
                'type': 'apiKey',
                'in': 'header',
                'name': 'X-Organization-ID',
            },
            'userHeader': {
                'type': 'apiKey',
                'in': 'header',
                'name': 'X-User-ID',
            },
            'roleHeader': {
                'type': 'apiKey',
                'in': 'header',
                'name': 'X-User-Role',
            },
        }
    },
}
