"""
Django settings for the Nevyra storefront backend.

Every value can be overridden from the environment so the same module is
used for local development, tests and deployment.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-nevyra-development-key')

DEBUG = os.environ.get('DJANGO_DEBUG', 'False').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = [host for host in os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',') if host]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'shop_users',
    'shop_admin',
    'products',
    'orders',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'nevyra.middleware.ApiErrorMiddleware',
]

ROOT_URLCONF = 'nevyra.urls'

WSGI_APPLICATION = 'nevyra.wsgi.application'

# All persistent data lives in Firestore; Django's ORM is not used.
DATABASES = {}

# Firestore service account
FIREBASE_CREDENTIALS = os.environ.get('FIREBASE_CREDENTIALS', str(BASE_DIR / 'config_nevyra.json'))

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.PBKDF2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher',
]

# JWT
JWT_SECRET = os.environ.get('JWT_SECRET', SECRET_KEY)
JWT_ALGORITHM = 'HS256'
JWT_EXPIRES_DAYS = int(os.environ.get('JWT_EXPIRES_DAYS', 7))
JWT_ADMIN_EXPIRES_DAYS = int(os.environ.get('JWT_ADMIN_EXPIRES_DAYS', 7))

# Email (OTP delivery)
EMAIL_BACKEND = os.environ.get('EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')
EMAIL_HOST = os.environ.get('EMAIL_HOST', 'localhost')
EMAIL_PORT = int(os.environ.get('EMAIL_PORT', 587))
EMAIL_HOST_USER = os.environ.get('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.environ.get('EMAIL_HOST_PASSWORD', '')
EMAIL_USE_TLS = os.environ.get('EMAIL_USE_TLS', 'True').lower() in ('1', 'true', 'yes')
DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'no-reply@nevyra.com')

# Password reset
OTP_EXPIRY_MINUTES = 10

# Orders
ORDER_NUMBER_PREFIX = os.environ.get('ORDER_NUMBER_PREFIX', 'NEV')
ORDER_TAX_RATE = 0.18
FREE_SHIPPING_THRESHOLD = 499
SHIPPING_FEE = 99
ESTIMATED_DELIVERY_DAYS = 3
DEFAULT_COUNTRY = 'India'

# Search history
RECENT_SEARCHES_LIMIT = 7
POPULAR_SEARCHES_SAMPLE = 200

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = False
USE_TZ = True

APPEND_SLASH = False

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.environ.get('DJANGO_LOG_LEVEL', 'INFO'),
    },
}
