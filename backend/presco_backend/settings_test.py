"""
Test settings: in-memory SQLite, fixed secrets, no throttling.
"""
import tempfile
from pathlib import Path

from .settings import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

API_KEY = 'test-api-key'
JWT_SECRET = 'test-jwt-secret'
SIMPLE_JWT = {
    **SIMPLE_JWT,
    'SIGNING_KEY': JWT_SECRET,
}

ADMIN_EMAIL = 'admin@presco.test'
ADMIN_PASSWORD = 'admin-secret'
ADMIN_BOOTSTRAP_ON_LOGIN = True

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_THROTTLE_CLASSES': (),
}

MEDIA_ROOT = Path(tempfile.mkdtemp(prefix='presco-media-'))
UPLOAD_TEMP_DIR = MEDIA_ROOT / 'uploads'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
    },
}
