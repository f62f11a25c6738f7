"""
Django settings for presco_backend project.
"""
import os
import re
from pathlib import Path
from datetime import timedelta
from dotenv import load_dotenv

# Build paths
BASE_DIR = Path(__file__).resolve().parent.parent
_project_root = BASE_DIR.parent

# Load .env files - .env.local overrides .env
_env_main = _project_root / '.env'
_env_local = _project_root / '.env.local'

if _env_main.exists():
    load_dotenv(_env_main, override=False)

if _env_local.exists():
    load_dotenv(_env_local, override=True)


def _env_flag(name, default='0'):
    return os.getenv(name, default) in ('1', 'true', 'True', 'TRUE', 'yes')


def _env_list(name):
    raw = os.getenv(name, '')
    return [item.strip() for item in raw.split(',') if item.strip()]


def _env_duration(name, default):
    """Parse durations written as 30s / 15m / 12h / 7d (plain numbers are seconds)."""
    raw = os.getenv(name, default).strip()
    match = re.fullmatch(r'(\d+)\s*([smhd]?)', raw)
    if not match:
        raise ValueError(f"{name} must look like 7d, 12h, 30m or 45s (got {raw!r})")
    units = {'s': 'seconds', 'm': 'minutes', 'h': 'hours', 'd': 'days'}
    unit = units[match.group(2) or 's']
    return timedelta(**{unit: int(match.group(1))})


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-dev-key-change-this')

# Environment mode. Error responses carry stack traces only while DEBUG is on.
DEBUG = os.getenv('DEBUG', '1') in ('1', 'true', 'True', 'TRUE', '')

ALLOWED_HOSTS = _env_list('ALLOWED_HOSTS') or ['*']

# Port the process runner binds to (gunicorn reads PORT itself)
PORT = int(os.getenv('PORT', '8000'))

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third party apps
    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',

    # Local apps
    'apps.core',  # Envelope, error handling, static key gate
    'apps.users',  # Accounts and token login
    'apps.records',  # Fixed-schema shareholder records and search
    'apps.datasets',  # Dynamic collections built from uploads
    'apps.uploads',  # Spreadsheet ingestion and upload metadata
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'presco_backend.urls'

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

WSGI_APPLICATION = 'presco_backend.wsgi.application'

# Database configuration
import dj_database_url

USE_SQLITE = os.getenv('USE_SQLITE', '0') == '1'
DATABASE_URL = os.getenv('DATABASE_URL')

if USE_SQLITE:
    # SQLite for local development
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }
elif DATABASE_URL:
    # Parse DATABASE_URL (for Render and other cloud providers)
    DATABASES = {
        'default': dj_database_url.parse(DATABASE_URL)
    }
else:
    # Fall back to individual environment variables
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DB_NAME', 'presco_db'),
            'USER': os.getenv('DB_USER', 'presco_user'),
            'PASSWORD': os.getenv('DB_PASSWORD', 'presco_password'),
            'HOST': os.getenv('DB_HOST', 'localhost'),
            'PORT': os.getenv('DB_PORT', '5432'),
        }
    }

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {'min_length': 6},
    },
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

MEDIA_URL = 'media/'
MEDIA_ROOT = BASE_DIR / 'media'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Custom User Model
AUTH_USER_MODEL = 'users.User'

# REST Framework
REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': (
        'rest_framework.renderers.JSONRenderer',
    ),
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTStatelessUserAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.AllowAny',
    ),
    'DEFAULT_THROTTLE_CLASSES': (
        'rest_framework.throttling.AnonRateThrottle',
        'rest_framework.throttling.UserRateThrottle',
    ),
    'DEFAULT_THROTTLE_RATES': {
        'anon': os.getenv('THROTTLE_ANON_RATE', '100/min'),
        'user': os.getenv('THROTTLE_USER_RATE', '300/min'),
    },
    'EXCEPTION_HANDLER': 'apps.core.handlers.api_exception_handler',
}

# JWT Settings
JWT_SECRET = os.getenv('JWT_SECRET') or SECRET_KEY

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': _env_duration('JWT_EXPIRE', '7d'),
    'SIGNING_KEY': JWT_SECRET,
    'ALGORITHM': 'HS256',
    'AUTH_HEADER_TYPES': ('Bearer',),
    'USER_ID_FIELD': 'id',
    'USER_ID_CLAIM': 'id',
    'UPDATE_LAST_LOGIN': False,
}

# Static access key, sent by clients in the X-API-Key header
API_KEY = os.getenv('API_KEY', '')
API_KEY_HEADER = 'X-API-Key'

# Administrator seed
ADMIN_EMAIL = os.getenv('ADMIN_EMAIL', '')
ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD', '')
ADMIN_BOOTSTRAP_ON_LOGIN = _env_flag('ADMIN_BOOTSTRAP_ON_LOGIN', '1')

# Spreadsheet uploads
UPLOAD_MAX_MB = int(os.getenv('UPLOAD_MAX_MB', '50'))
UPLOAD_ALLOWED_EXTENSIONS = ['.xlsx', '.xls']
UPLOAD_TEMP_DIR = MEDIA_ROOT / 'uploads'
DATA_UPLOAD_MAX_MEMORY_SIZE = UPLOAD_MAX_MB * 1024 * 1024
FILE_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024

# Collection served when a request does not name one
DEFAULT_COLLECTION = 'prescodatas'
BULK_INSERT_BATCH_SIZE = int(os.getenv('BULK_INSERT_BATCH_SIZE', '1000'))

# CORS Settings - ALLOWED_ORIGINS unset means every origin
CORS_ALLOWED_ORIGINS = _env_list('ALLOWED_ORIGINS')
CORS_ALLOW_ALL_ORIGINS = not CORS_ALLOWED_ORIGINS
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_HEADERS = [
    "accept",
    "accept-encoding",
    "authorization",
    "content-type",
    "origin",
    "user-agent",
    "x-requested-with",
    "x-api-key",  # Static access key header
]

# Cache (DRF throttling state)
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

# Logging
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.getenv('LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
