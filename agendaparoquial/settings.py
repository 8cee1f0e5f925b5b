# agendaparoquial/settings.py

from pathlib import Path
import os

# -----------------------------------------------------------------------------
# Paths
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# -----------------------------------------------------------------------------
# Segurança / Ambiente
# -----------------------------------------------------------------------------
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'dev-only-insecure-key')
DEBUG = os.getenv('DJANGO_DEBUG', '1').strip().lower() in {'1', 'true', 'on', 'yes', 'sim'}

# Base pública usada nos links de inscrição (sem barra final)
SITE_DOMAIN = os.getenv('SITE_DOMAIN', 'http://localhost:8000').rstrip('/')

# ALLOWED_HOSTS: sem "https://", apenas hostnames/IPs
ALLOWED_HOSTS = os.getenv(
    'DJANGO_ALLOWED_HOSTS',
    'localhost,127.0.0.1,testserver'
).split(',')

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE    = not DEBUG

CSRF_TRUSTED_ORIGINS = [
    o for o in os.getenv(
        'DJANGO_CSRF_TRUSTED_ORIGINS',
        'http://localhost:8000,http://127.0.0.1:8000'
    ).split(',') if o
]

# -----------------------------------------------------------------------------
# Apps
# -----------------------------------------------------------------------------
INSTALLED_APPS = [
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'calendario',
]

# -----------------------------------------------------------------------------
# Middleware
# -----------------------------------------------------------------------------
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',

    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',

    'calendario.middleware.SessaoParoquialMiddleware',
]

ROOT_URLCONF = 'agendaparoquial.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
                'calendario.context_processors.sessao_context',
            ],
        },
    },
]

WSGI_APPLICATION = 'agendaparoquial.wsgi.application'

# -----------------------------------------------------------------------------
# Banco de Dados
# -----------------------------------------------------------------------------
# Nenhum dado é persistido localmente: tudo vem da API remota.
DATABASES = {}

# -----------------------------------------------------------------------------
# Cache / Sessão
# -----------------------------------------------------------------------------
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'agendaparoquial',
    }
}

# Sessão em cache: guarda apenas o token e a filial selecionada
SESSION_ENGINE = os.getenv('SESSION_ENGINE', 'django.contrib.sessions.backends.cache')
SESSION_COOKIE_AGE = 60 * 60 * 12

MESSAGE_STORAGE = 'django.contrib.messages.storage.session.SessionStorage'

LOGIN_URL = 'calendario:login'

# -----------------------------------------------------------------------------
# i18n / TZ
# -----------------------------------------------------------------------------
LANGUAGE_CODE = 'pt-br'
TIME_ZONE = 'America/Sao_Paulo'
USE_I18N = True
USE_TZ = True

# -----------------------------------------------------------------------------
# Static
# -----------------------------------------------------------------------------
STATIC_URL  = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedStaticFilesStorage',
    },
}

# -----------------------------------------------------------------------------
# APIs remotas (Agenda Paroquial + Autenticação)
# -----------------------------------------------------------------------------
AGENDA_API_URL = os.getenv('AGENDA_API_URL', 'https://localhost:7096/api').rstrip('/')
AUTH_API_URL   = os.getenv('AUTH_API_URL', 'https://localhost:7208/api').rstrip('/')
API_TIMEOUT    = int(os.getenv('API_TIMEOUT', '30'))

# Contagem de solicitações pendentes (badge): revalida a cada 30s
PENDENTES_CACHE_TTL = int(os.getenv('PENDENTES_CACHE_TTL', '30'))

# Filial usada pelo link público /inscricao/<id> quando não vem ?filial=
FILIAL_PADRAO = int(os.getenv('FILIAL_PADRAO', '1'))

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
LOG_DIR = BASE_DIR / 'logs'
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} | {levelname} | {name} | {message}",
            "style": "{",
        },
    },
    "handlers": {
        "file": {
            "level": "INFO",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "agenda.log",
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "formatter": "verbose",
        },
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django":          {"handlers": ["file", "console"], "level": "INFO", "propagate": True},
        "django.security": {"handlers": ["file"], "level": "WARNING", "propagate": False},
        "calendario":      {"handlers": ["file", "console"], "level": "INFO", "propagate": False},
        "integracoes":     {"handlers": ["file", "console"], "level": "INFO", "propagate": False},
    },
}
