from pathlib import Path
import os
from dotenv import load_dotenv  # pip install python-dotenv

# === Paths ===
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")  # values from the .env file at the project root

# === Core ===
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-secret")
DEBUG = os.getenv("DJANGO_DEBUG", "True").lower() == "true"
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "127.0.0.1,localhost").split(",") if h.strip()]

# === Apps ===
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "rest_framework",
    "corsheaders",

    "catalog",
    "orders",
]

# === Middleware ===
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",   # must come before CommonMiddleware
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "storefront.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "storefront.wsgi.application"

# === Database ===
DATABASES = {
    "default": {
        "ENGINE": os.getenv("DB_ENGINE", "django.db.backends.postgresql"),
        "NAME": os.getenv("DB_NAME", "fragrantique"),
        "USER": os.getenv("DB_USER", "postgres"),
        "PASSWORD": os.getenv("DB_PASSWORD", ""),
        "HOST": os.getenv("DB_HOST", "127.0.0.1"),
        "PORT": os.getenv("DB_PORT", "5432"),
        "CONN_MAX_AGE": 60,
    }
}

# === Password validation ===
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# === I18N ===
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# === Static / media ===
STATIC_URL = "static/"
MEDIA_URL = os.getenv("MEDIA_URL", "/media/")
MEDIA_ROOT = os.getenv("MEDIA_ROOT", str(BASE_DIR / "media"))

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# === CORS / DRF ===
CORS_ALLOW_ALL_ORIGINS = True
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 24,
    "DEFAULT_FILTER_BACKENDS": [
        "rest_framework.filters.SearchFilter",
        "rest_framework.filters.OrderingFilter",
    ],
}

# === Email ===
EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = os.getenv("EMAIL_USE_TLS", "True").lower() == "true"
EMAIL_TIMEOUT = 15
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "Fragrantique <no-reply@fragrantique.net>")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
CONTACT_EMAIL = os.getenv("CONTACT_EMAIL", ADMIN_EMAIL)

# === Logging ===
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "root": {"handlers": ["console"], "level": os.getenv("LOG_LEVEL", "INFO")},
    "loggers": {
        "django.request": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}

# === Stripe ===
STRIPE_MODE = "live" if os.getenv("STRIPE_MODE", "test").lower() == "live" else "test"
STRIPE_API_VERSION = "2024-06-20"
STRIPE_KEYS = {
    "test": {
        "secret_key": os.getenv("STRIPE_SECRET_KEY_TEST", ""),
        "publishable_key": os.getenv("STRIPE_PUBLISHABLE_KEY_TEST", ""),
        "webhook_secret": os.getenv("STRIPE_WEBHOOK_SECRET_TEST", ""),
    },
    "live": {
        "secret_key": os.getenv("STRIPE_SECRET_KEY_LIVE", ""),
        "publishable_key": os.getenv("STRIPE_PUBLISHABLE_KEY_LIVE", ""),
        "webhook_secret": os.getenv("STRIPE_WEBHOOK_SECRET_LIVE", ""),
    },
}

# === Third-party services ===
REMOVE_BG_API_KEY = os.getenv("REMOVE_BG_API_KEY", "")
REMOVE_BG_URL = "https://api.remove.bg/v1.0/removebg"
SHIPPO_API_TOKEN = os.getenv("SHIPPO_API_TOKEN", "")
SHIPPO_API_URL = "https://api.goshippo.com"
SHIP_FROM = {
    "name": os.getenv("SHIP_FROM_NAME", "Fragrantique"),
    "street1": os.getenv("SHIP_FROM_STREET1", "123 Main St"),
    "street2": os.getenv("SHIP_FROM_STREET2", ""),
    "city": os.getenv("SHIP_FROM_CITY", "Phoenix"),
    "state": os.getenv("SHIP_FROM_STATE", "AZ"),
    "zip": os.getenv("SHIP_FROM_ZIP", "85001"),
    "country": os.getenv("SHIP_FROM_COUNTRY", "US"),
    "email": os.getenv("SHIP_FROM_EMAIL", "stephanie@fragrantique.net"),
}
OUTBOUND_TIMEOUT = 10  # seconds, per outbound HTTP call

# === Storefront ===
SITE_URL = os.getenv("SITE_URL", "https://fragrantique.net")
STOREFRONT_OWNER_USERNAME = os.getenv("STOREFRONT_OWNER_USERNAME", "stephanie")
DEFAULT_CURRENCY = "usd"
FLAT_SHIPPING_CENTS = 500
SALES_TAX_RATE = "0.07"
ALLOWED_SHIP_COUNTRIES = ["US", "CA", "GB", "AU", "DE", "FR", "NL", "SE", "IT", "ES"]
BOUTIQUE_SHELVES = 7        # 0 = top .. 6 = bottom
