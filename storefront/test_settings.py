from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
ADMIN_EMAIL = "owner@fragrantique.test"
CONTACT_EMAIL = ADMIN_EMAIL

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

STRIPE_MODE = "test"
STRIPE_KEYS = {
    "test": {
        "secret_key": "sk_test_1234567890abcdef",
        "publishable_key": "pk_test_1234567890abcdef",
        "webhook_secret": "whsec_test_secret",
    },
    "live": {"secret_key": "", "publishable_key": "", "webhook_secret": ""},
}

REMOVE_BG_API_KEY = "rbg-test"
SHIPPO_API_TOKEN = "shippo_test_token"
STOREFRONT_OWNER_USERNAME = "stephanie"
SITE_URL = "https://shop.test"
