"""Test settings.

In-memory SQLite, eager Celery, in-memory email and a fake payment
gateway so no test ever reaches Stripe.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'OPTIONS': {'transaction_mode': 'IMMEDIATE'},
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

TIME_ZONE = 'UTC'
BOOKING_CURRENCY = 'usd'
BOOKING_PAYMENT_GATEWAY = 'apps.finances.tests.fakes.FakeGateway'
STRIPE_SECRET_KEY = 'sk_test_dummy'

LOGGING["root"]["level"] = "CRITICAL"  # noqa: F405
for _logger in LOGGING["loggers"].values():  # noqa: F405
    _logger["level"] = "CRITICAL"
