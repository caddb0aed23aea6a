"""
Settings for the pytest run: SQLite, eager Celery, fast hashing.
"""

import os

os.environ.setdefault("DJANGO_ENV", "test")

from .settings import *  # noqa: E402,F401,F403


CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

TRACKING = {
    **TRACKING,  # noqa: F405
    "FRONTEND_URL": "http://frontend.test",
    "STORES": {
        "fineyst-jackets": "http://jackets.test/api",
        "fineyst-patches": "",
    },
}

# let pytest's caplog see service logs
LOGGING["loggers"]["tracking_core"]["propagate"] = True  # noqa: F405
