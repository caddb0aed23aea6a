import copy

import pytest


@pytest.fixture(autouse=True)
def _plain_http_test_client(settings):
    # API tests talk plain http to testserver; secure cookies would drop the session
    settings.SECURE_SSL_REDIRECT = False
    settings.SESSION_COOKIE_SECURE = False
    settings.CSRF_COOKIE_SECURE = False
    settings.SECURE_HSTS_SECONDS = 0


@pytest.fixture
def tracking_settings(settings):
    """
    Per-test copy of settings.TRACKING; mutate the returned dict freely.
    """
    settings.TRACKING = copy.deepcopy(settings.TRACKING)
    return settings.TRACKING
