"""
Pytest configuration and fixtures.
"""
import pytest
from django.conf import settings
import django
from django.core.management import call_command


def pytest_configure(config):
    """Configure Django settings for tests."""
    settings.DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': False,
    }
    django.setup()

    # The catalog tables are unmanaged in production; let syncdb build them here.
    from django.apps import apps
    for model in apps.get_app_config('access').get_models():
        model._meta.managed = True


@pytest.fixture(scope='session')
def django_db_setup(django_db_setup, django_db_blocker):
    """Set up test database with migrations."""
    with django_db_blocker.unblock():
        call_command('migrate', '--run-syncdb', verbosity=0)


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_token():
    """Return a factory for signed bearer tokens."""
    import jwt
    from datetime import datetime, timedelta, timezone

    def _make_token(identity='42', claim='user_id', expires_in=3600, **claims):
        payload = {
            claim: identity,
            'exp': datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            **claims,
        }
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    return _make_token


@pytest.fixture
def auth_client(api_client, make_token):
    """Return a factory for API clients authenticated as a given identity."""
    def _auth_client(identity='42', **claims):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {make_token(identity, **claims)}')
        return api_client

    return _auth_client
