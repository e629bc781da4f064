import pytest
from django.core.cache import caches
from rest_framework.test import APIClient

from analytics.cache import ResultCache
from analytics.services import AnalyticsService, get_analytics_service
from authentication.models import User, UserRole

from .helpers import FakeStore


@pytest.fixture(autouse=True)
def _clear_caches(request):
    caches['default'].clear()
    # The analytics cache lives in the database; only tests with database
    # access can touch it, and their writes are rolled back afterwards
    if 'db' in request.fixturenames or request.node.get_closest_marker('django_db'):
        request.getfixturevalue('db')
        get_analytics_service().cache.clear()
    yield


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        identifier='admin@test.local',
        password='Admin@123',
        role=UserRole.ADMIN,
        is_staff=True,
    )


@pytest.fixture
def driver_user(db):
    return User.objects.create_driver(
        identifier='driver@test.local',
        password='Driver@123',
        full_name='Test Driver',
    )


@pytest.fixture
def other_driver(db):
    return User.objects.create_driver(
        identifier='driver2@test.local',
        password='Driver@123',
    )


@pytest.fixture
def citizen_user(db):
    return User.objects.create_user(
        identifier='citizen@test.local',
        password='Citizen@123',
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def driver_client(driver_user):
    client = APIClient()
    client.force_authenticate(user=driver_user)
    return client


@pytest.fixture
def citizen_client(citizen_user):
    client = APIClient()
    client.force_authenticate(user=citizen_user)
    return client


@pytest.fixture
def memory_cache():
    from django.core.cache.backends.locmem import LocMemCache
    backend = LocMemCache('analytics-tests', {})
    backend.clear()
    return ResultCache(backend, ttl=300)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def service(fake_store, memory_cache):
    return AnalyticsService(store=fake_store, cache=memory_cache)
