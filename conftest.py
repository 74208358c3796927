"""
Shared fixtures for Venue service tests.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.config import ServiceConfig
from shared.test_helpers import InMemoryVenueRepository, TEST_JWT_SECRET
from service_venue.app.models import Location, Table


@pytest.fixture
def service_config():
    """Configuration that needs no environment."""
    return ServiceConfig(
        identity_service_url="http://identity.test",
        jwt_secret=TEST_JWT_SECRET,
        postgres_dsn="postgres://unused:5432/venue",
        log_level="warning",
    )


@pytest.fixture
def repository():
    return InMemoryVenueRepository()


@pytest.fixture
def identity():
    """Identity gateway double; defaults to a non-admin with no assignments."""
    gateway = MagicMock()
    gateway.is_admin = AsyncMock(return_value=False)
    gateway.get_assigned_locations = AsyncMock(return_value=[])
    gateway.health_check = AsyncMock(return_value=True)
    gateway.close = AsyncMock()
    return gateway


@pytest.fixture
def make_location():
    def _make(code: str, location_id: str = None, is_active: bool = True) -> Location:
        return Location(
            id=location_id or str(uuid.uuid4()),
            code=code,
            name=f"Venue {code}",
            address=f"{code} Main Street",
            is_active=is_active
        )
    return _make


@pytest.fixture
def make_table():
    def _make(location_id: str, code: str, seats: int = 4, table_id: str = None,
              is_active: bool = True) -> Table:
        return Table(
            id=table_id or str(uuid.uuid4()),
            location_id=location_id,
            code=code,
            seats=seats,
            is_active=is_active
        )
    return _make
