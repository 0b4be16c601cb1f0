"""
Fixtures for authentication tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from it13.modules.admins.models import Admin
from it13.modules.technicians.models import Technician, TechnicianStatus


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


def make_technician(
    status: str = TechnicianStatus.ACTIVE.value,
    temporary: bool = False,
    temporary_expires: datetime | None = None,
    **overrides,
):
    """Create a technician row."""
    technician = MagicMock(spec=Technician)
    technician.id = uuid4()
    technician.email = "jean.dupont@example.fr"
    technician.name = "Jean"
    technician.surname = "Dupont"
    technician.full_name = "Jean Dupont"
    technician.status = status
    technician.password_hash = "$2b$12$hash"
    technician.is_temporary_password = temporary
    technician.must_change_password = temporary
    technician.temporary_password_expires = temporary_expires
    technician.password_reset_token = None
    technician.password_reset_expires = None
    for key, value in overrides.items():
        setattr(technician, key, value)
    return technician


@pytest.fixture
def technician_factory():
    return make_technician


@pytest.fixture
def active_technician():
    return make_technician()


@pytest.fixture
def temporary_technician():
    """Freshly approved technician still holding the temporary password."""
    return make_technician(
        temporary=True,
        temporary_expires=datetime.now(UTC) + timedelta(hours=23),
    )


@pytest.fixture
def admin():
    admin = MagicMock(spec=Admin)
    admin.id = uuid4()
    admin.email = "admin@it13.fr"
    admin.name = "Claire"
    admin.surname = "Martin"
    admin.full_name = "Claire Martin"
    admin.password_hash = "$2b$12$hash"
    return admin
