"""
Fixtures for technician account tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from it13.core.storage import DocHandle
from it13.modules.technician_applications.models import ApplicationStatus
from it13.modules.technician_applications.schemas import (
    AdditionalInfo,
    Application,
    ApplicationDocuments,
    Background,
    PersonalInfo,
    ProfessionalInfo,
)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def approved_application():
    """An application in the middle of being approved."""
    now = datetime.now(UTC)
    return Application(
        id=uuid4(),
        applicant_id="1700000000000_jean_pierre_dupont",
        personal_info=PersonalInfo(
            full_name="Jean Pierre Dupont",
            email="Jean.Dupont@Example.fr",
            phone="06 12 34 56 78",
            location="Paris",
        ),
        professional_info=ProfessionalInfo(specialization="Réseaux", years_experience=4),
        background=Background(),
        additional_info=AdditionalInfo(),
        documents=ApplicationDocuments(
            cv=DocHandle(
                public_id="it13_docs/1700000000000_jean_pierre_dupont_cv",
                url="https://res.cloudinary.com/demo/raw/upload/cv.pdf",
                resource_type="raw",
            )
        ),
        status=ApplicationStatus.REVIEWING,
        submitted_at=now,
        updated_at=now,
    )
