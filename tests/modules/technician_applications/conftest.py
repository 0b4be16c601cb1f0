"""
Fixtures for technician applications tests.
"""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from it13.core.exceptions import UpstreamError
from it13.core.storage import DeleteResult, DocHandle
from it13.modules.technician_applications.documents import IncomingFile
from it13.modules.technician_applications.models import ApplicationStatus, TechnicianApplication


class FakeBlobStore:
    """
    In-memory blob store.

    ``fail_on_upload`` makes the n-th upload (1-based) raise, the way a
    network error from the real store would surface.
    """

    def __init__(self, fail_on_upload: int | None = None, fail_deletes: set[str] | None = None):
        self.fail_on_upload = fail_on_upload
        self.fail_deletes = fail_deletes or set()
        self.uploads: list[str] = []
        self.deleted: list[str] = []
        self._calls = 0

    async def upload(self, content: bytes, filename: str, kind: str, owner_id: str) -> DocHandle:
        self._calls += 1
        if self.fail_on_upload == self._calls:
            raise UpstreamError("Le téléversement du document a échoué.")
        public_id = f"it13_docs/{owner_id}_{kind}_{self._calls}_{filename}"
        self.uploads.append(public_id)
        return DocHandle(
            public_id=public_id,
            url=f"https://res.cloudinary.com/demo/raw/upload/{public_id}",
            resource_type="raw",
            bytes=len(content),
        )

    async def delete(self, public_id: str) -> DeleteResult:
        if public_id in self.fail_deletes:
            raise UpstreamError(f"Suppression du document {public_id} impossible.")
        self.deleted.append(public_id)
        return DeleteResult(ok=True)

    @property
    def remaining(self) -> list[str]:
        return [public_id for public_id in self.uploads if public_id not in self.deleted]


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def valid_application_data():
    """A payload that passes every intake rule."""
    return {
        "personalInfo": {
            "fullName": "Jean Dupont",
            "email": "Jean.Dupont@Example.fr",
            "phone": "06 12 34 56 78",
            "location": "Paris 13e",
        },
        "professionalInfo": {
            "specialization": "Réseaux et systèmes",
            "yearsExperience": "5",
            "certifications": "CCNA",
            "availability": "Temps plein",
            "toolsEquipment": "Multimètre, testeur réseau",
        },
        "background": {
            "education": "BTS SIO",
            "workHistory": "3 ans chez un intégrateur",
            "references": "",
        },
        "additionalInfo": {
            "skills": "Dépannage, <b>câblage</b>",
            "languages": "Français, anglais",
            "transportAvailable": True,
        },
    }


@pytest.fixture
def valid_application_json(valid_application_data):
    return json.dumps(valid_application_data)


def make_file(filename: str = "cv.pdf", content_type: str = "application/pdf", size: int = 1024):
    return IncomingFile(filename=filename, content_type=content_type, content=b"x" * size)


@pytest.fixture
def cv_file():
    return make_file("cv.pdf")


@pytest.fixture
def diploma_files():
    return [make_file("bts.pdf"), make_file("licence.png", "image/png")]


@pytest.fixture
def motivation_letter_file():
    return make_file(
        "lettre.docx",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )


def make_documents(owner: str = "1700000000000_jean_dupont", diplomas: int = 1) -> dict:
    def handle(name: str) -> dict:
        public_id = f"it13_docs/{owner}_{name}"
        return {
            "publicId": public_id,
            "url": f"https://res.cloudinary.com/demo/raw/upload/{public_id}",
            "resourceType": "raw",
            "bytes": 1024,
        }

    return {
        "cv": handle("cv"),
        "diplomas": [handle(f"diploma_{i}") for i in range(diplomas)],
        "motivationLetter": handle("motivation_letter"),
    }


def make_application_row(status: ApplicationStatus = ApplicationStatus.PENDING, **overrides):
    """Create a stored application row."""
    row = MagicMock(spec=TechnicianApplication)
    row.id = uuid4()
    row.applicant_id = "1700000000000_jean_dupont"
    row.personal_info = {
        "fullName": "Jean Dupont",
        "email": "jean.dupont@example.fr",
        "phone": "06 12 34 56 78",
        "location": "Paris 13e",
    }
    row.professional_info = {"specialization": "Réseaux et systèmes", "yearsExperience": 5}
    row.background = {}
    row.additional_info = {"transportAvailable": True}
    row.documents = make_documents()
    row.status = status
    row.admin_notes = None
    row.technician_id = None
    row.submitted_at = datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    row.updated_at = row.submitted_at
    for key, value in overrides.items():
        setattr(row, key, value)
    return row


@pytest.fixture
def pending_row():
    return make_application_row(ApplicationStatus.PENDING)


@pytest.fixture
def file_factory():
    return make_file


@pytest.fixture
def row_factory():
    return make_application_row


@pytest.fixture
def store_factory():
    return FakeBlobStore
