"""
Technician Applications Schemas

Pydantic schemas for the stored application sections, request bodies and
response envelopes. JSON keys are camelCase on the wire and in storage.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from it13.core.storage import DocHandle
from it13.modules.technician_applications.models import ApplicationStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================
# Application sections
# ============================================


class PersonalInfo(CamelModel):
    full_name: str
    email: str
    phone: str
    location: str


class ProfessionalInfo(CamelModel):
    specialization: str
    years_experience: int = Field(0, ge=0)
    certifications: str = ""
    availability: str = ""
    tools_equipment: str = ""


class Background(CamelModel):
    education: str = ""
    work_history: str = ""
    references: str = ""


class AdditionalInfo(CamelModel):
    skills: str = ""
    languages: str = ""
    transport_available: bool = False


class ApplicationSubmission(CamelModel):
    """Sanitised form payload, ready to persist."""

    personal_info: PersonalInfo
    professional_info: ProfessionalInfo
    background: Background = Field(default_factory=Background)
    additional_info: AdditionalInfo = Field(default_factory=AdditionalInfo)


class ApplicationDocuments(CamelModel):
    cv: DocHandle
    diplomas: list[DocHandle] = Field(default_factory=list)
    motivation_letter: DocHandle | None = None

    def public_ids(self) -> list[str]:
        """Every handle, in upload order."""
        handles = [self.cv, *self.diplomas]
        if self.motivation_letter:
            handles.append(self.motivation_letter)
        return [handle.public_id for handle in handles]


class Application(CamelModel):
    """Typed view of a stored application."""

    id: UUID
    applicant_id: str
    personal_info: PersonalInfo
    professional_info: ProfessionalInfo
    background: Background
    additional_info: AdditionalInfo
    documents: ApplicationDocuments
    status: ApplicationStatus
    admin_notes: str | None = None
    technician_id: UUID | None = None
    submitted_at: datetime
    updated_at: datetime


# ============================================
# Requests
# ============================================


class StatusUpdateRequest(CamelModel):
    """Request body for PATCH /technician-applications/{id}/status."""

    status: ApplicationStatus
    notes: str | None = Field(None, max_length=2000)


class ApproveRequest(CamelModel):
    """Request body for POST /technician-applications/{id}/approve."""

    notes: str | None = Field(None, max_length=2000)


# ============================================
# Responses
# ============================================


class DocumentsUploaded(CamelModel):
    cv: bool
    diplomas: int
    motivation_letter: bool


class SubmissionData(CamelModel):
    application_id: UUID
    applicant_id: str
    status: ApplicationStatus
    documents_uploaded: DocumentsUploaded


class SubmissionResponse(CamelModel):
    """Response for POST /technician-applications."""

    success: bool = True
    message: str
    data: SubmissionData


class ApplicationResponse(CamelModel):
    success: bool = True
    data: Application


class ApplicationListResponse(CamelModel):
    success: bool = True
    data: list[Application]
    total: int


class TransitionData(CamelModel):
    application_id: UUID
    status: ApplicationStatus
    technician_id: UUID | None = None
    email_sent: bool | None = None


class TransitionResponse(CamelModel):
    """Response for status changes and approvals."""

    success: bool = True
    message: str
    data: TransitionData


class DeleteResponse(CamelModel):
    success: bool = True
    message: str
