"""
Technician Applications Module

Handles the "become a technician" workflow:
1. Public submission with document uploads (rolled back on any failure)
2. Admin review: pending -> reviewing -> approved | rejected
3. Approval provisions a technician account with a 24-hour temporary password

API Endpoints:
- POST /technician-applications - Submit new application
- GET /technician-applications - List applications
- GET /technician-applications/{id} - Application detail
- PATCH /technician-applications/{id}/status - Change status
- POST /technician-applications/{id}/approve - Approve application
- DELETE /technician-applications/{id} - Delete application and documents
"""

from .router import router

__all__ = ["router"]
