from fastapi import APIRouter

from it13.modules.auth import router as auth_router
from it13.modules.technician_applications import router as technician_applications_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    technician_applications_router,
    prefix="/technician-applications",
    tags=["Technician Applications"],
)
