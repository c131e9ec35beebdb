# src/router/routers.py

from fastapi import FastAPI
from src.auth.auth_controller import router as auth_router
from src.modules.patients.patients_controller import router as patients_router
from src.modules.consultations.consultations_controller import router as consultations_router
from src.modules.maternity.maternity_controller import router as maternity_router
from src.modules.babies.babies_controller import router as babies_router
from src.modules.bmi.bmi_controller import router as bmi_router
from src.modules.appointments.appointments_controller import router as appointments_router
from src.modules.schedules.schedules_controller import router as schedules_router
from src.modules.archive.archive_controller import router as archive_router
from src.modules.admin.admin_controller import router as admin_router
from src.modules.audit.audit_controller import router as audit_router
from src.modules.ai.ai_controller import router as ai_router
from src.modules.realtime.realtime_controller import router as realtime_router

def include_routers(app: FastAPI) -> None:
    """Include all API routers in the FastAPI application."""
    app.include_router(auth_router)
    app.include_router(patients_router)
    app.include_router(consultations_router)
    app.include_router(maternity_router)
    app.include_router(babies_router)
    app.include_router(bmi_router)
    app.include_router(appointments_router)
    app.include_router(schedules_router)
    app.include_router(archive_router)
    app.include_router(admin_router)
    app.include_router(audit_router)
    app.include_router(ai_router)
    app.include_router(realtime_router)
