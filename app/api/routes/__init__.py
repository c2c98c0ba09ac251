"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.auth_routes import router as auth_router
from app.api.routes.student_routes import router as student_router
from app.api.routes.mentor_routes import router as mentor_router
from app.api.routes.employer_routes import router as employer_router
from app.api.routes.job_routes import router as job_router
from app.api.routes.project_routes import router as project_router
from app.api.routes.session_routes import router as session_router
from app.api.routes.dashboard_routes import router as dashboard_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(student_router)
api_router.include_router(mentor_router)
api_router.include_router(employer_router)
api_router.include_router(job_router)
api_router.include_router(project_router)
api_router.include_router(session_router)
api_router.include_router(dashboard_router)
