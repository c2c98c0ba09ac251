"""
SkillBridge Marketplace - Main Application

FastAPI backend with:
- PostgreSQL for users, profiles, marketplace and session data
- MongoDB for the activity feed
- JWT authentication for students, mentors and employers

Run: uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.db.mongodb import init_mongo_indexes
from app.core.config import get_settings
from app.core.logger import setup_logging

settings = get_settings()

setup_logging(settings.log_level)
logger = logging.getLogger("app.main")

# Create FastAPI app
app = FastAPI(
    title="SkillBridge Marketplace",
    description="""
    A job, project and mentorship marketplace.

    ## Features
    - **Authentication**: JWT-based auth for students, mentors and employers
    - **Students**: Profile, skills, project applications, ranked project matches
    - **Mentors**: Profile, expertise, mentees
    - **Employers**: Projects and jobs with applicant management
    - **Sessions**: Mentorship sessions and employer interviews
    - **Dashboard**: Role-specific stats and activity feed

    ## Databases
    - PostgreSQL: Structured data (users, profiles, projects, jobs, sessions)
    - MongoDB: Activity feed documents
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "SkillBridge Marketplace"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    from app.db.postgres import test_postgres_connection
    from app.db.mongodb import test_mongo_connection

    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
