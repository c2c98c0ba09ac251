"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    mentor = "mentor"
    employer = "employer"


class ProficiencyLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    expert = "expert"


class CompanySize(str, Enum):
    startup = "startup"
    small = "small"
    medium = "medium"
    large = "large"
    enterprise = "enterprise"


class ProjectStatus(str, Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class ProjectApplicationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class JobType(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    internship = "internship"
    contract = "contract"


class JobStatus(str, Enum):
    draft = "draft"
    open = "open"
    closed = "closed"
    filled = "filled"


class JobApplicationStatus(str, Enum):
    applied = "applied"
    under_review = "under_review"
    shortlisted = "shortlisted"
    interviewed = "interviewed"
    offered = "offered"
    rejected = "rejected"
    withdrawn = "withdrawn"


class SessionStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=100)
    role: UserRole

class RegisterResponse(BaseModel):
    user_id: int
    email: str
    full_name: str
    role: str
    message: str

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str

class UserResponse(BaseModel):
    user_id: int
    email: str
    role: str
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    created_at: datetime


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class StudentUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    bio: Optional[str] = None
    education: Optional[str] = None
    interests: Optional[List[str]] = None

class StudentResponse(BaseModel):
    student_id: int
    user_id: int
    full_name: Optional[str] = None
    email: str
    bio: Optional[str] = None
    education: Optional[str] = None
    interests: List[str] = []
    skills: List[str] = []
    created_at: datetime

class StudentDirectoryEntry(BaseModel):
    """A student as listed to mentors and employers picking a session counterpart."""
    student_id: int
    user_id: int
    full_name: Optional[str] = None
    email: str
    avatar_url: Optional[str] = None

class SkillAdd(BaseModel):
    skill_name: str = Field(..., min_length=1, max_length=100)
    proficiency_level: ProficiencyLevel = ProficiencyLevel.intermediate


# ============================================================
# MENTOR SCHEMAS
# ============================================================

class MentorUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    bio: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0, le=70)
    hourly_rate: Optional[float] = Field(None, ge=0)

class MentorResponse(BaseModel):
    mentor_id: int
    user_id: int
    full_name: Optional[str] = None
    email: str
    bio: Optional[str] = None
    years_of_experience: Optional[int] = None
    hourly_rate: Optional[float] = None
    expertise: List[str] = []
    created_at: datetime

class ExpertiseAdd(BaseModel):
    skill_name: str = Field(..., min_length=1, max_length=100)
    years_of_experience: int = Field(0, ge=0, le=70)


# ============================================================
# EMPLOYER SCHEMAS
# ============================================================

class EmployerUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=2, max_length=200)
    industry: Optional[str] = None
    company_size: Optional[CompanySize] = None
    website: Optional[str] = None

class EmployerResponse(BaseModel):
    employer_id: int
    user_id: int
    company_name: str
    email: str
    industry: Optional[str] = None
    company_size: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime


# ============================================================
# PROJECT SCHEMAS
# ============================================================

class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    is_paid: bool = False
    budget: Optional[float] = Field(None, ge=0)
    deadline: Optional[datetime] = None
    technologies: List[str] = []

class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    is_paid: Optional[bool] = None
    budget: Optional[float] = Field(None, ge=0)
    deadline: Optional[datetime] = None
    status: Optional[ProjectStatus] = None

class ProjectResponse(BaseModel):
    project_id: int
    employer_id: int
    company_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    is_paid: bool
    budget: Optional[float] = None
    deadline: Optional[datetime] = None
    technologies: List[str] = []
    created_at: datetime
    applied: Optional[bool] = None
    relevance_score: Optional[float] = None

class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int

class ProjectApplicationCreate(BaseModel):
    cover_letter: Optional[str] = None

class ProjectApplicationResponse(BaseModel):
    application_id: int
    project_id: int
    project_title: str
    student_id: int
    student_name: Optional[str] = None
    cover_letter: Optional[str] = None
    status: str
    applied_at: datetime

class ProjectApplicationStatusUpdate(BaseModel):
    status: ProjectApplicationStatus


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    job_type: JobType = JobType.full_time
    location: Optional[str] = None
    is_remote: bool = False
    min_salary: Optional[float] = Field(None, ge=0)
    max_salary: Optional[float] = Field(None, ge=0)
    currency: str = "USD"
    required_skills: List[str] = []

class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    job_type: Optional[JobType] = None
    location: Optional[str] = None
    is_remote: Optional[bool] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    status: Optional[JobStatus] = None

class JobResponse(BaseModel):
    job_id: int
    employer_id: int
    company_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    job_type: str
    location: Optional[str] = None
    is_remote: bool
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    currency: str
    status: str
    required_skills: List[str] = []
    created_at: datetime

class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int
    page: int
    page_size: int

class JobApplicationCreate(BaseModel):
    cover_letter: Optional[str] = None

class JobApplicationStatusUpdate(BaseModel):
    status: JobApplicationStatus

class JobApplicationResponse(BaseModel):
    application_id: int
    job_id: int
    job_title: str
    company_name: Optional[str] = None
    student_id: int
    student_name: Optional[str] = None
    status: str
    cover_letter: Optional[str] = None
    applied_at: datetime
    updated_at: datetime


# ============================================================
# ASSESSMENT SCHEMAS
# ============================================================

class AssessmentQuestionCreate(BaseModel):
    job_id: Optional[int] = None
    question: str = Field(..., min_length=3)
    options: List[str] = Field(..., min_length=2, max_length=10)
    correct_option: int = Field(..., ge=0, description="Index into options")

    @model_validator(mode="after")
    def check_correct_option(self):
        if self.correct_option >= len(self.options):
            raise ValueError("correct_option must point at one of the options")
        return self

class AssessmentQuestionResponse(BaseModel):
    question_id: int
    employer_id: int
    job_id: Optional[int] = None
    question: str
    options: List[str]
    correct_option: int
    created_at: datetime


# ============================================================
# SESSION SCHEMAS
# ============================================================

class SessionCreate(BaseModel):
    counterpart_id: int = Field(..., description="mentor_id for students, student_id for mentors and employers")
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    scheduled_at: datetime
    meeting_link: Optional[str] = None
    job_id: Optional[int] = None

class SessionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    meeting_link: Optional[str] = None
    status: Optional[SessionStatus] = None

class SessionResponse(BaseModel):
    session_id: int
    title: str
    description: Optional[str] = None
    scheduled_at: datetime
    status: str
    meeting_link: Optional[str] = None
    counterpart_id: int
    counterpart_name: Optional[str] = None


# ============================================================
# DASHBOARD SCHEMAS
# ============================================================

class DashboardStatsResponse(BaseModel):
    role: str
    stats: Dict[str, int]

class ActivityResponse(BaseModel):
    activity_type: str
    title: str
    description: Optional[str] = None
    metadata: Dict[str, Any] = {}
    created_at: datetime


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    detail: str
