"""
Authentication Routes

POST /auth/register - Register new user (creates profile and role row)
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from app.core.config import get_settings
from app.core.exceptions import DependencyNotReady, PermanentInsertFailure
from app.db.datastore import DatastoreError, DatastoreErrorKind, get_datastore
from app.db.postgres import get_db_session
from app.core.auth import (
    hash_password, verify_password, create_access_token, get_current_user, ROLE_TABLES
)
from app.services.record_creator import DependentRecordCreator
from app.schemas.schemas import (
    RegisterRequest, RegisterResponse, LoginRequest, TokenResponse, UserResponse
)

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _log_retry(table: str):
    def on_retry(attempt, error, delay):
        logger.warning(
            "%s insert hit FK violation (attempt %d), retrying in %.0fms: %s",
            table, attempt, delay * 1000, error.message
        )
    return on_retry


async def _create_dependent(datastore, table: str, fields: dict) -> dict:
    """Create a row that references the new users row, mapping failures to HTTP errors."""
    creator = DependentRecordCreator(
        datastore,
        table,
        max_attempts=settings.profile_max_attempts,
        base_delay=settings.profile_base_delay,
        on_retry=_log_retry(table),
    )
    try:
        return await creator.create(fields)
    except DependencyNotReady as e:
        logger.error("Gave up creating %s after %d attempts: %s", table, e.attempts, e.message)
        raise HTTPException(
            status_code=503,
            detail="Account setup is taking longer than expected. Please try again."
        )
    except PermanentInsertFailure as e:
        logger.error("Could not create %s: %s", table, e.message)
        if e.kind == DatastoreErrorKind.UNIQUE_VIOLATION:
            raise HTTPException(status_code=409, detail=f"{table[:-1].capitalize()} already exists")
        raise HTTPException(status_code=500, detail="Failed to create user profile")


def _discard_user(datastore, user_id: int, role_table: str):
    """Remove the rows of a signup that could not finish."""
    try:
        for table in (role_table, "profiles", "users"):
            datastore.delete(table, {"user_id": user_id})
    except DatastoreError as e:
        logger.error("Could not roll back signup for user %s: %s", user_id, e.message)
    else:
        logger.info("Rolled back incomplete signup for user %s", user_id)


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(request: RegisterRequest, datastore=Depends(get_datastore)):
    """
    Register a new user account.

    Creates the users row, then the profile and the role row (students,
    mentors or employers). Both reference users.user_id and are retried
    with backoff while the new user is not yet visible. If either fails,
    the rows created so far are deleted again.
    """
    if datastore.find_one("users", {"email": request.email}):
        raise HTTPException(status_code=409, detail="Email already registered")

    try:
        user = datastore.insert("users", {
            "email": request.email,
            "password_hash": hash_password(request.password),
            "role": request.role.value,
        })
    except DatastoreError as e:
        if e.kind == DatastoreErrorKind.UNIQUE_VIOLATION:
            raise HTTPException(status_code=409, detail="Email already registered")
        logger.error("Failed to create user account: %s", e.message)
        raise HTTPException(status_code=500, detail="Failed to create user account")

    user_id = user["user_id"]
    role_table, _ = ROLE_TABLES[request.role.value]
    role_fields = {"user_id": user_id}
    if request.role.value == "employer":
        role_fields["company_name"] = request.full_name

    try:
        await _create_dependent(datastore, "profiles", {
            "user_id": user_id,
            "full_name": request.full_name,
            "email": request.email,
            "role": request.role.value,
        })
        await _create_dependent(datastore, role_table, role_fields)
    except HTTPException:
        # A failed signup leaves no users row, so the same email can retry
        _discard_user(datastore, user_id, role_table)
        raise

    logger.info("Registered user %s as %s", user_id, request.role.value)
    return RegisterResponse(
        user_id=user_id,
        email=request.email,
        full_name=request.full_name,
        role=request.role.value,
        message=f"Registered successfully as {request.role.value}. Please login."
    )


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    with get_db_session() as db:
        result = db.execute(
            text("SELECT user_id, password_hash, role, is_active FROM users WHERE email = :email"),
            {"email": request.email}
        )
        user = result.fetchone()

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user_id, password_hash, role, is_active = user

    if not is_active:
        raise HTTPException(status_code=403, detail="Account deactivated")

    if not verify_password(request.password, password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(data={"sub": str(user_id), "role": role})

    return TokenResponse(access_token=token, user_id=user_id, role=role)


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info with profile."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                SELECT u.user_id, u.email, u.role, p.full_name, p.bio, p.avatar_url,
                       u.is_active, u.created_at
                FROM users u LEFT JOIN profiles p ON p.user_id = u.user_id
                WHERE u.user_id = :id
            """),
            {"id": user["user_id"]}
        )
        row = result.fetchone()

    return UserResponse(
        user_id=row[0], email=row[1], role=row[2], full_name=row[3], bio=row[4],
        avatar_url=row[5], is_active=row[6], created_at=row[7]
    )
