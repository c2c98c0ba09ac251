"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes, one per role
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import text

from app.core.config import get_settings
from app.db.postgres import get_db_session

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # Verify user exists
    with get_db_session() as db:
        result = db.execute(
            text("SELECT user_id, email, role, is_active FROM users WHERE user_id = :id"),
            {"id": int(user_id)}
        )
        user = result.fetchone()

    if not user:
        raise credentials_exception

    if not user[3]:  # is_active
        raise HTTPException(status_code=403, detail="Account deactivated")

    return {"user_id": user[0], "email": user[1], "role": user[2]}


# role -> (table, id column) of the role-specific row created at signup
ROLE_TABLES = {
    "student": ("students", "student_id"),
    "mentor": ("mentors", "mentor_id"),
    "employer": ("employers", "employer_id"),
}


def _attach_role_id(user: dict, role: str) -> dict:
    """Require `role` and add its role-specific id (e.g. student_id) to user."""
    if user["role"] != role:
        raise HTTPException(status_code=403, detail=f"{role.capitalize()}s only")

    table, id_column = ROLE_TABLES[role]
    with get_db_session() as db:
        result = db.execute(
            text(f"SELECT {id_column} FROM {table} WHERE user_id = :id"),
            {"id": user["user_id"]}
        )
        row = result.fetchone()

    if not row:
        raise HTTPException(status_code=404, detail=f"{role.capitalize()} profile not found")

    user[id_column] = row[0]
    return user


async def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require student role and get student_id."""
    return _attach_role_id(user, "student")


async def get_current_mentor(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require mentor role and get mentor_id."""
    return _attach_role_id(user, "mentor")


async def get_current_employer(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require employer role and get employer_id."""
    return _attach_role_id(user, "employer")


async def get_current_member(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Any role; adds the caller's role-specific id as `role_id`."""
    if user["role"] not in ROLE_TABLES:
        raise HTTPException(status_code=403, detail="Unsupported role")
    user = _attach_role_id(user, user["role"])
    user["role_id"] = user[ROLE_TABLES[user["role"]][1]]
    return user
