"""
Mentor Routes

GET /mentors - Mentor directory (for students booking sessions)
GET /mentors/profile - Get own profile
PUT /mentors/profile - Update profile
GET /mentors/expertise - Get expertise
POST /mentors/expertise - Add expertise
DELETE /mentors/expertise/{skill_id} - Remove expertise
GET /mentors/students - Students mentored through sessions
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text
from typing import List, Optional

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.auth import get_current_user, get_current_mentor
from app.services.skill_service import get_or_create_skill
from app.schemas.schemas import (
    MentorUpdate, MentorResponse, ExpertiseAdd, MessageResponse
)

router = APIRouter(prefix="/mentors", tags=["Mentors"])

PROFILE_FIELDS = ["full_name", "bio"]
MENTOR_FIELDS = ["years_of_experience", "hourly_rate"]

MENTOR_SELECT = """
    SELECT m.mentor_id, m.user_id, p.full_name, u.email, p.bio,
           m.years_of_experience, m.hourly_rate, m.created_at,
           COALESCE(
               ARRAY_AGG(sk.skill_name ORDER BY sk.skill_name)
               FILTER (WHERE sk.skill_name IS NOT NULL), '{}'
           ) AS expertise
    FROM mentors m
    JOIN users u ON m.user_id = u.user_id
    LEFT JOIN profiles p ON p.user_id = m.user_id
    LEFT JOIN mentor_expertise me ON me.mentor_id = m.mentor_id
    LEFT JOIN skills sk ON me.skill_id = sk.skill_id
"""

MENTOR_GROUP_BY = """
    GROUP BY m.mentor_id, m.user_id, p.full_name, u.email, p.bio,
             m.years_of_experience, m.hourly_rate, m.created_at
"""


def _to_response(r: dict) -> MentorResponse:
    return MentorResponse(
        mentor_id=r["mentor_id"], user_id=r["user_id"], full_name=r["full_name"],
        email=r["email"], bio=r["bio"], years_of_experience=r["years_of_experience"],
        hourly_rate=float(r["hourly_rate"]) if r["hourly_rate"] is not None else None,
        expertise=list(r["expertise"] or []), created_at=r["created_at"]
    )


@router.get("", response_model=List[MentorResponse])
async def list_mentors(
    skill: Optional[str] = Query(None, description="Filter by expertise"),
    user: dict = Depends(get_current_user)
):
    """List mentors, optionally only those with a given expertise."""
    sql = MENTOR_SELECT
    params = {}
    if skill:
        sql += """
            WHERE m.mentor_id IN (
                SELECT me2.mentor_id FROM mentor_expertise me2
                JOIN skills sk2 ON me2.skill_id = sk2.skill_id
                WHERE LOWER(sk2.skill_name) = LOWER(:skill)
            )
        """
        params["skill"] = skill
    sql += MENTOR_GROUP_BY + " ORDER BY p.full_name"

    return [_to_response(r) for r in execute_raw_sql(sql, params)]


@router.get("/profile", response_model=MentorResponse)
async def get_profile(mentor: dict = Depends(get_current_mentor)):
    """Get current mentor's profile with expertise."""
    results = execute_raw_sql(
        MENTOR_SELECT + " WHERE m.mentor_id = :id " + MENTOR_GROUP_BY,
        {"id": mentor["mentor_id"]}
    )
    if not results:
        raise HTTPException(status_code=404, detail="Mentor profile not found")
    return _to_response(results[0])


@router.put("/profile", response_model=MessageResponse)
async def update_profile(data: MentorUpdate, mentor: dict = Depends(get_current_mentor)):
    """Update mentor profile. Only provided fields are updated."""
    profile_updates, mentor_updates = [], []
    params = {"id": mentor["mentor_id"], "user_id": mentor["user_id"]}

    for field in PROFILE_FIELDS + MENTOR_FIELDS:
        value = getattr(data, field)
        if value is not None:
            target = profile_updates if field in PROFILE_FIELDS else mentor_updates
            target.append(f"{field} = :{field}")
            params[field] = value

    if not profile_updates and not mentor_updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        if profile_updates:
            db.execute(
                text(f"UPDATE profiles SET {', '.join(profile_updates)}, updated_at = CURRENT_TIMESTAMP WHERE user_id = :user_id"),
                params
            )
        if mentor_updates:
            db.execute(
                text(f"UPDATE mentors SET {', '.join(mentor_updates)}, updated_at = CURRENT_TIMESTAMP WHERE mentor_id = :id"),
                params
            )

    return MessageResponse(message="Profile updated successfully")


@router.get("/expertise")
async def get_expertise(mentor: dict = Depends(get_current_mentor)):
    """Get all expertise entries for current mentor."""
    return execute_raw_sql("""
        SELECT sk.skill_id, sk.skill_name, sk.category, me.years_of_experience
        FROM mentor_expertise me JOIN skills sk ON me.skill_id = sk.skill_id
        WHERE me.mentor_id = :id ORDER BY sk.skill_name
    """, {"id": mentor["mentor_id"]})


@router.post("/expertise", response_model=MessageResponse)
async def add_expertise(expertise: ExpertiseAdd, mentor: dict = Depends(get_current_mentor)):
    """Add an area of expertise. Creates the skill if it doesn't exist."""
    with get_db_session() as db:
        skill_id = get_or_create_skill(db, expertise.skill_name)
        db.execute(
            text("""
                INSERT INTO mentor_expertise (mentor_id, skill_id, years_of_experience)
                VALUES (:mentor_id, :skill_id, :years)
                ON CONFLICT (mentor_id, skill_id) DO UPDATE SET years_of_experience = EXCLUDED.years_of_experience
            """),
            {"mentor_id": mentor["mentor_id"], "skill_id": skill_id, "years": expertise.years_of_experience}
        )

    return MessageResponse(message=f"Expertise '{expertise.skill_name}' added")


@router.delete("/expertise/{skill_id}", response_model=MessageResponse)
async def remove_expertise(skill_id: int, mentor: dict = Depends(get_current_mentor)):
    """Remove an area of expertise."""
    with get_db_session() as db:
        result = db.execute(
            text("DELETE FROM mentor_expertise WHERE mentor_id = :mid AND skill_id = :skid"),
            {"mid": mentor["mentor_id"], "skid": skill_id}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Expertise not found in profile")

    return MessageResponse(message="Expertise removed")


@router.get("/students")
async def get_mentees(mentor: dict = Depends(get_current_mentor)):
    """Students this mentor has sessions with, most recent session first."""
    return execute_raw_sql("""
        SELECT s.student_id, p.full_name, u.email,
               COUNT(ms.session_id) AS total_sessions,
               MAX(ms.scheduled_at) AS last_session_at
        FROM mentorship_sessions ms
        JOIN students s ON ms.student_id = s.student_id
        JOIN users u ON s.user_id = u.user_id
        LEFT JOIN profiles p ON p.user_id = s.user_id
        WHERE ms.mentor_id = :id
        GROUP BY s.student_id, p.full_name, u.email
        ORDER BY last_session_at DESC
    """, {"id": mentor["mentor_id"]})
