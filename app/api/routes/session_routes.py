"""
Session Routes

GET /sessions - Own sessions (mentorship or employer, by role)
POST /sessions - Book a session with a counterpart
PUT /sessions/{session_id} - Update / reschedule / change status
DELETE /sessions/{session_id} - Delete a session
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text
from typing import List

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.auth import get_current_member
from app.services.activity_service import ActivityService, get_activity_service
from app.services.session_service import route_for_role, list_sessions_sql
from app.schemas.schemas import SessionCreate, SessionUpdate, SessionResponse, MessageResponse

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _route(member: dict):
    try:
        return route_for_role(member["role"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=List[SessionResponse])
async def list_sessions(member: dict = Depends(get_current_member)):
    """Sessions where the caller takes part, soonest first."""
    route = _route(member)
    results = execute_raw_sql(list_sessions_sql(route), {"owner_id": member["role_id"]})
    return [SessionResponse(**r) for r in results]


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    data: SessionCreate,
    member: dict = Depends(get_current_member),
    activities: ActivityService = Depends(get_activity_service)
):
    """
    Book a session. The caller is always the owner side: a student books
    with a mentor, a mentor with a student, an employer with an applicant.
    """
    route = _route(member)

    fields = {
        route.owner_column: member["role_id"],
        route.counterpart_column: data.counterpart_id,
        "title": data.title,
        "description": data.description,
        "scheduled_at": data.scheduled_at,
        "meeting_link": data.meeting_link,
    }
    if route.table == "employer_sessions":
        fields["job_id"] = data.job_id

    with get_db_session() as db:
        result = db.execute(
            text(f"SELECT 1 FROM {route.counterpart_table} WHERE {route.counterpart_key} = :id"),
            {"id": data.counterpart_id}
        )
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="Session participant not found")

        columns = ", ".join(fields)
        values = ", ".join(f":{c}" for c in fields)
        result = db.execute(
            text(f"INSERT INTO {route.table} ({columns}, status) VALUES ({values}, 'scheduled') RETURNING session_id"),
            fields
        )
        session_id = result.fetchone()[0]

    activities.record_quietly(
        member["user_id"], "session_scheduled", f"Scheduled {data.title}",
        metadata={"session_id": session_id, "scheduled_at": data.scheduled_at.isoformat()}
    )

    return SessionResponse(
        session_id=session_id, title=data.title, description=data.description,
        scheduled_at=data.scheduled_at, status="scheduled", meeting_link=data.meeting_link,
        counterpart_id=data.counterpart_id
    )


@router.put("/{session_id}", response_model=MessageResponse)
async def update_session(session_id: int, update: SessionUpdate, member: dict = Depends(get_current_member)):
    """Update a session the caller owns."""
    route = _route(member)

    updates = []
    params = {"sid": session_id, "owner_id": member["role_id"]}
    for field in ["title", "description", "scheduled_at", "meeting_link"]:
        value = getattr(update, field)
        if value is not None:
            updates.append(f"{field} = :{field}")
            params[field] = value
    if update.status:
        updates.append("status = :status")
        params["status"] = update.status.value

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        result = db.execute(
            text(f"""
                UPDATE {route.table} SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP
                WHERE session_id = :sid AND {route.owner_column} = :owner_id
            """),
            params
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Session not found")

    return MessageResponse(message="Session updated successfully")


@router.delete("/{session_id}", response_model=MessageResponse)
async def delete_session(session_id: int, member: dict = Depends(get_current_member)):
    """Delete a session the caller takes part in."""
    route = _route(member)
    with get_db_session() as db:
        result = db.execute(
            text(f"DELETE FROM {route.table} WHERE session_id = :sid AND {route.owner_column} = :owner_id"),
            {"sid": session_id, "owner_id": member["role_id"]}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Session not found")

    return MessageResponse(message="Session deleted successfully")
