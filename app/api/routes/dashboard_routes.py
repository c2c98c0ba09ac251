"""
Dashboard Routes

GET /dashboard/stats - Role-specific counters
GET /dashboard/activities - Recent activity feed
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from app.core.auth import get_current_member
from app.core.config import get_settings
from app.services.activity_service import ActivityService, get_activity_service
from app.services.dashboard_service import get_dashboard_stats
from app.schemas.schemas import DashboardStatsResponse, ActivityResponse

settings = get_settings()

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def stats(member: dict = Depends(get_current_member)):
    """Counters for the caller's dashboard cards."""
    try:
        counters = get_dashboard_stats(member["role"], member["role_id"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DashboardStatsResponse(role=member["role"], stats=counters)


@router.get("/activities", response_model=List[ActivityResponse])
async def activities(
    limit: Optional[int] = Query(None, ge=1, le=50),
    member: dict = Depends(get_current_member),
    service: ActivityService = Depends(get_activity_service)
):
    """Most recent activities for the caller, newest first."""
    docs = service.recent(member["user_id"], limit or settings.activity_feed_limit)
    return [ActivityResponse(**doc) for doc in docs]
