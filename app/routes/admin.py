"""
Admin Routes - reporting and account management

Every endpoint requires an admin-role session. Admin accounts and the
proposals they own never appear in any report.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.middleware.auth import require_admin
from app.models.schemas import AdminUpdateUserRequest, UserOut
from app.services.analytics_service import AnalyticsService, get_analytics_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ===================== REPORTS =====================

@router.get("/stats")
def get_stats(service: AnalyticsService = Depends(get_analytics_service)):
    stats = service.stats()
    usage_chart = stats.pop("usageChart")
    return {"success": True, "stats": stats, "usageChart": usage_chart}


@router.get("/users")
def list_users(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    search: str = Query(""),
    sortKey: Optional[str] = Query(None),
    sortDir: Optional[str] = Query(None),
    plan: Optional[str] = Query(None, description="All, Free or Pro"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    result = service.list_users(
        page=page, limit=limit, search=search, sort_key=sortKey, sort_dir=sortDir, plan=plan
    )
    return {"success": True, **result}


@router.get("/proposals")
def list_proposals(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    search: str = Query(""),
    sortKey: Optional[str] = Query(None),
    sortDir: Optional[str] = Query(None),
    service: AnalyticsService = Depends(get_analytics_service),
):
    result = service.list_proposals(page=page, limit=limit, search=search, sort_key=sortKey, sort_dir=sortDir)
    return {"success": True, **result}


@router.get("/activity")
def get_activity(
    limit: Optional[int] = Query(None),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return {"success": True, "feed": service.activity(limit)}


@router.get("/usage")
def get_usage(
    days: Optional[int] = Query(None),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return {"success": True, **service.usage(days)}


@router.get("/settings")
def get_settings(service: AnalyticsService = Depends(get_analytics_service)):
    return {"success": True, "settings": service.admin_settings()}


@router.get("/geo")
def get_geo(service: AnalyticsService = Depends(get_analytics_service)):
    return {"success": True, **service.geo()}


# ===================== MUTATIONS =====================

@router.patch("/users/{user_id}")
def update_user(
    user_id: str,
    body: AdminUpdateUserRequest,
    service: AnalyticsService = Depends(get_analytics_service),
):
    user = service.update_user(user_id, plan=body.plan, role=body.role)
    return {"success": True, "user": UserOut.from_doc(user).to_response()}


@router.delete("/users/{user_id}")
def delete_user(user_id: str, service: AnalyticsService = Depends(get_analytics_service)):
    return {"success": True, **service.delete_user(user_id)}


@router.delete("/proposals/{proposal_id}")
def delete_proposal(proposal_id: str, service: AnalyticsService = Depends(get_analytics_service)):
    service.delete_proposal(proposal_id)
    return {"success": True, "message": "Proposal deleted."}
