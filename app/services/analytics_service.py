"""
Analytics Service

Admin reporting over users and proposals, including:
- Headline stats and the 6-month usage chart
- Paginated user and proposal listings
- Activity feed
- Usage analytics (daily series, per plan, top users, tones)
- Geographic distribution
- Admin mutations (plan/role changes, cascade deletes)

Admin accounts and proposals they own are excluded from every report.
"""
import math
import logging
from typing import Optional, List, Dict, Any, Tuple
from dataclasses import dataclass
from datetime import datetime, timedelta
from pymongo import ASCENDING, DESCENDING

from app.config import settings
from app.domain.constants import (
    Plan,
    ALLOWED_PLANS,
    ALLOWED_ROLES,
    MONTH_NAMES,
    USAGE_MONTHS,
    USAGE_DEFAULT_DAYS,
    USAGE_MIN_DAYS,
    USAGE_MAX_DAYS,
    TOP_USERS_LIMIT,
    GEO_TOP_N,
    GEO_OTHER_LABEL,
    PAGE_DEFAULT_LIMIT,
    PAGE_MAX_LIMIT,
    ACTIVITY_DEFAULT_LIMIT,
    ACTIVITY_MAX_LIMIT,
    USER_SORT_FIELDS,
    PROPOSAL_SORT_FIELDS,
    DEFAULT_SORT_KEY,
    DEFAULT_TONE,
    DEFAULT_LENGTH,
)
from app.domain.errors import NotFoundError, ValidationError
from app.models.schemas import UserOut, ProposalOut

logger = logging.getLogger(__name__)


def clamp(value: Optional[int], low: int, high: int, default: int) -> int:
    if value is None:
        return default
    return max(low, min(high, value))


def resolve_sort(sort_key: Optional[str], sort_dir: Optional[str], allowed: Dict[str, str]) -> Tuple[str, int]:
    """Map an API sort key onto a stored field; unknown keys sort by creation time, newest first."""
    if sort_key not in allowed:
        return allowed[DEFAULT_SORT_KEY], DESCENDING
    return allowed[sort_key], ASCENDING if sort_dir == "asc" else DESCENDING


def months_back(now: datetime, months: int) -> datetime:
    """First instant of the calendar month `months` before now's month."""
    index = now.year * 12 + (now.month - 1) - months
    return datetime(index // 12, index % 12 + 1, 1)


def bucket_countries(counts: List[Dict[str, Any]], top_n: int = GEO_TOP_N) -> Dict[str, Any]:
    """
    Keep the top_n countries and fold the rest into "Other".

    Args:
        counts: [{country, users}], largest first

    Returns:
        {"total": int, "distribution": [{country, users, pct}]}
    """
    total = sum(c["users"] for c in counts)
    if not total:
        return {"total": 0, "distribution": []}

    def row(country: str, users: int) -> Dict[str, Any]:
        return {"country": country, "users": users, "pct": round(users / total * 100, 1)}

    distribution = [row(c["country"], c["users"]) for c in counts[:top_n]]
    rest = sum(c["users"] for c in counts[top_n:])
    if rest:
        distribution.append(row(GEO_OTHER_LABEL, rest))
    return {"total": total, "distribution": distribution}


@dataclass
class Pagination:
    """Pagination block of a listing response."""
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
        }


class AnalyticsService:
    """
    Service for admin reporting and admin mutations.

    All aggregation lives in the repositories as named queries; this class
    clamps parameters, excludes admin data and shapes responses.
    """

    def __init__(self, user_repo, proposal_repo):
        self.user_repo = user_repo
        self.proposal_repo = proposal_repo

    # ===================== STATS =====================

    def stats(self, now: datetime = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        excluded = self.user_repo.admin_ids()
        total_users = self.user_repo.count_customers()
        total_proposals = self.proposal_repo.count_customer_proposals(exclude_user_ids=excluded)
        breakdown = self.user_repo.plan_breakdown()

        since = months_back(now, USAGE_MONTHS - 1)
        usage_chart = [
            {"month": MONTH_NAMES[row["month"] - 1], "proposals": row["proposals"]}
            for row in self.proposal_repo.monthly_usage(since, exclude_user_ids=excluded)
        ]

        return {
            "totalUsers": total_users,
            "totalProposals": total_proposals,
            "avgProposalsPerUser": round(total_proposals / total_users, 1) if total_users else 0,
            "mrr": breakdown.get(Plan.PRO.value, 0) * settings.PRO_PRICE_USD,
            "planBreakdown": breakdown,
            "usageChart": usage_chart,
        }

    # ===================== LISTINGS =====================

    def list_users(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        search: str = "",
        sort_key: Optional[str] = None,
        sort_dir: Optional[str] = None,
        plan: Optional[str] = None
    ) -> Dict[str, Any]:
        page = max(1, page or 1)
        page_size = clamp(limit, 1, PAGE_MAX_LIMIT, PAGE_DEFAULT_LIMIT)
        sort_field, direction = resolve_sort(sort_key, sort_dir, USER_SORT_FIELDS)
        plan_filter = plan if plan in ALLOWED_PLANS else None

        rows, total = self.user_repo.list_customers(
            page, page_size,
            search=search or "",
            plan=plan_filter,
            sort_field=sort_field,
            sort_dir=direction,
        )
        totals = self.proposal_repo.count_by_users([r["_id"] for r in rows])

        users = []
        for row in rows:
            user = UserOut.from_doc(row).to_response()
            user["totalProposals"] = totals.get(row["_id"], 0)
            users.append(user)

        return {"users": users, "pagination": Pagination(page, page_size, total).to_dict()}

    def list_proposals(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        search: str = "",
        sort_key: Optional[str] = None,
        sort_dir: Optional[str] = None
    ) -> Dict[str, Any]:
        page = max(1, page or 1)
        page_size = clamp(limit, 1, PAGE_MAX_LIMIT, PAGE_DEFAULT_LIMIT)
        sort_field, direction = resolve_sort(sort_key, sort_dir, PROPOSAL_SORT_FIELDS)

        rows, total = self.proposal_repo.list_paginated(
            page, page_size,
            search=search or "",
            sort_field=sort_field,
            sort_dir=direction,
            exclude_user_ids=self.user_repo.admin_ids(),
        )
        owners = self.user_repo.get_many([r.get("user_id") for r in rows])

        proposals = []
        for row in rows:
            proposal = ProposalOut.from_doc(row).to_response()
            proposal.pop("jobDescription", None)
            proposal.pop("generatedText", None)
            owner = owners.get(row.get("user_id"))
            proposal["user"] = {
                "id": owner["_id"],
                "name": owner.get("name", ""),
                "email": owner.get("email", ""),
                "plan": owner.get("plan", Plan.FREE.value),
            } if owner else None
            proposals.append(proposal)

        return {"proposals": proposals, "pagination": Pagination(page, page_size, total).to_dict()}

    # ===================== ACTIVITY / USAGE =====================

    def activity(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Most recent generations, newest first."""
        limit = clamp(limit, 1, ACTIVITY_MAX_LIMIT, ACTIVITY_DEFAULT_LIMIT)
        rows = self.proposal_repo.recent(limit, exclude_user_ids=self.user_repo.admin_ids())
        owners = self.user_repo.get_many([r.get("user_id") for r in rows])

        feed = []
        for row in rows:
            owner = owners.get(row.get("user_id"), {})
            feed.append({
                "id": row["_id"],
                "type": "proposal_generated",
                "user": owner.get("name", "Unknown"),
                "email": owner.get("email", ""),
                "title": row.get("job_title", ""),
                "score": row.get("score", 0),
                "tone": row.get("tone"),
                "createdAt": row.get("created_at"),
            })
        return feed

    def usage(self, days: Optional[int] = None, now: datetime = None) -> Dict[str, Any]:
        """
        Usage analytics over a trailing window of days.

        Orphan proposals (owner deleted outside the cascade) are dropped
        from the per-plan and top-user figures.
        """
        now = now or datetime.utcnow()
        days = clamp(days, USAGE_MIN_DAYS, USAGE_MAX_DAYS, USAGE_DEFAULT_DAYS)
        since = now - timedelta(days=days)
        excluded = self.user_repo.admin_ids()

        daily = [
            {
                "date": f"{row['month']}/{row['day']}",
                "proposals": row["proposals"],
                "avgScore": round(row["avg_score"]),
            }
            for row in self.proposal_repo.daily_usage(since, exclude_user_ids=excluded)
        ]

        volume = self.proposal_repo.volume_by_user(since, exclude_user_ids=excluded)
        owners = self.user_repo.get_many([v["user_id"] for v in volume])
        volume = [v for v in volume if v["user_id"] in owners]

        by_plan: Dict[str, Dict[str, Any]] = {}
        for v in volume:
            plan = owners[v["user_id"]].get("plan", Plan.FREE.value)
            bucket = by_plan.setdefault(plan, {"plan": plan, "proposals": 0, "uniqueUsers": 0})
            bucket["proposals"] += v["proposals"]
            bucket["uniqueUsers"] += 1

        top_users = [
            {
                "userId": v["user_id"],
                "name": owners[v["user_id"]].get("name", ""),
                "email": owners[v["user_id"]].get("email", ""),
                "plan": owners[v["user_id"]].get("plan", Plan.FREE.value),
                "proposals": v["proposals"],
                "avgScore": round(v["avg_score"], 1),
            }
            for v in volume[:TOP_USERS_LIMIT]
        ]

        return {
            "window": {"days": days, "since": since},
            "daily": daily,
            "byPlan": sorted(by_plan.values(), key=lambda b: -b["proposals"]),
            "topUsers": top_users,
            "toneBreakdown": self.proposal_repo.tone_breakdown(since, exclude_user_ids=excluded),
        }

    def geo(self) -> Dict[str, Any]:
        return bucket_countries(self.user_repo.country_counts())

    def admin_settings(self) -> Dict[str, Any]:
        """Non-secret configuration shown in the admin UI."""
        return {
            "freeMonthlyProposalCap": settings.FREE_MONTHLY_CAP,
            "defaultModel": settings.LLM_MODEL,
            "defaultTone": DEFAULT_TONE,
            "defaultLength": DEFAULT_LENGTH,
            "allowUserApiKeys": True,
        }

    # ===================== MUTATIONS =====================

    def update_user(self, user_id: str, plan: Optional[str] = None, role: Optional[str] = None) -> Dict[str, Any]:
        """
        Change plan and/or role. Unrecognized values are ignored.

        Raises:
            ValidationError: nothing recognized to update
            NotFoundError: unknown user
        """
        fields: Dict[str, Any] = {}
        if plan in ALLOWED_PLANS:
            fields["plan"] = plan
        if role in ALLOWED_ROLES:
            fields["role"] = role
        if not fields:
            raise ValidationError("No valid fields to update.")

        user = self.user_repo.update_fields(user_id, fields)
        if not user:
            raise NotFoundError("User not found.")
        logger.info(f"[AnalyticsService] admin updated user {user_id}: {fields}")
        return user

    def delete_user(self, user_id: str) -> Dict[str, Any]:
        """Delete a user and every proposal they own."""
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")

        deleted = self.proposal_repo.delete_by_user(user["_id"])
        self.user_repo.delete_by_id(user["_id"])
        logger.info(f"[AnalyticsService] admin deleted user {user_id} and {deleted} proposals")
        return {
            "message": f"User {user.get('email', user_id)} and {deleted} proposals deleted.",
            "deletedProposals": deleted,
        }

    def delete_proposal(self, proposal_id: str) -> None:
        if not self.proposal_repo.delete_by_id(proposal_id):
            raise NotFoundError("Proposal not found.")
        logger.info(f"[AnalyticsService] admin deleted proposal {proposal_id}")


# Singleton instance
_analytics_service: Optional[AnalyticsService] = None


def get_analytics_service() -> AnalyticsService:
    """Get singleton AnalyticsService."""
    global _analytics_service
    if _analytics_service is None:
        from app.infra.mongodb.repositories import get_user_repo, get_proposal_repo
        _analytics_service = AnalyticsService(get_user_repo(), get_proposal_repo())
    return _analytics_service
