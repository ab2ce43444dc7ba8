"""
User Repository

Accounts with plan/role, the monthly proposal counter, the optional
provider API key and the country tag used by the geo report.

password_hash and api_key live only in the stored document; callers
turn documents into app.models.schemas.UserOut before responding.
"""
import re
import logging
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime
from pymongo import ASCENDING, DESCENDING

from app.domain.constants import Plan, Role
from app.infra.mongodb.base_repository import BaseRepository, to_object_id

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[Dict[str, Any]]):
    """Repository for user accounts."""

    collection_name = "users"

    def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role = Role.USER,
        plan: Plan = Plan.FREE,
        country: str = ""
    ) -> Dict[str, Any]:
        """Create a user and return the stored document."""
        now = datetime.utcnow()
        doc = {
            "name": name,
            "email": email.strip().lower(),
            "password_hash": password_hash,
            "role": role.value if isinstance(role, Role) else role,
            "plan": plan.value if isinstance(plan, Plan) else plan,
            "api_key": "",
            "country": country or "",
            "proposals_this_month": 0,
            "reset_proposals_at": now,
            "created_at": now,
            "updated_at": now,
        }
        doc["_id"] = self.insert_one(doc)
        logger.info(f"Created user: {doc['_id']} ({doc['role']}, {doc['plan']})")
        return doc

    def get_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by_id(user_id)

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive lookup (emails are stored lower-case)."""
        return self.find_one({"email": email.strip().lower()})

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """$set fields and return the fresh document, or None if missing."""
        if not self.update_by_id(user_id, fields):
            return None
        return self.get_by_id(user_id)

    def reset_quota(self, user_id: str, now: datetime) -> None:
        """Start a new counting month."""
        self.update_by_id(user_id, {"proposals_this_month": 0, "reset_proposals_at": now})

    def increment_quota(self, user_id: str) -> int:
        """Atomically add one generation to the counter; returns the new value."""
        oid = to_object_id(user_id)
        self.collection.update_one({"_id": oid}, {"$inc": {"proposals_this_month": 1}})
        doc = self.collection.find_one({"_id": oid}, {"proposals_this_month": 1})
        return doc.get("proposals_this_month", 0) if doc else 0

    # ===================== ADMIN QUERIES =====================

    def admin_ids(self) -> List[str]:
        """Ids of every admin account (used to exclude their data from reports)."""
        return [str(d["_id"]) for d in self.collection.find({"role": Role.ADMIN.value}, {"_id": 1})]

    def get_many(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Map of id -> user document for the given ids."""
        oids = [oid for oid in (to_object_id(u) for u in user_ids) if oid is not None]
        if not oids:
            return {}
        return {str(d["_id"]): self._stringify(d) for d in self.collection.find({"_id": {"$in": oids}})}

    def count_customers(self) -> int:
        """Non-admin account count."""
        return self.count({"role": Role.USER.value})

    def plan_breakdown(self) -> Dict[str, int]:
        """{Free: n, Pro: n} over non-admin accounts."""
        breakdown = {p.value: 0 for p in Plan}
        rows = self.aggregate([
            {"$match": {"role": Role.USER.value}},
            {"$group": {"_id": "$plan", "count": {"$sum": 1}}},
        ])
        for row in rows:
            breakdown[row["_id"]] = row["count"]
        return breakdown

    def list_customers(
        self,
        page: int,
        page_size: int,
        search: str = "",
        plan: Optional[str] = None,
        sort_field: str = "created_at",
        sort_dir: int = DESCENDING
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        One page of non-admin accounts.

        Args:
            page: 1-based page number
            page_size: Rows per page (already clamped by caller)
            search: Case-insensitive substring over name and email
            plan: Optional plan filter
            sort_field: Stored field to sort by (already allow-listed)
            sort_dir: ASCENDING or DESCENDING

        Returns:
            (rows, total matching rows)
        """
        query: Dict[str, Any] = {"role": Role.USER.value}
        if plan:
            query["plan"] = plan
        term = search.strip()
        if term:
            pattern = re.escape(term)
            query["$or"] = [
                {"name": {"$regex": pattern, "$options": "i"}},
                {"email": {"$regex": pattern, "$options": "i"}},
            ]

        total = self.count(query)
        rows = self.find_many(
            query,
            skip=(page - 1) * page_size,
            limit=page_size,
            sort=[(sort_field, sort_dir), ("_id", sort_dir)],
            projection={"password_hash": 0, "api_key": 0},
        )
        return rows, total

    def country_counts(self) -> List[Dict[str, Any]]:
        """[{country, users}] for non-admin accounts with a country, largest first."""
        rows = self.aggregate([
            {"$match": {"role": Role.USER.value, "country": {"$nin": ["", None]}}},
            {"$group": {"_id": "$country", "users": {"$sum": 1}}},
        ])
        counts = [{"country": r["_id"], "users": r["users"]} for r in rows]
        counts.sort(key=lambda r: (-r["users"], r["country"]))
        return counts


# Singleton instance
_user_repo: Optional[UserRepository] = None


def get_user_repo() -> UserRepository:
    """Get singleton UserRepository."""
    global _user_repo
    if _user_repo is None:
        _user_repo = UserRepository()
    return _user_repo
