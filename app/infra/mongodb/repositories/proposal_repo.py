"""
Proposal Repository

Generated proposals, owner-scoped list/delete, the cascade used when a
user is removed, and the read-only queries behind the admin dashboard.

Every reporting query takes an explicit exclude_user_ids list so admin
owned proposals can be kept out of customer numbers.
"""
import re
import logging
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime
from pymongo import DESCENDING

from app.infra.mongodb.base_repository import BaseRepository, to_object_id

logger = logging.getLogger(__name__)

# Long text fields left out of admin listings
LIST_PROJECTION = {"generated_text": 0, "job_description": 0}


class ProposalRepository(BaseRepository[Dict[str, Any]]):
    """Repository for generated proposals."""

    collection_name = "proposals"

    def save_proposal(self, proposal_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Save a generated proposal.

        Args:
            proposal_data: Proposal fields (user_id, job_title, generated_text, score, ...)

        Returns:
            Stored document with string "_id"
        """
        proposal_data.setdefault("created_at", datetime.utcnow())
        proposal_data["_id"] = self.insert_one(proposal_data)
        logger.info(f"Saved proposal {proposal_data['_id']} for user {proposal_data.get('user_id')}")
        return proposal_data

    def list_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        """All proposals of one owner, newest first."""
        return self.find_many(
            {"user_id": user_id},
            limit=0,
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
        )

    def get_owned(self, proposal_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(proposal_id)
        if oid is None:
            return None
        return self.find_one({"_id": oid, "user_id": user_id})

    def delete_owned(self, proposal_id: str, user_id: str) -> bool:
        """Delete a proposal only if it belongs to user_id."""
        oid = to_object_id(proposal_id)
        if oid is None:
            return False
        return self.delete_one({"_id": oid, "user_id": user_id})

    def delete_by_user(self, user_id: str) -> int:
        """Cascade: remove every proposal of a user. Returns the deleted count."""
        result = self.collection.delete_many({"user_id": user_id})
        logger.info(f"Deleted {result.deleted_count} proposals of user {user_id}")
        return result.deleted_count

    # ===================== ADMIN QUERIES =====================

    @staticmethod
    def _window_query(since: Optional[datetime], exclude_user_ids: List[str]) -> Dict[str, Any]:
        query: Dict[str, Any] = {"user_id": {"$nin": list(exclude_user_ids) + [None, ""]}}
        if since is not None:
            query["created_at"] = {"$gte": since}
        return query

    def count_by_users(self, user_ids: List[str]) -> Dict[str, int]:
        """Proposal totals per owner for the given owners."""
        if not user_ids:
            return {}
        rows = self.aggregate([
            {"$match": {"user_id": {"$in": list(user_ids)}}},
            {"$group": {"_id": "$user_id", "count": {"$sum": 1}}},
        ])
        return {r["_id"]: r["count"] for r in rows}

    def list_paginated(
        self,
        page: int,
        page_size: int,
        search: str = "",
        sort_field: str = "created_at",
        sort_dir: int = DESCENDING,
        exclude_user_ids: List[str] = ()
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        One page of proposals without their long text fields.

        Returns:
            (rows, total matching rows)
        """
        query = self._window_query(None, exclude_user_ids)
        term = search.strip()
        if term:
            pattern = re.escape(term)
            query["$or"] = [
                {"job_title": {"$regex": pattern, "$options": "i"}},
                {"job_description": {"$regex": pattern, "$options": "i"}},
            ]

        total = self.count(query)
        rows = self.find_many(
            query,
            skip=(page - 1) * page_size,
            limit=page_size,
            sort=[(sort_field, sort_dir), ("_id", sort_dir)],
            projection=LIST_PROJECTION,
        )
        return rows, total

    def recent(self, limit: int, exclude_user_ids: List[str] = ()) -> List[Dict[str, Any]]:
        """Newest proposals for the activity feed."""
        return self.find_many(
            self._window_query(None, exclude_user_ids),
            limit=limit,
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
            projection=LIST_PROJECTION,
        )

    def count_customer_proposals(self, exclude_user_ids: List[str] = ()) -> int:
        """All owned proposals except those of the excluded owners."""
        return self.count(self._window_query(None, exclude_user_ids))

    def monthly_usage(self, since: datetime, exclude_user_ids: List[str] = ()) -> List[Dict[str, Any]]:
        """[{year, month, proposals}] since a date, oldest first; only months with data."""
        rows = self.aggregate([
            {"$match": self._window_query(since, exclude_user_ids)},
            {"$group": {
                "_id": {"year": {"$year": "$created_at"}, "month": {"$month": "$created_at"}},
                "proposals": {"$sum": 1},
            }},
        ])
        usage = [
            {"year": r["_id"]["year"], "month": r["_id"]["month"], "proposals": r["proposals"]}
            for r in rows
        ]
        usage.sort(key=lambda r: (r["year"], r["month"]))
        return usage

    def daily_usage(self, since: datetime, exclude_user_ids: List[str] = ()) -> List[Dict[str, Any]]:
        """[{year, month, day, proposals, avg_score}] since a date, oldest first."""
        rows = self.aggregate([
            {"$match": self._window_query(since, exclude_user_ids)},
            {"$group": {
                "_id": {
                    "year": {"$year": "$created_at"},
                    "month": {"$month": "$created_at"},
                    "day": {"$dayOfMonth": "$created_at"},
                },
                "proposals": {"$sum": 1},
                "avg_score": {"$avg": "$score"},
            }},
        ])
        daily = [
            {
                "year": r["_id"]["year"],
                "month": r["_id"]["month"],
                "day": r["_id"]["day"],
                "proposals": r["proposals"],
                "avg_score": r["avg_score"] or 0,
            }
            for r in rows
        ]
        daily.sort(key=lambda r: (r["year"], r["month"], r["day"]))
        return daily

    def volume_by_user(self, since: datetime, exclude_user_ids: List[str] = ()) -> List[Dict[str, Any]]:
        """[{user_id, proposals, avg_score}] in the window, highest volume first."""
        rows = self.aggregate([
            {"$match": self._window_query(since, exclude_user_ids)},
            {"$group": {"_id": "$user_id", "proposals": {"$sum": 1}, "avg_score": {"$avg": "$score"}}},
        ])
        volume = [
            {"user_id": r["_id"], "proposals": r["proposals"], "avg_score": r["avg_score"] or 0}
            for r in rows
        ]
        volume.sort(key=lambda r: (-r["proposals"], r["user_id"]))
        return volume

    def tone_breakdown(self, since: datetime, exclude_user_ids: List[str] = ()) -> List[Dict[str, Any]]:
        """[{tone, count}] in the window, most used first."""
        rows = self.aggregate([
            {"$match": self._window_query(since, exclude_user_ids)},
            {"$group": {"_id": "$tone", "count": {"$sum": 1}}},
        ])
        tones = [{"tone": r["_id"], "count": r["count"]} for r in rows]
        tones.sort(key=lambda r: (-r["count"], str(r["tone"])))
        return tones


# Singleton instance
_proposal_repo: Optional[ProposalRepository] = None


def get_proposal_repo() -> ProposalRepository:
    """Get singleton ProposalRepository."""
    global _proposal_repo
    if _proposal_repo is None:
        _proposal_repo = ProposalRepository()
    return _proposal_repo
