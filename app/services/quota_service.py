"""
Quota Service

Per-user monthly generation counter with lazy calendar rollover.

- Rollover happens on read, never from a background job.
- Free (capped) users may generate while counter < cap.
- Pro users are never blocked and their counter is never incremented.

The check-then-increment sequence is not atomic across concurrent requests
of the same user; the increment itself uses $inc so no count is lost.
"""
import logging
from typing import Optional, Dict, Any
from datetime import datetime

from app.config import settings
from app.domain.constants import Plan
from app.domain.errors import QuotaExceededError

logger = logging.getLogger(__name__)


def plan_of(user: Dict[str, Any]) -> Plan:
    try:
        return Plan(user.get("plan", Plan.FREE.value))
    except ValueError:
        return Plan.FREE


def needs_rollover(reset_at: Optional[datetime], now: datetime) -> bool:
    """True when the stored reset month/year is not the current month/year."""
    if reset_at is None:
        return True
    return reset_at.month != now.month or reset_at.year != now.year


class QuotaService:
    """Monthly quota checks for proposal generation."""

    def __init__(self, user_repo, cap: int = None):
        self.user_repo = user_repo
        self.cap = settings.FREE_MONTHLY_CAP if cap is None else cap

    def roll_over(self, user: Dict[str, Any], now: datetime = None) -> Dict[str, Any]:
        """
        Zero the counter if a new month started since the last reset.

        Mutates and persists the user record; returns it for chaining.
        """
        now = now or datetime.utcnow()
        if needs_rollover(user.get("reset_proposals_at"), now):
            user["proposals_this_month"] = 0
            user["reset_proposals_at"] = now
            self.user_repo.reset_quota(user["_id"], now)
            logger.info(f"[QuotaService] monthly counter reset for user {user['_id']}")
        return user

    def is_eligible(self, user: Dict[str, Any]) -> bool:
        if not plan_of(user).is_capped:
            return True
        return user.get("proposals_this_month", 0) < self.cap

    def check(self, user: Dict[str, Any], now: datetime = None) -> Dict[str, Any]:
        """
        Roll over then enforce the cap.

        Raises:
            QuotaExceededError: capped user already at the cap
        """
        self.roll_over(user, now)
        if not self.is_eligible(user):
            logger.info(f"[QuotaService] user {user['_id']} hit the monthly cap ({self.cap})")
            raise QuotaExceededError(cap=self.cap)
        return user

    def record_generation(self, user: Dict[str, Any]) -> int:
        """Count a successful generation for capped plans; returns the counter."""
        if plan_of(user).is_capped:
            user["proposals_this_month"] = self.user_repo.increment_quota(user["_id"])
        return user.get("proposals_this_month", 0)

    def meta(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """Plan/quota block returned alongside a generated proposal."""
        plan = plan_of(user)
        used = user.get("proposals_this_month", 0)
        return {
            "plan": plan.value,
            "proposalsThisMonth": used,
            "proposalsRemaining": max(0, self.cap - used) if plan.is_capped else None,
            "canExportPdf": plan == Plan.PRO,
            "advancedScoring": plan == Plan.PRO,
        }
