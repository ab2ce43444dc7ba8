"""
Proposal Service

Business logic for proposal generation, including:
- Monthly quota enforcement (before any provider cost)
- Prompt building and the single provider call
- Deterministic quality scoring
- Persistence, counter update and response metadata
- Owner-scoped listing, deletion and PDF export
"""
import logging
from typing import Optional, List, Dict, Any, Callable
from dataclasses import dataclass, field
from datetime import datetime

from app.config import settings
from app.domain.constants import Plan, TITLE_MAX_CHARS, TITLE_ELLIPSIS
from app.domain.errors import (
    ValidationError,
    MissingCredentialError,
    NotFoundError,
    ForbiddenError,
)
from app.services.quota_service import QuotaService, plan_of
from app.utils.prompt_engine import PromptEngine
from app.utils.proposal_scorer import ScoreOptions, score_breakdown
from app.utils.llm_service import LLMService
from app.utils.pdf_export import render_proposal_pdf

logger = logging.getLogger(__name__)


@dataclass
class ProposalRequest:
    """Input parameters for proposal generation."""
    job_description: str
    skills: List[str] = field(default_factory=list)
    experience: str = "mid"
    tone: str = "confident"
    length: str = "medium"
    budget: Optional[str] = None
    timeline: Optional[str] = None


@dataclass
class GenerationResult:
    """Provider text and its score."""
    text: str
    score: int
    breakdown: Dict[str, int] = field(default_factory=dict)


def derive_title(job_description: str) -> str:
    """First 60 characters of the description, with "..." when truncated."""
    if len(job_description) <= TITLE_MAX_CHARS:
        return job_description
    return job_description[:TITLE_MAX_CHARS] + TITLE_ELLIPSIS


def select_api_key(user_key: Optional[str], fallback_key: Optional[str] = None) -> str:
    """
    The caller's own key wins; the server key is an optional fallback.

    Raises:
        MissingCredentialError: neither is configured
    """
    if user_key and user_key.strip():
        return user_key.strip()
    if fallback_key and fallback_key.strip():
        return fallback_key.strip()
    raise MissingCredentialError()


class ProposalService:
    """
    Service for proposal generation and proposal ownership operations.

    Orchestrates:
    - QuotaService for plan caps
    - PromptEngine for the prompt
    - LLMService (built per request from the selected key) for text
    - proposal_scorer for the quality score
    """

    def __init__(
        self,
        user_repo,
        proposal_repo,
        quota_service: QuotaService = None,
        prompt_engine: PromptEngine = None,
        llm_factory: Callable[[str], LLMService] = None,
        fallback_api_key: Optional[str] = None
    ):
        """
        Initialize with dependencies.

        Args:
            user_repo: UserRepository
            proposal_repo: ProposalRepository
            quota_service: QuotaService (defaults to one over user_repo)
            prompt_engine: PromptEngine
            llm_factory: api_key -> object with generate_text(prompt)
            fallback_api_key: Server-wide provider key, optional
        """
        self.user_repo = user_repo
        self.proposal_repo = proposal_repo
        self.quota = quota_service or QuotaService(user_repo)
        self.prompt_engine = prompt_engine or PromptEngine()
        self.llm_factory = llm_factory or (lambda api_key: LLMService(api_key=api_key))
        self.fallback_api_key = settings.COHERE_API_KEY if fallback_api_key is None else fallback_api_key

    # ===================== GENERATION =====================

    def generate(self, request: ProposalRequest, api_key: Optional[str] = None) -> GenerationResult:
        """
        Build the prompt, call the provider once and score the answer.

        Raises:
            MissingCredentialError, provider errors from LLMService
        """
        key = select_api_key(api_key, self.fallback_api_key)
        prompt = self.prompt_engine.build_prompt(
            job_description=request.job_description,
            skills=request.skills,
            experience=request.experience,
            tone=request.tone,
            length=request.length,
            budget=request.budget,
            timeline=request.timeline,
        )

        text = self.llm_factory(key).generate_text(prompt)

        breakdown = score_breakdown(text, ScoreOptions(
            skills=request.skills,
            experience=request.experience,
            tone=request.tone,
            length=request.length,
        ))
        return GenerationResult(text=text, score=breakdown.score, breakdown=breakdown.to_dict())

    def generate_for_user(self, user_id: str, request: ProposalRequest, now: datetime = None) -> Dict[str, Any]:
        """
        Full generation flow for an authenticated user.

        Steps:
        1. Validate description
        2. Load user, roll over and enforce quota (no provider call when blocked)
        3. Generate + score
        4. Persist proposal
        5. Increment counter for capped plans
        6. Build response metadata

        Returns:
            {"proposal": stored document, "meta": plan/quota block}
        """
        if not request.job_description or not request.job_description.strip():
            raise ValidationError("Job description required.")

        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")

        self.quota.check(user, now)

        result = self.generate(request, api_key=user.get("api_key"))

        proposal = self.proposal_repo.save_proposal({
            "user_id": user["_id"],
            "job_title": derive_title(request.job_description),
            "job_description": request.job_description,
            "generated_text": result.text,
            "score": result.score,
            "tone": request.tone,
            "length": request.length,
            "skills": list(request.skills),
            "experience": request.experience,
            "budget": request.budget,
            "timeline": request.timeline,
        })

        self.quota.record_generation(user)
        logger.info(
            f"[ProposalService] user {user['_id']} generated proposal {proposal['_id']} "
            f"(score {result.score}, plan {user.get('plan')})"
        )

        return {"proposal": proposal, "meta": self.quota.meta(user)}

    # ===================== OWNERSHIP =====================

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.proposal_repo.list_by_user(user_id)

    def delete_for_user(self, proposal_id: str, user_id: str) -> None:
        if not self.proposal_repo.delete_owned(proposal_id, user_id):
            raise NotFoundError("Not found.")
        logger.info(f"[ProposalService] user {user_id} deleted proposal {proposal_id}")

    def export_pdf(self, proposal_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Render an owned proposal as PDF (Pro plan only).

        Returns:
            {"filename": str, "content": bytes}
        """
        if plan_of(user) != Plan.PRO:
            raise ForbiddenError("PDF export is available on the Pro plan.")

        proposal = self.proposal_repo.get_owned(proposal_id, user["_id"])
        if not proposal:
            raise NotFoundError("Not found.")

        return {
            "filename": f"proposal-{proposal['_id']}.pdf",
            "content": render_proposal_pdf(proposal),
        }


# Service singleton to avoid re-initialization on every request
_proposal_service: Optional[ProposalService] = None


def get_proposal_service() -> ProposalService:
    """Get singleton ProposalService."""
    global _proposal_service
    if _proposal_service is None:
        from app.infra.mongodb.repositories import get_user_repo, get_proposal_repo
        _proposal_service = ProposalService(get_user_repo(), get_proposal_repo())
    return _proposal_service
