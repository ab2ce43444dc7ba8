"""
Proposal Routes

- POST /proposals/generate: quota-checked, rate-limited AI generation
- GET /proposals: caller's proposals, newest first
- DELETE /proposals/{id}: delete an owned proposal
- GET /proposals/{id}/export-pdf: Pro-only PDF download

All endpoints require a bearer session.
"""
import io
import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.middleware.auth import get_current_user
from app.middleware.rate_limiter import limit_generation
from app.models.schemas import GenerateProposalRequest, ProposalOut
from app.services.proposal_service import ProposalService, ProposalRequest, get_proposal_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proposals", tags=["proposals"])


@router.post("/generate", status_code=201)
def generate_proposal(
    body: GenerateProposalRequest,
    user: Dict[str, Any] = Depends(limit_generation),
    service: ProposalService = Depends(get_proposal_service),
):
    """
    Generate, score and store a proposal.

    Free plan: blocked with 403 once the monthly cap is reached, before
    any provider call. Pro plan: never blocked.
    """
    result = service.generate_for_user(
        user["_id"],
        ProposalRequest(
            job_description=body.job_description,
            skills=[s.strip() for s in body.skills if s and s.strip()],
            experience=body.experience,
            tone=body.tone,
            length=body.length,
            budget=body.budget,
            timeline=body.timeline,
        ),
    )
    return {
        "success": True,
        "proposal": ProposalOut.from_doc(result["proposal"]).to_response(),
        "meta": result["meta"],
    }


@router.get("")
def list_proposals(
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
):
    proposals = service.list_for_user(user["_id"])
    return {"success": True, "proposals": [ProposalOut.from_doc(p).to_response() for p in proposals]}


@router.delete("/{proposal_id}")
def delete_proposal(
    proposal_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
):
    service.delete_for_user(proposal_id, user["_id"])
    return {"success": True, "message": "Deleted."}


@router.get("/{proposal_id}/export-pdf")
def export_proposal_pdf(
    proposal_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
):
    exported = service.export_pdf(proposal_id, user)
    return StreamingResponse(
        io.BytesIO(exported["content"]),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{exported["filename"]}"'},
    )
