"""
PDF rendering for saved proposals (Pro feature).
"""
import io
import html
import logging
from typing import Any, Dict, List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

logger = logging.getLogger(__name__)


def _styles() -> Dict[str, ParagraphStyle]:
    sample = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "title",
            parent=sample["Title"],
            fontName="Helvetica-Bold",
            fontSize=16,
            leading=20,
            alignment=0,
            spaceAfter=4,
        ),
        "meta": ParagraphStyle(
            "meta",
            parent=sample["Normal"],
            fontSize=9,
            leading=12,
            textColor=colors.HexColor("#555555"),
        ),
        "body": ParagraphStyle(
            "body",
            parent=sample["Normal"],
            fontSize=10.5,
            leading=15,
            spaceAfter=8,
        ),
    }


def _meta_line(proposal: Dict[str, Any]) -> str:
    parts: List[str] = [f"Score {proposal.get('score', 0)}/100"]
    for label, key in (("Tone", "tone"), ("Length", "length"), ("Budget", "budget"), ("Timeline", "timeline")):
        value = proposal.get(key)
        if value:
            parts.append(f"{label}: {value}")
    created = proposal.get("created_at")
    if created:
        parts.append(created.strftime("%Y-%m-%d"))
    return " · ".join(parts)


def render_proposal_pdf(proposal: Dict[str, Any]) -> bytes:
    """Render title, metadata and body paragraphs of a proposal to A4 PDF bytes."""
    styles = _styles()
    output = io.BytesIO()
    doc = SimpleDocTemplate(
        output,
        pagesize=A4,
        leftMargin=48,
        rightMargin=48,
        topMargin=48,
        bottomMargin=40,
        title=proposal.get("job_title") or "Proposal",
        author="Proposal Studio",
    )

    story: List[Any] = [
        Paragraph(html.escape(proposal.get("job_title") or "Proposal"), styles["title"]),
        Paragraph(html.escape(_meta_line(proposal)), styles["meta"]),
        Spacer(1, 6),
        HRFlowable(width="100%", thickness=0.6, color=colors.HexColor("#cccccc")),
        Spacer(1, 10),
    ]

    text = proposal.get("generated_text") or ""
    for block in text.split("\n\n"):
        block = block.strip()
        if block:
            story.append(Paragraph(html.escape(block).replace("\n", "<br/>"), styles["body"]))

    doc.build(story)
    logger.info(f"Rendered PDF for proposal {proposal.get('_id')}")
    return output.getvalue()
