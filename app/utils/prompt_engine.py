"""
Prompt Engine

Builds the single user prompt sent to the text-generation provider.
Deterministic: the same inputs always produce the same prompt.
"""
import logging
from typing import List, Optional

from app.domain.constants import (
    PROMPT_PREAMBLE,
    PROMPT_STRUCTURE,
    TONE_PHRASES,
)
from app.utils.proposal_scorer import target_words

logger = logging.getLogger(__name__)


class PromptEngine:
    """Template-based prompt builder for freelance proposals."""

    @staticmethod
    def tone_phrase(tone: Optional[str]) -> str:
        """Known tones map to a phrase; anything else passes through verbatim."""
        tone = tone or ""
        return TONE_PHRASES.get(tone.strip().lower(), tone)

    @staticmethod
    def skills_line(skills: List[str]) -> str:
        cleaned = [s.strip() for s in skills or [] if s and s.strip()]
        return ", ".join(cleaned) or "General"

    def build_prompt(
        self,
        job_description: str,
        skills: List[str],
        experience: str,
        tone: str,
        length: str,
        budget: Optional[str] = None,
        timeline: Optional[str] = None
    ) -> str:
        """
        Assemble the generation prompt.

        Budget and timeline lines are only emitted when provided.
        """
        lines = [
            PROMPT_PREAMBLE,
            f"Tone: {self.tone_phrase(tone)}. Length: ~{target_words(length)} words.",
            PROMPT_STRUCTURE,
            "",
            "Write a proposal for:",
            job_description,
            "",
            f"Skills: {self.skills_line(skills)}",
            f"Experience: {experience}",
        ]
        if budget and budget.strip():
            lines.append(f"Budget: {budget.strip()}")
        if timeline and timeline.strip():
            lines.append(f"Timeline: {timeline.strip()}")

        return "\n".join(lines)
