"""
Proposal Quality Scoring

Deterministic heuristic score in [60, 100] computed from the generated
text and the options the user asked for. No randomness, no I/O.

Each category is capped on its own, the capped terms are summed onto the
base score and only the total is clamped.
"""
import re
import logging
from typing import Dict, List, Optional
from dataclasses import dataclass, field, asdict

from app.domain.constants import (
    BASE_SCORE,
    MIN_SCORE,
    MAX_SCORE,
    DEFAULT_TARGET_WORDS,
    LENGTH_WORDS,
    LENGTH_FIT_BANDS,
    SKILL_POINTS,
    SKILL_CAP,
    EXPERIENCE_PATTERNS,
    JUNIOR_POINTS,
    SPECIFICITY_PATTERNS,
    SPECIFICITY_POINTS,
    SPECIFICITY_CAP,
    CLICHE_PHRASES,
    CLICHE_PENALTY,
    CLICHE_CAP,
    GREETING_PATTERN,
    GREETING_WINDOW,
    GREETING_POINTS,
    CLOSING_PATTERN,
    CLOSING_WINDOW,
    CLOSING_POINTS,
    TONE_PATTERNS,
    TONE_POINTS,
)

logger = logging.getLogger(__name__)

_SPECIFICITY_RES = [re.compile(p, re.IGNORECASE) for p in SPECIFICITY_PATTERNS]
_CLICHE_RES = [re.compile(r"\b" + re.escape(p) + r"\b", re.IGNORECASE) for p in CLICHE_PHRASES]
_EXPERIENCE_RES = {level: (re.compile(p, re.IGNORECASE), pts) for level, (p, pts) in EXPERIENCE_PATTERNS.items()}
_TONE_RES = {tone: re.compile(p, re.IGNORECASE) for tone, p in TONE_PATTERNS.items()}
_GREETING_RE = re.compile(GREETING_PATTERN, re.IGNORECASE)
_CLOSING_RE = re.compile(CLOSING_PATTERN, re.IGNORECASE)


@dataclass
class ScoreOptions:
    """The request options the score depends on."""
    skills: List[str] = field(default_factory=list)
    experience: str = ""
    tone: str = ""
    length: str = ""


@dataclass
class ScoreBreakdown:
    """Per-category contributions (already capped)."""
    length_fit: int = 0
    skills: int = 0
    experience: int = 0
    specificity: int = 0
    cliches: int = 0          # zero or negative
    structure: int = 0
    tone: int = 0

    @property
    def raw_total(self) -> int:
        return (
            BASE_SCORE + self.length_fit + self.skills + self.experience
            + self.specificity + self.cliches + self.structure + self.tone
        )

    @property
    def score(self) -> int:
        return int(round(min(MAX_SCORE, max(MIN_SCORE, self.raw_total))))

    def to_dict(self) -> Dict[str, int]:
        data = asdict(self)
        data["score"] = self.score
        return data


def target_words(length: Optional[str]) -> int:
    """Target word count for a length class (300 when unknown)."""
    return LENGTH_WORDS.get((length or "").strip().lower(), DEFAULT_TARGET_WORDS)


def count_words(text: str) -> int:
    return len(text.split())


def length_fit_points(text: str, length: Optional[str]) -> int:
    ratio = count_words(text) / target_words(length)
    for low, high, points in LENGTH_FIT_BANDS:
        if low <= ratio <= high:
            return points
    return 0


def skill_points(text: str, skills: List[str]) -> int:
    """+2 per distinct requested skill found verbatim (case-insensitive), max +10."""
    lowered = text.lower()
    wanted = {s.strip().lower() for s in skills if s and s.strip()}
    matched = sum(1 for skill in wanted if skill in lowered)
    return min(SKILL_CAP, matched * SKILL_POINTS)


def experience_points(text: str, experience: Optional[str]) -> int:
    level = (experience or "").strip().lower()
    if level == "junior":
        return JUNIOR_POINTS
    if level in _EXPERIENCE_RES:
        pattern, points = _EXPERIENCE_RES[level]
        return points if pattern.search(text) else 0
    return 0


def specificity_matches(text: str) -> int:
    """Total matches across all specificity patterns."""
    return sum(len(p.findall(text)) for p in _SPECIFICITY_RES)


def specificity_points(text: str) -> int:
    return min(SPECIFICITY_CAP, specificity_matches(text) * SPECIFICITY_POINTS)


def matched_cliches(text: str) -> List[str]:
    """Cliché phrases present in the text (each listed once)."""
    return [phrase for phrase, pattern in zip(CLICHE_PHRASES, _CLICHE_RES) if pattern.search(text)]


def cliche_points(text: str) -> int:
    """-2 per distinct cliché, never below -6."""
    return -min(CLICHE_CAP, len(matched_cliches(text)) * CLICHE_PENALTY)


def structure_points(text: str) -> int:
    points = 0
    if _GREETING_RE.search(text[:GREETING_WINDOW]):
        points += GREETING_POINTS
    if _CLOSING_RE.search(text[-CLOSING_WINDOW:]):
        points += CLOSING_POINTS
    return points


def tone_points(text: str, tone: Optional[str]) -> int:
    pattern = _TONE_RES.get((tone or "").strip().lower())
    if pattern and pattern.search(text):
        return TONE_POINTS
    return 0


def score_breakdown(text: str, options: ScoreOptions) -> ScoreBreakdown:
    """Compute every scoring term for a generated proposal."""
    text = text or ""
    return ScoreBreakdown(
        length_fit=length_fit_points(text, options.length),
        skills=skill_points(text, options.skills),
        experience=experience_points(text, options.experience),
        specificity=specificity_points(text),
        cliches=cliche_points(text),
        structure=structure_points(text),
        tone=tone_points(text, options.tone),
    )


def score_proposal(text: str, options: ScoreOptions) -> int:
    """
    Score a generated proposal.

    Args:
        text: Generated proposal text
        options: Skills, experience, tone and length the user requested

    Returns:
        Integer score in [60, 100]
    """
    breakdown = score_breakdown(text, options)
    logger.debug(f"[Scorer] breakdown={breakdown.to_dict()}")
    return breakdown.score
