"""
Centralized Constants for Proposal Studio

SINGLE SOURCE OF TRUTH for plans, roles, prompt vocabularies and
scoring keyword lists. All modules should import from here.
"""

from typing import Dict, List, Tuple
from enum import Enum


# =============================================================================
# SHARED ENUMS
# =============================================================================

class Plan(str, Enum):
    """Subscription tiers."""
    FREE = "Free"   # monthly capped
    PRO = "Pro"     # unlimited, PDF export, advanced scoring

    @property
    def is_capped(self) -> bool:
        return self == Plan.FREE


class Role(str, Enum):
    """Account roles."""
    USER = "user"
    ADMIN = "admin"


ALLOWED_PLANS: List[str] = [p.value for p in Plan]
ALLOWED_ROLES: List[str] = [r.value for r in Role]


# =============================================================================
# PROMPT VOCABULARIES
# =============================================================================

# Target word count per length class
LENGTH_WORDS: Dict[str, int] = {
    "short": 150,
    "medium": 300,
    "detailed": 500,
}
DEFAULT_TARGET_WORDS = 300

# Tone phrase injected into the prompt
TONE_PHRASES: Dict[str, str] = {
    "formal": "formal and professional",
    "conversational": "friendly and conversational",
    "confident": "confident and assertive",
}

DEFAULT_TONE = "confident"
DEFAULT_LENGTH = "medium"
DEFAULT_EXPERIENCE = "mid"

PROMPT_PREAMBLE = (
    "You are an expert freelance proposal writer. Write winning proposals."
)
PROMPT_STRUCTURE = (
    "Structure: strong hook → relevant experience → specific approach → clear CTA.\n"
    "Be specific with numbers and results. Avoid \"I am the perfect candidate\"."
)


# =============================================================================
# SCORING KEYWORDS
# =============================================================================
# Patterns are compiled with re.IGNORECASE by the scorer.

BASE_SCORE = 60
MIN_SCORE = 60
MAX_SCORE = 100

# (min_ratio, max_ratio, points) - first band that contains the ratio wins
LENGTH_FIT_BANDS: List[Tuple[float, float, int]] = [
    (0.8, 1.2, 15),
    (0.6, 1.4, 10),
    (0.4, 1.6, 5),
]

SKILL_POINTS = 2
SKILL_CAP = 10

EXPERIENCE_PATTERNS: Dict[str, Tuple[str, int]] = {
    "senior": (r"\b(?:years?|decades?|extensive|seasoned)\b", 5),
    "mid": (r"\b(?:years?|experience|proven)\b", 4),
}
JUNIOR_POINTS = 3

SPECIFICITY_PATTERNS: List[str] = [
    r"\d+(?:\.\d+)?\s?%",                                         # percentages
    r"\$\s?\d[\d,]*(?:\.\d+)?[kmb]?\b",                           # dollar amounts
    r"\b\d+\s*(?:hours?|hrs?|days?|weeks?|months?|years?)\b",     # time spans
    r"\b\d+\+",                                                   # "10+"
    r"\b\d+(?:\.\d+)?x\b",                                        # "3x" multipliers
]
SPECIFICITY_POINTS = 2
SPECIFICITY_CAP = 10

CLICHE_PHRASES: List[str] = [
    "i am the perfect candidate",
    "perfect fit for this job",
    "hard worker",
    "team player",
    "think outside the box",
    "to whom it may concern",
]
CLICHE_PENALTY = 2
CLICHE_CAP = 6

GREETING_PATTERN = r"\b(?:hi|hello|hey|dear|greetings)\b"
GREETING_WINDOW = 100
GREETING_POINTS = 2

CLOSING_PATTERN = r"\b(?:regards|sincerely|thanks|thank you|cheers|best|looking forward)\b"
CLOSING_WINDOW = 150
CLOSING_POINTS = 3

TONE_PATTERNS: Dict[str, str] = {
    "confident": r"\b(?:i will|i'll|i can|confident|guarantee|deliver)\b",
    "formal": r"\b(?:sincerely|regards|pleased|kindly|respectfully)\b",
    "conversational": r"\b(?:hey|love to|excited|happy to|let's|chat)\b",
}
TONE_POINTS = 3


# =============================================================================
# ADMIN REPORTING
# =============================================================================

MONTH_NAMES: List[str] = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

USAGE_MONTHS = 6
USAGE_DEFAULT_DAYS = 30
USAGE_MIN_DAYS = 7
USAGE_MAX_DAYS = 90
TOP_USERS_LIMIT = 10
GEO_TOP_N = 7
GEO_OTHER_LABEL = "Other"

PAGE_DEFAULT_LIMIT = 8
PAGE_MAX_LIMIT = 50
ACTIVITY_DEFAULT_LIMIT = 20
ACTIVITY_MAX_LIMIT = 50

# API sort key -> stored field
USER_SORT_FIELDS: Dict[str, str] = {
    "name": "name",
    "createdAt": "created_at",
    "proposalsThisMonth": "proposals_this_month",
    "plan": "plan",
}
PROPOSAL_SORT_FIELDS: Dict[str, str] = {
    "createdAt": "created_at",
    "score": "score",
    "tone": "tone",
    "length": "length",
}
DEFAULT_SORT_KEY = "createdAt"

TITLE_MAX_CHARS = 60
JOB_DESCRIPTION_MAX_CHARS = 10000
TITLE_ELLIPSIS = "..."
MIN_PASSWORD_LENGTH = 6
