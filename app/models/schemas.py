"""
Pydantic schemas for the HTTP surface

Defines:
- Request bodies (auth, generation, self-service, admin)
- Outward user/proposal representations

UserOut declares only public attributes, so password hashes and provider
keys cannot reach a response even when the stored document carries them.
"""
from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Dict, Any, Optional
from datetime import datetime

from app.domain.constants import (
    DEFAULT_EXPERIENCE,
    DEFAULT_LENGTH,
    DEFAULT_TONE,
    JOB_DESCRIPTION_MAX_CHARS,
)


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ===================== REQUEST SCHEMAS =====================

class SignupRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1)


class LoginRequest(CamelModel):
    email: str
    password: str


class GenerateProposalRequest(CamelModel):
    """Job details and writing options for one proposal."""
    job_description: str = Field("", max_length=JOB_DESCRIPTION_MAX_CHARS, description="Full job description")
    skills: Optional[List[str]] = Field(default_factory=list, description="Skills to highlight")
    experience: Optional[str] = Field(DEFAULT_EXPERIENCE, description="junior, mid or senior")
    tone: Optional[str] = Field(DEFAULT_TONE, description="confident, formal or conversational")
    length: Optional[str] = Field(DEFAULT_LENGTH, description="short, medium or detailed")
    budget: Optional[str] = Field(None, description="Client budget, free text")
    timeline: Optional[str] = Field(None, description="Expected timeline, free text")

    @field_validator("skills", "experience", "tone", "length", mode="before")
    @classmethod
    def empty_means_default(cls, value, info):
        """null, "" and [] fall back to the field default."""
        if value:
            return value
        return {
            "skills": [],
            "experience": DEFAULT_EXPERIENCE,
            "tone": DEFAULT_TONE,
            "length": DEFAULT_LENGTH,
        }[info.field_name]


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, min_length=3, max_length=200)


class UpdateApiKeyRequest(BaseModel):
    cohereApiKey: Optional[StrictStr] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class AdminUpdateUserRequest(CamelModel):
    plan: Optional[str] = None
    role: Optional[str] = None


# ===================== OUTWARD MODELS =====================

class UserOut(CamelModel):
    """Public view of an account."""
    id: str
    name: str
    email: str
    role: str
    plan: str
    country: str = ""
    proposals_this_month: int = 0
    reset_proposals_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "UserOut":
        return cls(
            id=str(doc["_id"]),
            name=doc.get("name", ""),
            email=doc.get("email", ""),
            role=doc.get("role", "user"),
            plan=doc.get("plan", "Free"),
            country=doc.get("country") or "",
            proposals_this_month=doc.get("proposals_this_month", 0),
            reset_proposals_at=doc.get("reset_proposals_at"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ProposalOut(CamelModel):
    """Public view of a generated proposal."""
    id: str
    user: str
    job_title: str
    job_description: Optional[str] = None
    generated_text: Optional[str] = None
    score: int = 0
    tone: Optional[str] = None
    length: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "ProposalOut":
        return cls(
            id=str(doc["_id"]),
            user=str(doc.get("user_id", "")),
            job_title=doc.get("job_title", ""),
            job_description=doc.get("job_description"),
            generated_text=doc.get("generated_text"),
            score=doc.get("score", 0),
            tone=doc.get("tone"),
            length=doc.get("length"),
            skills=doc.get("skills") or [],
            experience=doc.get("experience"),
            budget=doc.get("budget"),
            timeline=doc.get("timeline"),
            created_at=doc.get("created_at"),
        )

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
