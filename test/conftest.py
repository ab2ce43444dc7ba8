"""
Shared fixtures: in-memory MongoDB, fake text provider, test client and
helpers to create accounts with sessions.
"""
import os
import sys
from pathlib import Path

# Must be set before app.config is imported
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["GEOIP_ENABLED"] = "false"

# Add parent directory to path to enable imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.domain.constants import Plan, Role
from app.infra.mongodb import use_database, ensure_indexes
from app.infra.mongodb.repositories import get_user_repo, get_proposal_repo
from app.middleware.rate_limiter import generate_limiter, auth_limiter
from app.services.auth_service import hash_password, create_access_token
from app.services.proposal_service import ProposalService, get_proposal_service
from main import app


SAMPLE_PROPOSAL = (
    "Hi there,\n\n"
    "I will build your FastAPI backend with Python and MongoDB. I have 6 years of experience "
    "shipping APIs that cut response times by 40% for SaaS clients.\n\n"
    "My plan: design the schema in 2 days, implement endpoints in 1 week, then add tests.\n\n"
    "Looking forward to working with you. Best regards"
)


class FakeLLM:
    """Stands in for LLMService; also acts as its factory."""

    def __init__(self, text: str = SAMPLE_PROPOSAL):
        self.text = text
        self.prompts = []
        self.keys = []

    def __call__(self, api_key: str):
        self.keys.append(api_key)
        return self

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.text


@pytest.fixture
def db():
    database = mongomock.MongoClient()["proposal_studio_test"]
    use_database(database)
    ensure_indexes(database)
    generate_limiter.reset()
    auth_limiter.reset()
    yield database
    use_database(None)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def proposal_service(db, fake_llm):
    return ProposalService(
        get_user_repo(),
        get_proposal_repo(),
        llm_factory=fake_llm,
        fallback_api_key="server-key",
    )


@pytest.fixture
def client(db, proposal_service):
    app.dependency_overrides[get_proposal_service] = lambda: proposal_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(name="Jane Doe", email="jane@example.com", password="secret123",
              role=Role.USER, plan=Plan.FREE, country=""):
    """Insert an account directly; returns (user doc, auth headers)."""
    user = get_user_repo().create(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        plan=plan,
        country=country,
    )
    token = create_access_token(user["_id"], user["email"])
    return user, {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_factory(db):
    return make_user
