"""
Tests for proposal generation, listing, deletion and PDF export.
"""
from datetime import datetime, timedelta

from app.domain.constants import Plan
from app.infra.mongodb.repositories import get_user_repo, get_proposal_repo
from app.services.proposal_service import ProposalService, get_proposal_service
from main import app

JOB = {
    "jobDescription": "Looking for a Python developer to build a FastAPI backend with MongoDB for our SaaS product.",
    "skills": ["Python", "FastAPI", "MongoDB"],
    "experience": "senior",
    "tone": "confident",
    "length": "medium",
    "budget": "$3,000",
}


def _generate(client, headers, payload=None):
    return client.post("/api/proposals/generate", json=payload or JOB, headers=headers)


def test_generate_returns_scored_proposal_and_meta(client, user_factory, fake_llm):
    user, headers = user_factory()
    response = _generate(client, headers)
    assert response.status_code == 201

    body = response.json()
    proposal = body["proposal"]
    assert body["success"] is True
    assert proposal["user"] == user["_id"]
    assert proposal["jobTitle"] == JOB["jobDescription"][:60] + "..."
    assert proposal["generatedText"] == fake_llm.text
    assert 60 <= proposal["score"] <= 100
    assert proposal["skills"] == ["Python", "FastAPI", "MongoDB"]
    assert body["meta"] == {
        "plan": "Free",
        "proposalsThisMonth": 1,
        "proposalsRemaining": 2,
        "canExportPdf": False,
        "advancedScoring": False,
    }

    # One provider call with the server fallback key and the job in the prompt
    assert len(fake_llm.prompts) == 1
    assert fake_llm.keys == ["server-key"]
    assert JOB["jobDescription"] in fake_llm.prompts[0]
    assert "Budget: $3,000" in fake_llm.prompts[0]


def test_defaults_apply_when_options_missing(client, user_factory):
    _, headers = user_factory()
    proposal = _generate(client, headers, {"jobDescription": "Short job"}).json()["proposal"]
    assert proposal["jobTitle"] == "Short job"
    assert proposal["tone"] == "confident"
    assert proposal["length"] == "medium"
    assert proposal["experience"] == "mid"
    assert proposal["skills"] == []


def test_null_and_empty_options_fall_back_to_defaults(client, user_factory):
    _, headers = user_factory()
    payload = {"jobDescription": "Build a site", "tone": None, "skills": None, "experience": "", "length": ""}
    response = _generate(client, headers, payload)
    assert response.status_code == 201
    proposal = response.json()["proposal"]
    assert proposal["tone"] == "confident"
    assert proposal["length"] == "medium"
    assert proposal["experience"] == "mid"
    assert proposal["skills"] == []


def test_oversized_description_is_rejected_before_provider(client, user_factory, fake_llm):
    _, headers = user_factory()
    response = _generate(client, headers, {"jobDescription": "x" * 10001})
    assert response.status_code == 400
    assert response.json()["message"].startswith("jobDescription")
    assert fake_llm.prompts == []


def test_user_key_is_preferred(client, user_factory, fake_llm):
    user, headers = user_factory()
    get_user_repo().update_by_id(user["_id"], {"api_key": "user-own-key"})
    _generate(client, headers)
    assert fake_llm.keys == ["user-own-key"]


def test_missing_description_is_rejected_before_provider(client, user_factory, fake_llm):
    _, headers = user_factory()
    response = _generate(client, headers, {"jobDescription": "   "})
    assert response.status_code == 400
    assert response.json()["message"] == "Job description required."
    assert fake_llm.prompts == []


def test_missing_credential(client, user_factory, fake_llm, db):
    _, headers = user_factory()
    no_key = ProposalService(get_user_repo(), get_proposal_repo(), llm_factory=fake_llm, fallback_api_key="")
    app.dependency_overrides[get_proposal_service] = lambda: no_key

    response = _generate(client, headers)
    assert response.status_code == 400
    assert "API key" in response.json()["message"]
    assert fake_llm.prompts == []


def test_free_cap_blocks_without_provider_call(client, user_factory, fake_llm):
    user, headers = user_factory()
    for expected_remaining in (2, 1, 0):
        response = _generate(client, headers)
        assert response.status_code == 201
        assert response.json()["meta"]["proposalsRemaining"] == expected_remaining

    blocked = _generate(client, headers)
    assert blocked.status_code == 403
    assert blocked.json() == {"success": False, "message": "Free plan limit (3/month) reached. Upgrade to Pro."}
    assert len(fake_llm.prompts) == 3
    assert get_user_repo().get_by_id(user["_id"])["proposals_this_month"] == 3


def test_new_month_resets_the_cap(client, user_factory):
    user, headers = user_factory()
    get_user_repo().update_by_id(user["_id"], {
        "proposals_this_month": 3,
        "reset_proposals_at": datetime.utcnow() - timedelta(days=40),
    })
    response = _generate(client, headers)
    assert response.status_code == 201
    assert response.json()["meta"]["proposalsThisMonth"] == 1


def test_pro_counter_never_increments(client, user_factory):
    user, headers = user_factory(plan=Plan.PRO)
    for _ in range(4):
        assert _generate(client, headers).status_code == 201

    meta = _generate(client, headers).json()["meta"]
    assert meta["proposalsRemaining"] is None
    assert meta["canExportPdf"] is True
    assert get_user_repo().get_by_id(user["_id"])["proposals_this_month"] == 0


def test_generation_is_rate_limited(client, user_factory):
    from app.config import settings
    from app.middleware.rate_limiter import generate_limiter

    user, headers = user_factory(plan=Plan.PRO)
    for _ in range(settings.GENERATE_RATE_LIMIT):
        generate_limiter.hit(f"user:{user['_id']}")
    response = _generate(client, headers)
    assert response.status_code == 429


def test_list_and_delete_are_owner_scoped(client, user_factory):
    _, alice = user_factory(email="alice@example.com", plan=Plan.PRO)
    _, bob = user_factory(email="bob@example.com")

    first = _generate(client, alice, {"jobDescription": "First job"}).json()["proposal"]
    second = _generate(client, alice, {"jobDescription": "Second job"}).json()["proposal"]

    listing = client.get("/api/proposals", headers=alice).json()["proposals"]
    assert [p["id"] for p in listing] == [second["id"], first["id"]]
    assert client.get("/api/proposals", headers=bob).json()["proposals"] == []

    assert client.delete(f"/api/proposals/{first['id']}", headers=bob).status_code == 404
    assert client.delete("/api/proposals/not-an-id", headers=alice).status_code == 404
    assert client.delete(f"/api/proposals/{first['id']}", headers=alice).status_code == 200
    assert [p["id"] for p in client.get("/api/proposals", headers=alice).json()["proposals"]] == [second["id"]]


def test_pdf_export_is_pro_only(client, user_factory):
    _, free = user_factory(email="free@example.com")
    _, pro = user_factory(email="pro@example.com", plan=Plan.PRO)

    free_proposal = _generate(client, free).json()["proposal"]
    blocked = client.get(f"/api/proposals/{free_proposal['id']}/export-pdf", headers=free)
    assert blocked.status_code == 403

    pro_proposal = _generate(client, pro).json()["proposal"]
    response = client.get(f"/api/proposals/{pro_proposal['id']}/export-pdf", headers=pro)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f"proposal-{pro_proposal['id']}.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")

    # Someone else's proposal looks missing
    other = client.get(f"/api/proposals/{free_proposal['id']}/export-pdf", headers=pro)
    assert other.status_code == 404
