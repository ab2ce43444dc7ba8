"""
Tests for the deterministic proposal scorer.
"""
from app.utils.proposal_scorer import (
    ScoreOptions,
    score_proposal,
    score_breakdown,
    skill_points,
    cliche_points,
    matched_cliches,
    specificity_points,
    structure_points,
    length_fit_points,
    experience_points,
    tone_points,
)
from app.services.proposal_service import derive_title


def _words(n: int) -> str:
    return " ".join(["word"] * n)


def test_score_is_deterministic_and_bounded():
    options = ScoreOptions(skills=["Python", "FastAPI"], experience="senior", tone="confident", length="medium")
    texts = [
        "",
        "ok",
        "Hi, I will deliver. " + _words(300) + " Python FastAPI 10 years 50% $5k 3 weeks. Best regards",
        "I am the perfect candidate, a hard worker and team player. To whom it may concern.",
    ]
    for text in texts:
        first = score_proposal(text, options)
        assert first == score_proposal(text, options)
        assert 60 <= first <= 100
        print(f"  score={first} for {text[:30]!r}")


def test_empty_text_scores_minimum():
    assert score_proposal("", ScoreOptions()) == 60


def test_length_fit_bands():
    assert length_fit_points(_words(150), "short") == 15
    assert length_fit_points(_words(100), "short") == 10    # ratio 0.67
    assert length_fit_points(_words(70), "short") == 5      # ratio 0.47
    assert length_fit_points(_words(20), "short") == 0
    # Unknown length class targets 300 words
    assert length_fit_points(_words(300), "epic") == 15


def test_skill_points_count_distinct_skills_and_cap():
    text = "python and fastapi and PYTHON again"
    assert skill_points(text, ["Python", "python", "FastAPI"]) == 4
    many = ["a1", "b2", "c3", "d4", "e5", "f6"]
    assert skill_points(" ".join(many), many) == 10


def test_adding_a_matched_skill_never_lowers_the_score():
    text = "Hi, I can deliver with Python, Django, React, AWS, Docker and Redis. Thanks"
    skills = []
    previous = score_proposal(text, ScoreOptions(skills=skills))
    for skill in ["Python", "Django", "React", "AWS", "Docker", "Redis"]:
        skills.append(skill)
        current = score_proposal(text, ScoreOptions(skills=list(skills)))
        assert current >= previous
        previous = current


def test_each_cliche_costs_two_points_up_to_six():
    assert cliche_points("nothing generic here") == 0
    assert cliche_points("I am a hard worker.") == -2
    assert cliche_points("A hard worker and a team player.") == -4
    text = "To whom it may concern, I am the perfect candidate, a hard worker and a team player."
    assert len(matched_cliches(text)) == 4
    assert cliche_points(text) == -6


def test_cliche_repeated_counts_once():
    assert cliche_points("team player, team player, team player") == -2


def test_specificity_counts_numbers():
    text = "Cut costs by 30% and saved $5k in 3 weeks"
    assert specificity_points(text) == 6
    assert specificity_points("1% 2% 3% 4% 5% 6% 7%") == 10


def test_structure_greeting_and_closing():
    assert structure_points("Hi there, I build APIs. Best regards") == 5
    assert structure_points("I build APIs.") == 0
    late_greeting = _words(40) + " hello"
    assert structure_points(late_greeting) == 0


def test_experience_and_tone_terms():
    assert experience_points("anything", "junior") == 3
    assert experience_points("I have 10 years in this", "senior") == 5
    assert experience_points("I have proven results", "mid") == 4
    assert experience_points("no signal", "senior") == 0
    assert tone_points("I will deliver on time", "confident") == 3
    assert tone_points("I will deliver on time", "formal") == 0


def test_breakdown_sums_onto_base():
    text = "Hi, I will ship this. " + _words(290) + " Best regards"
    breakdown = score_breakdown(text, ScoreOptions(tone="confident", length="medium"))
    assert breakdown.raw_total == 60 + sum(
        [breakdown.length_fit, breakdown.skills, breakdown.experience, breakdown.specificity,
         breakdown.cliches, breakdown.structure, breakdown.tone]
    )
    assert breakdown.to_dict()["score"] == breakdown.score


def test_title_derivation():
    short = "Build a landing page"
    assert derive_title(short) == short
    exact = "x" * 60
    assert derive_title(exact) == exact
    long = "y" * 61
    assert derive_title(long) == "y" * 60 + "..."
