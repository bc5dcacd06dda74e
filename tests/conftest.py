from __future__ import annotations

import pytest

from legitcheck_agent.models import AnalysisResult, DomainIntel, ReputationResult, ScrapedSite


def make_scraped(body_text: str = "", **overrides) -> ScrapedSite:
    data = {
        "url": "https://acme.com",
        "title": "Acme Careers",
        "name": "Acme",
        "meta_description": "Internships at Acme",
        "body_text": body_text,
        "links": [],
        "status_code": 200,
    }
    data.update(overrides)
    return ScrapedSite(**data)


def make_domain(age_days: int | None = None, **overrides) -> DomainIntel:
    data = {"domain": "acme.com", "age_days": age_days}
    data.update(overrides)
    return DomainIntel(**data)


def make_reputation(sentiment: str = "neutral", scam_results: int = 0) -> ReputationResult:
    return ReputationResult(sentiment=sentiment, scam_results=scam_results, snippet_signals=[])


def make_analysis(red: list[str] | None = None, green: list[str] | None = None) -> AnalysisResult:
    red = red or []
    green = green or []
    return AnalysisResult(red_flags=red, green_flags=green, category="NEUTRAL", flag_score=0)


class FakeLLM:
    """Async LLM stand-in that records prompts and replays a canned answer or error."""

    def __init__(self, answer: str | None = None, error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.prompts: list[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer or ""


@pytest.fixture
def scraped():
    return make_scraped("We are hiring interns.")
