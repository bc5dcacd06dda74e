from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

VerdictLabel = Literal["SAFE", "CAUTION", "DANGER", "UNKNOWN"]
Sentiment = Literal["positive", "negative", "neutral"]
ContentCategory = Literal["SUSPICIOUS", "LEGIT_CANDIDATE", "NEUTRAL"]
VerdictSource = Literal["heuristic", "llm"]


class ScrapedSite(BaseModel):
    url: str
    title: str = ""
    name: str = ""
    meta_description: str = ""
    # Truncated to 5000 chars by the scraper.
    body_text: str = ""
    links: list[str] = Field(default_factory=list)
    status_code: int


class DomainIntel(BaseModel):
    domain: str
    registrar: str | None = None
    creation_date: str | None = None
    age_days: int | None = None
    country: str | None = None


class ReputationResult(BaseModel):
    sentiment: Sentiment = "neutral"
    scam_results: int = Field(0, ge=0)
    snippet_signals: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    red_flags: list[str]
    green_flags: list[str]
    category: ContentCategory
    flag_score: int = Field(..., ge=-100, le=100)


class Verdict(BaseModel):
    risk_score: int = Field(..., ge=0, le=100)
    verdict: VerdictLabel
    explanation: str
    recommendation: str


class Judgment(BaseModel):
    """Verdict tagged with where it came from (heuristic model or LLM override)."""

    source: VerdictSource
    verdict: Verdict


class VerificationDetails(BaseModel):
    domain_age_days: int | None
    domain_registrar: str | None
    scam_hits: int
    sentiment: Sentiment
    red_flags: list[str]
    green_flags: list[str]


class ScrapedSummary(BaseModel):
    title: str | None = None
    description: str | None = None


class VerificationResponse(BaseModel):
    is_scam: bool
    risk_score: int
    verdict: VerdictLabel
    explanation: str
    recommendation: str
    details: VerificationDetails
    scraped_data: ScrapedSummary

    # metadata
    verdict_source: VerdictSource
    analyzed_at: str
    timings_ms: dict[str, int]
