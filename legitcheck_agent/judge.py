"""
Verdict engine: fuses domain age, reputation and content signals into a risk score,
then optionally lets an LLM replace the heuristic verdict.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any

from .llm import LLMCallable
from .models import AnalysisResult, DomainIntel, Judgment, ReputationResult, ScrapedSite, Verdict, VerdictLabel

logger = logging.getLogger(__name__)


BASE_RISK = 50

DANGER_ABOVE = 70
CAUTION_ABOVE = 35

RED_FLAG_RISK = 15
GREEN_FLAG_RELIEF = 5
SCRAPE_FAILURE_RISK = 10

PROMPT_SNIPPET_CHARS = 500

RECOMMENDATIONS: dict[str, str] = {
    "DANGER": "Avoid this company. Highly suspicious signals.",
    "CAUTION": "Research further. Ask about fees or stipends before sharing data.",
    "SAFE": "Seems legitimate. Standard due diligence recommended.",
    "UNKNOWN": "Not enough information to judge. Verify the company independently before sharing data.",
}

_ALLOWED_VERDICTS = {"SAFE", "CAUTION", "DANGER", "UNKNOWN"}

_VERDICT_MAP = {
    "SAFE": "SAFE",
    "LEGIT": "SAFE",
    "LEGITIMATE": "SAFE",
    "OK": "SAFE",
    "CAUTION": "CAUTION",
    "WARN": "CAUTION",
    "WARNING": "CAUTION",
    "SUSPICIOUS": "CAUTION",
    "DANGER": "DANGER",
    "SCAM": "DANGER",
    "FRAUD": "DANGER",
    "UNKNOWN": "UNKNOWN",
}

_REQUIRED_LLM_FIELDS = ("risk_score", "verdict", "short_explanation", "recommendation")


class LLMResponseError(ValueError):
    """The LLM answered, but not with a usable verdict."""


def _clamp_score(score: int) -> int:
    return max(0, min(100, int(score)))


def classify_risk(risk_score: int) -> VerdictLabel:
    if risk_score > DANGER_ABOVE:
        return "DANGER"
    if risk_score > CAUTION_ABOVE:
        return "CAUTION"
    return "SAFE"


def recommendation_for(verdict: VerdictLabel) -> str:
    return RECOMMENDATIONS[verdict]


def heuristic_verdict(
    scraped: ScrapedSite | None,
    domain: DomainIntel,
    reputation: ReputationResult,
    analysis: AnalysisResult,
) -> Verdict:
    risk = BASE_RISK
    breakdown: list[str] = []

    age = domain.age_days
    if age is not None:
        if age < 60:
            risk += 25
            breakdown.append("Very recent domain registration (< 60 days)")
        elif age < 365:
            risk += 10
            breakdown.append("Relatively new domain (< 1 year)")
        elif age > 1000:
            risk -= 15
            breakdown.append("Well-established domain (> 3 years)")

    if reputation.sentiment == "negative":
        risk += 40
        breakdown.append(f"Negative online reputation detected ({reputation.scam_results} concerning results)")
    elif reputation.sentiment == "positive":
        risk -= 10
        breakdown.append("Positive online reputation")

    if analysis.red_flags:
        risk += RED_FLAG_RISK * len(analysis.red_flags)
        breakdown.append(
            f"Detected {len(analysis.red_flags)} red flag term(s): {', '.join(analysis.red_flags)}"
        )
    # Green flags lower the score without adding to the explanation.
    risk -= GREEN_FLAG_RELIEF * len(analysis.green_flags)

    if scraped is None:
        risk += SCRAPE_FAILURE_RISK
        breakdown.append("Unable to scrape website for deeper analysis")

    risk = _clamp_score(risk)
    label = classify_risk(risk)

    explanation = (
        ". ".join(breakdown) + "."
        if breakdown
        else f"Heuristic score: {risk}/100 based on standard signals."
    )

    logger.debug("Heuristic risk=%d verdict=%s breakdown=%s", risk, label, breakdown)
    return Verdict(
        risk_score=risk,
        verdict=label,
        explanation=explanation,
        recommendation=recommendation_for(label),
    )


def build_prompt(
    scraped: ScrapedSite,
    domain: DomainIntel,
    reputation: ReputationResult,
    analysis: AnalysisResult,
    heuristic: Verdict,
) -> str:
    """Build the internship-legitimacy prompt for the LLM."""
    age = domain.age_days if domain.age_days is not None else "Unknown"
    snippet = scraped.body_text[:PROMPT_SNIPPET_CHARS]
    return f"""Evaluate this company for "Internship Legitimacy".
Goal: Distinguish real internships from "Pay-to-apply" or "Paid Training" scams.

Data Collected:
- URL: {scraped.url}
- Company Name: {scraped.name or 'Unknown'}
- Domain Age in Days: {age}
- Online Sentiment: {reputation.sentiment} ({reputation.scam_results} hits for scam-related searches)
- Red Flag Phrases Found: {', '.join(analysis.red_flags) or 'None'}
- Green Flag Phrases Found: {', '.join(analysis.green_flags) or 'None'}
- Heuristic Assessment: risk {heuristic.risk_score}/100, {heuristic.verdict}
- Snippet: "{snippet}..."

Respond with ONLY flat JSON (no markdown, no code blocks):
{{
  "risk_score": <number 0-100>,
  "verdict": "SAFE" | "CAUTION" | "DANGER",
  "short_explanation": "<one or two sentences explaining the reasoning>",
  "recommendation": "<e.g. Apply, Proceed with caution, Avoid>"
}}"""


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    if "```" in cleaned:
        cleaned = re.sub(r"```(?:json)?", "", cleaned, flags=re.IGNORECASE).strip()
    return cleaned


def parse_llm_verdict(raw_text: str) -> Verdict:
    """Parse and normalize the LLM's JSON answer; raises LLMResponseError if unusable."""
    try:
        data: Any = json.loads(strip_code_fences(raw_text))
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"LLM response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LLMResponseError("LLM response is not a JSON object")

    missing = [k for k in _REQUIRED_LLM_FIELDS if data.get(k) in (None, "")]
    if missing:
        raise LLMResponseError(f"LLM response missing fields: {', '.join(missing)}")

    if isinstance(data["risk_score"], bool):
        raise LLMResponseError(f"Invalid risk_score: {data['risk_score']!r}")
    try:
        score = _clamp_score(float(data["risk_score"]))
    except (TypeError, ValueError, OverflowError) as e:
        raise LLMResponseError(f"Invalid risk_score: {data['risk_score']!r}") from e

    verdict_raw = str(data["verdict"]).strip().upper()
    verdict = _VERDICT_MAP.get(verdict_raw, verdict_raw)
    if verdict not in _ALLOWED_VERDICTS:
        raise LLMResponseError(f"Invalid verdict: {data['verdict']!r}")

    explanation = str(data["short_explanation"]).strip()
    recommendation = str(data["recommendation"]).strip()
    if not explanation or not recommendation:
        raise LLMResponseError("LLM response has blank explanation or recommendation")

    return Verdict(
        risk_score=score,
        verdict=verdict,
        explanation=explanation,
        recommendation=recommendation,
    )


class DecisionEngine:
    def __init__(self, llm: LLMCallable | None = None):
        self.llm = llm

    async def make_decision(
        self,
        scraped: ScrapedSite | None,
        domain: DomainIntel,
        reputation: ReputationResult,
        analysis: AnalysisResult,
    ) -> Judgment:
        """Heuristic verdict, replaced wholesale by the LLM's when one is configured and answers usably.

        Never raises: any LLM failure falls back to the heuristic verdict.
        """
        heuristic = heuristic_verdict(scraped, domain, reputation, analysis)

        if self.llm is None or scraped is None:
            logger.info(
                "Skipping LLM refinement (llm configured: %s, scraped: %s)",
                self.llm is not None,
                scraped is not None,
            )
            return Judgment(source="heuristic", verdict=heuristic)

        try:
            prompt = build_prompt(scraped, domain, reputation, analysis, heuristic)
            raw = await self.llm(prompt)
            refined = parse_llm_verdict(raw)
        except Exception as e:
            logger.warning("LLM refinement failed, using heuristic verdict: %s", e)
            return Judgment(source="heuristic", verdict=heuristic)

        logger.info(
            "LLM verdict %s (%d) replaces heuristic %s (%d)",
            refined.verdict,
            refined.risk_score,
            heuristic.verdict,
            heuristic.risk_score,
        )
        return Judgment(source="llm", verdict=refined)
