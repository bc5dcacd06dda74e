from __future__ import annotations

import logging

from .models import AnalysisResult, ContentCategory

logger = logging.getLogger(__name__)


RED_FLAG_TERMS = (
    "registration fee",
    "training fee",
    "security deposit",
    "payment required",
    "pay to work",
    "unpaid training",
    "buy our course",
    "100% placement guarantee",
    "offer letter charge",
    "laptop security fee",
    "certification cost",
    "pay before joining",
    "document fee",
    "processing fee",
    "joining fee",
)


GREEN_FLAG_TERMS = (
    "stipend",
    "salary",
    "ctc",
    "health insurance",
    "provident fund",
    "employees",
    "career",
    "job description",
    "requirements",
    "responsibilities",
    "perks",
    "allowance",
    "paid leave",
    "benefits",
    "team",
    "office",
    "interview process",
    "work culture",
    "about us",
    "our company",
    "founded",
    "headquarters",
    "linkedin",
    "glassdoor",
    "experience required",
    "skills required",
)

# Red flags are penalized 2.5x harder than green flags reward.
_GREEN_WEIGHT = 10
_RED_WEIGHT = 25


def _clamp_flag_score(score: int) -> int:
    return max(-100, min(100, int(score)))


def analyze_content(body_text: str) -> AnalysisResult:
    """Score scraped page text for pay-to-work red flags and legitimate-employer green flags.

    Plain case-insensitive substring matching; deterministic and never fails.
    """
    text = (body_text or "").lower()

    red_flags = [term for term in RED_FLAG_TERMS if term in text]
    green_flags = [term for term in GREEN_FLAG_TERMS if term in text]

    score = len(green_flags) * _GREEN_WEIGHT - len(red_flags) * _RED_WEIGHT

    category: ContentCategory = "NEUTRAL"
    if red_flags or score < -10:
        category = "SUSPICIOUS"
    elif len(green_flags) > 2 and score > 20:
        category = "LEGIT_CANDIDATE"

    result = AnalysisResult(
        red_flags=red_flags,
        green_flags=green_flags,
        category=category,
        flag_score=_clamp_flag_score(score),
    )
    logger.debug(
        "Content analysis: %d chars, red=%s green=%s category=%s",
        len(text),
        red_flags,
        green_flags,
        category,
    )
    return result
