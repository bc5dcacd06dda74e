from __future__ import annotations

import logging
from typing import Any

import httpx

from .models import ReputationResult, Sentiment

logger = logging.getLogger(__name__)


SERPAPI_ENDPOINT = "https://serpapi.com/search.json"

SCAM_TERMS = ("scam", "fake", "fraud", "complaint")

MAX_SNIPPET_SIGNALS = 3


def neutral_reputation() -> ReputationResult:
    return ReputationResult(sentiment="neutral", scam_results=0, snippet_signals=[])


def classify_sentiment(scam_hits: int, *, negative_above: int = 12, positive_at_most: int = 3) -> Sentiment:
    """Map a scam-hit count onto sentiment; the two thresholds partition the non-negative integers."""
    if scam_hits > negative_above:
        return "negative"
    if scam_hits <= positive_at_most:
        return "positive"
    return "neutral"


def count_scam_hits(organic_results: list[dict[str, Any]]) -> tuple[int, list[str]]:
    hits = 0
    snippets: list[str] = []
    for item in organic_results:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "")
        snippet = str(item.get("snippet") or "")
        text = f"{title} {snippet}".lower()
        if any(term in text for term in SCAM_TERMS):
            hits += 1
            if snippet:
                snippets.append(snippet)
    return hits, snippets


async def check_reputation(
    company_name: str,
    *,
    api_key: str | None,
    num_results: int = 20,
    negative_above: int = 12,
    positive_at_most: int = 3,
    timeout_s: float = 15.0,
    client: httpx.AsyncClient | None = None,
) -> ReputationResult:
    """Search "<name> reviews fake legit" and count scam-indicative organic results.

    Never raises; without an API key or on any error the result is neutral.
    """
    if not api_key:
        logger.warning("SERPAPI_KEY not set, skipping reputation check")
        return neutral_reputation()

    params = {
        "engine": "google",
        "q": f"{company_name} reviews fake legit",
        "num": num_results,
        "api_key": api_key,
    }

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout_s) as own_client:
                res = await own_client.get(SERPAPI_ENDPOINT, params=params)
        else:
            res = await client.get(SERPAPI_ENDPOINT, params=params, timeout=timeout_s)
        res.raise_for_status()
        data = res.json()
    except Exception as e:
        logger.warning("Reputation check failed for %r: %s", company_name, e)
        return neutral_reputation()

    organic = (data.get("organic_results") or []) if isinstance(data, dict) else []
    if not isinstance(organic, list):
        organic = []
    hits, snippets = count_scam_hits(organic)
    sentiment = classify_sentiment(hits, negative_above=negative_above, positive_at_most=positive_at_most)

    logger.info(
        "Reputation for %r: %d/%d scam-indicative results, sentiment=%s",
        company_name,
        hits,
        len(organic),
        sentiment,
    )
    return ReputationResult(
        sentiment=sentiment,
        scam_results=hits,
        snippet_signals=snippets[:MAX_SNIPPET_SIGNALS],
    )
